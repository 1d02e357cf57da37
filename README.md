# prreview

A small HTTP service that manages teams, their members and pull requests,
and picks reviewers for each pull request automatically. Data is kept in
an SQLite database.

When a pull request is created, up to two active members of the author's
team are chosen at random as reviewers (the author is never chosen). If
fewer than two can be found, the pull request is flagged as needing more
reviewers. A reviewer can later be swapped for another active teammate,
pull requests can be merged (merging an already merged one just returns
it), and groups of team members can be deactivated at once, with their
open reviews handed over to the teammates who remain active.

## Running the service

The package installs one command:

    prreview

It takes no options besides `--help`. It needs a `.env` file in the
working directory (it exits with status 1 if there is none) and reads
these variables from it and from the environment:

| Variable   | Meaning                                                                 |
|------------|-------------------------------------------------------------------------|
| `DB_URL`   | the SQLite database: a file path, or a URL such as `sqlite:///reviews.db` |
| `API_PORT` | the port the server listens on, on all interfaces; unset means any free port |

The tables are created on first connection. Logs of the service are
written as JSON lines to standard output and to `logs/log.txt`. The server
stops on `SIGINT` or `SIGTERM`, waiting up to five seconds for its serving
loop to end.

## Endpoints

Every endpoint except `/team/add`, `/ping` and `/metrics` requires an
`Authorization` header, for example `Authorization: Bearer token`. Its
value is not checked, only its presence. Requests without one are answered
with `401` and `{"error": "Authorization header is required"}`.

| Method | Path                           | Body / query                                             | Success |
|--------|--------------------------------|----------------------------------------------------------|---------|
| POST   | `/team/add`                    | `{"team_name", "members": [{"user_id", "username", "is_active"}]}` | 201 |
| GET    | `/team/get`                    | `?team_name=...`                                         | 200 |
| POST   | `/users/setIsActive`           | `{"user_id", "is_active"}`                               | 200 |
| GET    | `/users/getReview`             | `?user_id=...`                                           | 200 |
| POST   | `/users/deactivateTeamMembers` | `{"team_name", "user_ids": [...]}`                       | 200 |
| POST   | `/pullRequest/create`          | `{"pull_request_id", "pull_request_name", "author_id"}`  | 201 |
| POST   | `/pullRequest/merge`           | `{"pull_request_id"}`                                    | 200 |
| POST   | `/pullRequest/reassign`        | `{"pull_request_id", "old_user_id"}`                     | 200 |
| GET    | `/ping`                        | answers `{"message": "pong"}`                            | 200 |
| GET    | `/metrics`                     | histogram of pull request lifetimes in hours, Prometheus text format | 200 |

Cross-origin requests are allowed from any origin.

Errors raised by the services have one shape:

    {"error": {"code": "NOT_FOUND", "message": "team not found"}}

The codes are `TEAM_EXISTS`, `PR_EXISTS`, `PR_MERGED`, `NOT_ASSIGNED`,
`NO_CANDIDATE`, `NOT_FOUND`, `INVALID_REQUEST` and `INTERNAL_ERROR`.

A few rules worth knowing:

* Adding a team whose name is taken answers `400` with `TEAM_EXISTS`;
  creating a pull request whose id is taken answers `409` with `PR_EXISTS`.
* A merged pull request cannot have its reviewers reassigned (`PR_MERGED`).
* Only a reviewer assigned to the pull request can be replaced
  (`NOT_ASSIGNED`). If no active teammate is free to take over, the answer
  is `NO_CANDIDATE` and the pull request is flagged as needing more
  reviewers. The reply names the new reviewer under `replaced_by`.
* Bulk deactivation refuses an empty list, a list as long as the whole
  team, and any user who is not in the team (`INVALID_REQUEST`). It is also
  refused with `NO_CANDIDATE` if some open pull request would be left with
  no reviewer at all. The reply lists `deactivated_user_ids` and the
  `reassignments` made (`pr_id`, `old_reviewer_id`, and `new_reviewer_id`
  when a replacement was found).

## Using it from Python

The pieces can be assembled by hand, for tests or to serve the application
with another WSGI server:

```python
from prreview.database import connect
from prreview.app import build_app

conn = connect("sqlite:///reviews.db")   # or ":memory:"
app = build_app(conn)                    # a Flask application, /metrics included
```

Other entry points:

* `prreview.web.create_app(team_service, user_service, pr_service)` builds
  the application (without `/metrics`) from `TeamService`, `UserService`
  and `PullRequestService` objects; `prreview.web.require_auth` is the
  decorator that enforces the `Authorization` header.
* The services take repository objects: `TeamStorage`, `UserStorage`,
  `PullRequestStorage` and `PrReviewersStorage` work on a connection from
  `connect`, and `prreview.database` describes what each must provide.
  Service methods return the JSON body of a reply and raise
  `prreview.domain.ApiError` (with `status`, `code`, `message`) otherwise.
* `prreview.app.APIServer(app, host, port)` runs an application with
  `start()` and stops it with `shutdown(timeout)`;
  `prreview.app.configure_logging(log_dir)` sets up the JSON logs.
* `prreview.utils.rand_select_reviewers(members, author_id, max_count)` is
  the reviewer picker the service uses.
* `prreview.metrics.Histogram` is the small histogram behind `/metrics`.

## What it does not do

* Storage is SQLite only; other database URLs are rejected. There are no
  migration tools: the schema is created if missing and never changed.
* Authorization is only a check that the header is present; there are no
  accounts or tokens.
* `/metrics` exposes the one lifetime histogram and nothing else.
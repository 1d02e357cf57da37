import sqlite3
from datetime import datetime, timezone

import pytest

from prreview.database import connect
from prreview.domain import AlreadyExistsError, NotFoundError, PullRequest, PullRequestStatus
from prreview.pull_request_storage import PullRequestStorage

TEST_STR_ID = "test-str-id"


@pytest.fixture
def conn():
    connection = connect(":memory:")
    connection.execute("INSERT INTO teams (id, name) VALUES ('t1', 'Backend')")
    for user_id in ("author", "rev-1", "rev-2"):
        connection.execute(
            "INSERT INTO users (id, name, team_id, is_active) VALUES (?, ?, 't1', 1)",
            (user_id, user_id),
        )
    yield connection
    connection.close()


@pytest.fixture
def storage(conn):
    return PullRequestStorage(conn)


def _pr(pr_id=TEST_STR_ID):
    return PullRequest(pr_id, "Add feature", "author", PullRequestStatus.OPEN)


def _need_more(conn, pr_id):
    (value,) = conn.execute(
        "SELECT need_more_reviewers FROM pull_requests WHERE id = ?", (pr_id,)
    ).fetchone()
    return bool(value)


def test_get_merged_pr(conn, storage):
    conn.execute(
        "INSERT INTO pull_requests (id, name, author_id, status, created_at, merged_at) "
        "VALUES ('test-id', 'Add feature', 'author', 'MERGED', "
        "'2024-01-01T10:00:00.000+00:00', '2024-01-01T12:00:00.000+00:00')"
    )
    pr = storage.get_pull_request_by_id("test-id")
    assert pr.pull_request_id == "test-id"
    assert pr.status is PullRequestStatus.MERGED
    assert pr.created_at == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert pr.merged_at == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


def test_get_pr_not_found(storage):
    with pytest.raises(NotFoundError):
        storage.get_pull_request_by_id("test-id")


def test_merge_pull_request(storage):
    storage.create_pull_request_with_reviewers(_pr("test-id"), [], False)
    storage.merge_pull_request("test-id")
    pr = storage.get_pull_request_by_id("test-id")
    assert pr.status is PullRequestStatus.MERGED
    assert pr.merged_at is not None and pr.merged_at >= pr.created_at


def test_merge_is_idempotent(storage):
    storage.create_pull_request_with_reviewers(_pr("test-id"), [], False)
    storage.merge_pull_request("test-id")
    first = storage.get_pull_request_by_id("test-id").merged_at
    storage.merge_pull_request("test-id")
    assert storage.get_pull_request_by_id("test-id").merged_at == first


def test_set_need_more_reviewers(conn, storage):
    storage.create_pull_request_with_reviewers(_pr("test-id"), ["rev-1", "rev-2"], False)
    assert _need_more(conn, "test-id") is False
    storage.set_need_more_reviewers("test-id", True)
    assert _need_more(conn, "test-id") is True


def test_create_with_reviewers(conn, storage):
    storage.create_pull_request_with_reviewers(_pr(), ["rev-1", "rev-2"], False)
    rows = conn.execute(
        "SELECT reviewer_id FROM pr_reviewers WHERE pull_request_id = ? ORDER BY rowid",
        (TEST_STR_ID,),
    ).fetchall()
    assert [r for (r,) in rows] == ["rev-1", "rev-2"]
    assert _need_more(conn, TEST_STR_ID) is False
    pr = storage.get_pull_request_by_id(TEST_STR_ID)
    assert (pr.pull_request_name, pr.status) == ("Add feature", PullRequestStatus.OPEN)


def test_create_with_need_more_flag(conn, storage):
    storage.create_pull_request_with_reviewers(_pr(), ["rev-1"], True)
    assert _need_more(conn, TEST_STR_ID) is True


def test_create_duplicate_pr(storage):
    storage.create_pull_request_with_reviewers(_pr(), [], False)
    with pytest.raises(AlreadyExistsError):
        storage.create_pull_request_with_reviewers(_pr(), [], False)


def test_create_reviewer_error_rolls_back(storage):
    with pytest.raises(sqlite3.IntegrityError):
        storage.create_pull_request_with_reviewers(_pr(), ["ghost"], False)
    with pytest.raises(NotFoundError):
        storage.get_pull_request_by_id(TEST_STR_ID)
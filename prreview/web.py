"""HTTP routes, authorization check and CORS handling of the review API."""

from __future__ import annotations

import functools
from datetime import timedelta
from http import HTTPStatus
from typing import Any, Callable

from flask import Flask, Response, current_app, jsonify, request

from prreview.domain import ApiError
from prreview.pull_request_service import PullRequestService
from prreview.team_service import TeamService
from prreview.user_service import UserService

_CORS_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
_CORS_MAX_AGE = timedelta(hours=12)


def require_auth(view: Callable[..., Any]) -> Callable[..., Any]:
    """Reject the request with 401 unless it carries an Authorization header."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if not request.headers.get("Authorization"):
            body = {"error": "Authorization header is required"}
            return jsonify(body), HTTPStatus.UNAUTHORIZED
        return view(*args, **kwargs)

    return wrapper


def _json_body() -> Any:
    return request.get_json(force=True, silent=True)


def _api_error(exc: ApiError) -> tuple[Response, int]:
    return jsonify(exc.to_dict()), int(exc.status)


def _cors_preflight() -> Response | None:
    if request.method == "OPTIONS" and request.headers.get("Origin"):
        response = current_app.response_class(status=HTTPStatus.NO_CONTENT)
        response.headers["Access-Control-Allow-Methods"] = ", ".join(_CORS_METHODS)
        response.headers["Access-Control-Allow-Headers"] = "*"
        response.headers["Access-Control-Max-Age"] = str(int(_CORS_MAX_AGE.total_seconds()))
        return response
    return None


def _cors_headers(response: Response) -> Response:
    if request.headers.get("Origin"):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Credentials"] = "true"
        if request.method != "OPTIONS":
            response.headers["Access-Control-Expose-Headers"] = "*"
    return response


def create_app(
    team_service: TeamService,
    user_service: UserService,
    pr_service: PullRequestService,
) -> Flask:
    """Build the web application with every API route registered."""
    app = Flask(__name__)
    app.before_request(_cors_preflight)
    app.after_request(_cors_headers)
    app.register_error_handler(ApiError, _api_error)

    @app.get("/ping")
    def ping() -> Response:
        return jsonify(message="pong")

    @app.post("/team/add")
    def team_add() -> tuple[Response, int]:
        return jsonify(team_service.create_team(_json_body())), HTTPStatus.CREATED

    @app.get("/team/get")
    @require_auth
    def team_get() -> tuple[Response, int]:
        return jsonify(team_service.get_team(request.args.get("team_name"))), HTTPStatus.OK

    @app.post("/users/setIsActive")
    @require_auth
    def users_set_is_active() -> tuple[Response, int]:
        return jsonify(user_service.set_is_active(_json_body())), HTTPStatus.OK

    @app.get("/users/getReview")
    @require_auth
    def users_get_review() -> tuple[Response, int]:
        body = user_service.get_user_reviews(request.args.get("user_id"))
        return jsonify(body), HTTPStatus.OK

    @app.post("/users/deactivateTeamMembers")
    @require_auth
    def users_deactivate_team_members() -> tuple[Response, int]:
        return jsonify(user_service.deactivate_team_members(_json_body())), HTTPStatus.OK

    @app.post("/pullRequest/create")
    @require_auth
    def pull_request_create() -> tuple[Response, int]:
        return jsonify(pr_service.create_pull_request(_json_body())), HTTPStatus.CREATED

    @app.post("/pullRequest/merge")
    @require_auth
    def pull_request_merge() -> tuple[Response, int]:
        return jsonify(pr_service.merge_pull_request(_json_body())), HTTPStatus.OK

    @app.post("/pullRequest/reassign")
    @require_auth
    def pull_request_reassign() -> tuple[Response, int]:
        return jsonify(pr_service.reassign_reviewer(_json_body())), HTTPStatus.OK

    return app
"""Domain types, error codes and request payloads of the review service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from http import HTTPStatus
from typing import Any, Mapping

MAX_REVIEWERS_COUNT = 2

ERR_CREATE_PR_MSG = "error with creating pull request"
ERR_MERGE_PR_MSG = "error with merging pull request"
ERR_REASSIGN_REVIEWER_MSG = "error with reassigning reviewer"

ERR_CREATE_TEAM_MSG = "error with creating team"
ERR_GET_TEAM_MSG = "error with getting team"

ERR_SET_ACTIVE_MSG = "error with setting active state"
ERR_GET_USER_REVIEWS_MSG = "error with getting user reviews"
ERR_DEACTIVATING_USERS_MSG = "error with deactivating users"

TEAM_NOT_EXISTS_MSG = "team does not exist"
NO_USERS_IN_TEAM_MSG = "no users in team"

INVALID_BODY_MSG = "invalid request body"


class PullRequestStatus(str, Enum):
    """Lifecycle state of a pull request."""

    OPEN = "OPEN"
    MERGED = "MERGED"


class ErrorCode(str, Enum):
    """Machine-readable error codes returned by the API."""

    NO_CANDIDATE = "NO_CANDIDATE"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    NOT_FOUND = "NOT_FOUND"
    PR_EXISTS = "PR_EXISTS"
    PR_MERGED = "PR_MERGED"
    TEAM_EXISTS = "TEAM_EXISTS"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(code: ErrorCode | str, message: str) -> dict[str, Any]:
    """Build the JSON body of an error reply."""
    value = code.value if isinstance(code, Enum) else str(code)
    return {"error": {"code": value, "message": message}}


class ApiError(Exception):
    """An error that maps directly to an HTTP reply."""

    def __init__(self, status: int, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.status = HTTPStatus(status)
        self.code = ErrorCode(code)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return error_response(self.code, self.message)


class NotFoundError(Exception):
    """A requested row does not exist."""


class AlreadyExistsError(Exception):
    """A row with the same unique key already exists."""


class TeamNotFoundError(NotFoundError):
    """The named team does not exist."""

    def __init__(self, message: str = TEAM_NOT_EXISTS_MSG) -> None:
        super().__init__(message)


def _invalid(message: str = INVALID_BODY_MSG) -> ApiError:
    return ApiError(HTTPStatus.BAD_REQUEST, ErrorCode.INVALID_REQUEST, message)


def _mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise _invalid()
    return data


def _string(data: Mapping[str, Any], key: str, *, required: bool = False) -> str:
    value = data.get(key)
    if value is None:
        value = ""
    elif not isinstance(value, str):
        raise _invalid()
    if required and not value:
        raise _invalid()
    return value


def _boolean(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise _invalid()
    return value


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise _invalid()
    return list(value)


@dataclass(frozen=True)
class TeamMember:
    user_id: str
    username: str
    is_active: bool

    @classmethod
    def from_dict(cls, data: Any) -> TeamMember:
        data = _mapping(data)
        return cls(
            user_id=_string(data, "user_id"),
            username=_string(data, "username"),
            is_active=_boolean(data, "is_active"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "username": self.username, "is_active": self.is_active}


@dataclass
class Team:
    team_name: str
    members: list[TeamMember] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Team:
        data = _mapping(data)
        raw_members = data.get("members")
        if raw_members is None:
            raw_members = []
        elif not isinstance(raw_members, list):
            raise _invalid()
        return cls(
            team_name=_string(data, "team_name"),
            members=[TeamMember.from_dict(item) for item in raw_members],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"team_name": self.team_name, "members": [m.to_dict() for m in self.members]}


@dataclass
class User:
    user_id: str
    username: str
    team_name: str
    is_active: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "team_name": self.team_name,
            "is_active": self.is_active,
        }


@dataclass
class PullRequest:
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PullRequestStatus = PullRequestStatus.OPEN
    assigned_reviewers: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    merged_at: datetime | None = None
    need_more_reviewers: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "pull_request_id": self.pull_request_id,
            "pull_request_name": self.pull_request_name,
            "author_id": self.author_id,
            "status": PullRequestStatus(self.status).value,
            "assigned_reviewers": list(self.assigned_reviewers),
        }
        if self.created_at is not None:
            result["createdAt"] = self.created_at.isoformat()
        if self.merged_at is not None:
            result["mergedAt"] = self.merged_at.isoformat()
        if self.need_more_reviewers is not None:
            result["need_more_reviewers"] = self.need_more_reviewers
        return result


@dataclass
class PullRequestShort:
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PullRequestStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "pull_request_id": self.pull_request_id,
            "pull_request_name": self.pull_request_name,
            "author_id": self.author_id,
            "status": PullRequestStatus(self.status).value,
        }


@dataclass
class ReviewerReassignment:
    """Replace a reviewer on a PR; an empty new reviewer means removal only."""

    pr_id: str
    old_reviewer_id: str
    new_reviewer_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = {"pr_id": self.pr_id, "old_reviewer_id": self.old_reviewer_id}
        if self.new_reviewer_id:
            result["new_reviewer_id"] = self.new_reviewer_id
        return result


@dataclass
class DeactivationResult:
    deactivated_user_ids: list[str] = field(default_factory=list)
    reassignments: list[ReviewerReassignment] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "deactivated_user_ids": list(self.deactivated_user_ids),
            "reassignments": [r.to_dict() for r in self.reassignments],
        }


@dataclass(frozen=True)
class CreatePullRequestRequest:
    pull_request_id: str
    pull_request_name: str
    author_id: str

    @classmethod
    def from_dict(cls, data: Any) -> CreatePullRequestRequest:
        data = _mapping(data)
        return cls(
            pull_request_id=_string(data, "pull_request_id", required=True),
            pull_request_name=_string(data, "pull_request_name", required=True),
            author_id=_string(data, "author_id", required=True),
        )


@dataclass(frozen=True)
class MergePullRequestRequest:
    pull_request_id: str

    @classmethod
    def from_dict(cls, data: Any) -> MergePullRequestRequest:
        data = _mapping(data)
        return cls(pull_request_id=_string(data, "pull_request_id", required=True))


@dataclass(frozen=True)
class ReassignReviewerRequest:
    pull_request_id: str
    old_user_id: str

    @classmethod
    def from_dict(cls, data: Any) -> ReassignReviewerRequest:
        data = _mapping(data)
        return cls(
            pull_request_id=_string(data, "pull_request_id", required=True),
            old_user_id=_string(data, "old_user_id", required=True),
        )


@dataclass(frozen=True)
class SetIsActiveRequest:
    user_id: str
    is_active: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> SetIsActiveRequest:
        data = _mapping(data)
        return cls(
            user_id=_string(data, "user_id", required=True),
            is_active=_boolean(data, "is_active"),
        )


@dataclass(frozen=True)
class DeactivateTeamMembersRequest:
    """Members to deactivate; an empty user list means the whole team."""

    team_name: str
    user_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> DeactivateTeamMembersRequest:
        data = _mapping(data)
        return cls(
            team_name=_string(data, "team_name", required=True),
            user_ids=_string_list(data, "user_ids"),
        )
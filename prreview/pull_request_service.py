"""Creating, merging and re-reviewing pull requests."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

from prreview.database import (
    PrReviewersRepository,
    PullRequestRepository,
    TeamRepository,
    UserRepository,
)
from prreview.domain import (
    ERR_CREATE_PR_MSG,
    ERR_MERGE_PR_MSG,
    ERR_REASSIGN_REVIEWER_MSG,
    MAX_REVIEWERS_COUNT,
    AlreadyExistsError,
    ApiError,
    CreatePullRequestRequest,
    ErrorCode,
    MergePullRequestRequest,
    NotFoundError,
    PullRequest,
    PullRequestStatus,
    ReassignReviewerRequest,
    TeamNotFoundError,
)
from prreview.metrics import PR_LIFECYCLE_DURATION_HOURS
from prreview.utils import contains, rand_select_reviewers

logger = logging.getLogger(__name__)


def _internal(message: str) -> ApiError:
    return ApiError(HTTPStatus.INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR, message)


def _not_found(message: str) -> ApiError:
    return ApiError(HTTPStatus.NOT_FOUND, ErrorCode.NOT_FOUND, message)


def _hours_since(moment: datetime) -> float:
    elapsed = datetime.now(moment.tzinfo) - moment
    return elapsed.total_seconds() / 3600


class PullRequestService:
    """Business rules for pull requests and their reviewers.

    Each operation returns the JSON body of a successful reply and raises
    ApiError for every failure.
    """

    def __init__(
        self,
        pr_repo: PullRequestRepository,
        pr_reviewers_repo: PrReviewersRepository,
        user_repo: UserRepository,
        team_repo: TeamRepository,
    ) -> None:
        self._pr_repo = pr_repo
        self._pr_reviewers_repo = pr_reviewers_repo
        self._user_repo = user_repo
        self._team_repo = team_repo

    def create_pull_request(self, payload: Any) -> dict[str, Any]:
        """Create an open PR and assign up to two random reviewers from the author's team."""
        req = CreatePullRequestRequest.from_dict(payload)

        try:
            author = self._user_repo.get_user_by_id(req.author_id)
        except NotFoundError as exc:
            raise _not_found("author not found") from exc
        except Exception as exc:
            logger.exception("error getting author")
            raise _internal(ERR_CREATE_PR_MSG) from exc

        try:
            team = self._team_repo.get_team_by_name(author.team_name)
        except TeamNotFoundError as exc:
            raise _not_found("team not found") from exc
        except Exception as exc:
            logger.exception("error getting team")
            raise _internal(ERR_CREATE_PR_MSG) from exc

        pr = PullRequest(
            pull_request_id=req.pull_request_id,
            pull_request_name=req.pull_request_name,
            author_id=req.author_id,
            status=PullRequestStatus.OPEN,
            assigned_reviewers=[],
            created_at=datetime.now(timezone.utc),
        )

        reviewers = rand_select_reviewers(team.members, req.author_id, MAX_REVIEWERS_COUNT)
        need_more = len(reviewers) < MAX_REVIEWERS_COUNT

        try:
            self._pr_repo.create_pull_request_with_reviewers(pr, reviewers, need_more)
        except AlreadyExistsError as exc:
            raise ApiError(HTTPStatus.CONFLICT, ErrorCode.PR_EXISTS, "PR id already exists") from exc
        except Exception as exc:
            logger.exception("error creating PR with reviewers")
            raise _internal(ERR_CREATE_PR_MSG) from exc

        pr.assigned_reviewers = reviewers
        pr.need_more_reviewers = need_more

        logger.info(
            "PR created successfully: pr_id=%s reviewers_count=%d",
            req.pull_request_id,
            len(reviewers),
        )
        return {"pr": pr.to_dict()}

    def merge_pull_request(self, payload: Any) -> dict[str, Any]:
        """Merge a PR; merging an already merged PR returns it unchanged."""
        req = MergePullRequestRequest.from_dict(payload)

        try:
            pr = self._pr_repo.get_pull_request_by_id(req.pull_request_id)
        except NotFoundError as exc:
            raise _not_found("PR not found") from exc
        except Exception as exc:
            logger.exception("error getting PR")
            raise _internal(ERR_MERGE_PR_MSG) from exc

        if pr.status == PullRequestStatus.OPEN:
            try:
                self._pr_repo.merge_pull_request(req.pull_request_id)
            except Exception as exc:
                logger.exception("error merging PR")
                raise _internal(ERR_MERGE_PR_MSG) from exc

            pr.merged_at = datetime.now(timezone.utc)
            pr.status = PullRequestStatus.MERGED

            if pr.created_at is not None:
                lifecycle_hours = _hours_since(pr.created_at)
                PR_LIFECYCLE_DURATION_HOURS.observe(lifecycle_hours)
                logger.info(
                    "PR lifecycle metric recorded: pr_id=%s lifecycle_hours=%s",
                    req.pull_request_id,
                    lifecycle_hours,
                )

        try:
            reviewers = self._pr_reviewers_repo.get_assigned_reviewers(req.pull_request_id)
        except Exception as exc:
            logger.exception("error getting reviewers")
            raise _internal(ERR_MERGE_PR_MSG) from exc
        pr.assigned_reviewers = list(reviewers or [])

        logger.info("PR merged successfully: pr_id=%s", req.pull_request_id)
        return {"pr": pr.to_dict()}

    def reassign_reviewer(self, payload: Any) -> dict[str, Any]:
        """Replace an assigned reviewer with a random active member of that reviewer's team."""
        req = ReassignReviewerRequest.from_dict(payload)

        try:
            pr = self._pr_repo.get_pull_request_by_id(req.pull_request_id)
        except NotFoundError as exc:
            raise _not_found("PR not found") from exc
        except Exception as exc:
            logger.exception("error getting PR")
            raise _internal(ERR_REASSIGN_REVIEWER_MSG) from exc

        if pr.status == PullRequestStatus.MERGED:
            raise ApiError(HTTPStatus.CONFLICT, ErrorCode.PR_MERGED, "cannot reassign on merged PR")

        try:
            assigned = list(self._pr_reviewers_repo.get_assigned_reviewers(req.pull_request_id) or [])
        except Exception as exc:
            logger.exception("error getting assigned reviewers")
            raise _internal(ERR_REASSIGN_REVIEWER_MSG) from exc

        if not contains(assigned, req.old_user_id):
            raise ApiError(
                HTTPStatus.CONFLICT,
                ErrorCode.NOT_ASSIGNED,
                "reviewer is not assigned to this PR",
            )

        try:
            old_user = self._user_repo.get_user_by_id(req.old_user_id)
        except NotFoundError as exc:
            raise _not_found("user not found") from exc
        except Exception as exc:
            logger.exception("error getting user")
            raise _internal(ERR_REASSIGN_REVIEWER_MSG) from exc

        try:
            team = self._team_repo.get_team_by_name(old_user.team_name)
        except Exception as exc:
            logger.exception("error getting team")
            raise _internal(ERR_REASSIGN_REVIEWER_MSG) from exc

        candidates = [
            member.user_id
            for member in team.members
            if member.is_active
            and member.user_id != pr.author_id
            and not contains(assigned, member.user_id)
        ]

        if not candidates:
            try:
                self._pr_repo.set_need_more_reviewers(req.pull_request_id, True)
            except Exception as exc:
                logger.exception("error setting need_more_reviewers flag")
                raise _internal(ERR_REASSIGN_REVIEWER_MSG) from exc
            raise ApiError(
                HTTPStatus.CONFLICT,
                ErrorCode.NO_CANDIDATE,
                "no active replacement candidate in team",
            )

        new_reviewer_id = random.choice(candidates)

        try:
            self._pr_reviewers_repo.reassign_reviewer_atomic(
                req.pull_request_id, req.old_user_id, new_reviewer_id
            )
        except Exception as exc:
            logger.exception("error reassigning reviewer")
            raise _internal(ERR_REASSIGN_REVIEWER_MSG) from exc

        try:
            updated = self._pr_reviewers_repo.get_assigned_reviewers(req.pull_request_id)
        except Exception as exc:
            logger.exception("error getting updated reviewers")
            raise _internal(ERR_REASSIGN_REVIEWER_MSG) from exc

        pr.assigned_reviewers = list(updated or [])

        logger.info(
            "reviewer reassigned successfully: pr_id=%s old_user_id=%s new_user_id=%s",
            req.pull_request_id,
            req.old_user_id,
            new_reviewer_id,
        )
        return {"pr": pr.to_dict(), "replaced_by": new_reviewer_id}
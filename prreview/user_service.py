"""Changing user activity, listing reviews and deactivating team members."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Iterable

from prreview.database import PrReviewersRepository, TeamRepository, UserRepository
from prreview.domain import (
    ERR_DEACTIVATING_USERS_MSG,
    ERR_GET_USER_REVIEWS_MSG,
    ERR_SET_ACTIVE_MSG,
    ApiError,
    DeactivateTeamMembersRequest,
    DeactivationResult,
    ErrorCode,
    NotFoundError,
    PullRequestShort,
    PullRequestStatus,
    ReviewerReassignment,
    SetIsActiveRequest,
    Team,
)
from prreview.utils import rand_select_reviewers

logger = logging.getLogger(__name__)


def _internal(message: str) -> ApiError:
    return ApiError(HTTPStatus.INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR, message)


def _user_not_found() -> ApiError:
    return ApiError(HTTPStatus.NOT_FOUND, ErrorCode.NOT_FOUND, "user not found")


def _invalid(message: str) -> ApiError:
    return ApiError(HTTPStatus.BAD_REQUEST, ErrorCode.INVALID_REQUEST, message)


class UserService:
    """Business rules for users.

    Each operation returns the JSON body of a successful reply and raises
    ApiError for every failure.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        pr_reviewers_repo: PrReviewersRepository,
        team_repo: TeamRepository | None,
    ) -> None:
        self._user_repo = user_repo
        self._pr_reviewers_repo = pr_reviewers_repo
        self._team_repo = team_repo

    def set_is_active(self, payload: Any) -> dict[str, Any]:
        """Set a user's active flag and return the updated user."""
        req = SetIsActiveRequest.from_dict(payload)

        try:
            self._user_repo.set_user_is_active(req.user_id, req.is_active)
        except NotFoundError as exc:
            raise _user_not_found() from exc
        except Exception as exc:
            logger.exception("error setting user active status")
            raise _internal(ERR_SET_ACTIVE_MSG) from exc

        try:
            user = self._user_repo.get_user_by_id(req.user_id)
        except NotFoundError as exc:
            raise _user_not_found() from exc
        except Exception as exc:
            logger.exception("error getting user")
            raise _internal(ERR_SET_ACTIVE_MSG) from exc

        logger.info(
            "user active status updated: user_id=%s is_active=%s", req.user_id, req.is_active
        )
        return {"user": user.to_dict()}

    def get_user_reviews(self, user_id: str | None) -> dict[str, Any]:
        """Return the pull requests the user is assigned to review."""
        if not user_id:
            raise _invalid("user_id query parameter is required")

        try:
            self._user_repo.get_user_by_id(user_id)
        except NotFoundError as exc:
            raise _user_not_found() from exc
        except Exception:
            # Only a missing user stops the lookup; other failures surface below.
            logger.warning("could not check user %s before listing reviews", user_id)

        try:
            prs = self._pr_reviewers_repo.get_prs_by_reviewer(user_id)
        except Exception as exc:
            logger.exception("error getting user reviews")
            raise _internal(ERR_GET_USER_REVIEWS_MSG) from exc

        logger.info("user reviews retrieved successfully: user_id=%s", user_id)
        return {"user_id": user_id, "pull_requests": [pr.to_dict() for pr in prs or ()]}

    def deactivate_team_members(self, payload: Any) -> dict[str, Any]:
        """Deactivate members of a team and reassign their open reviews."""
        req = DeactivateTeamMembersRequest.from_dict(payload)
        if self._team_repo is None:
            raise _internal(ERR_DEACTIVATING_USERS_MSG)

        try:
            team = self._team_repo.get_team_by_name(req.team_name)
        except NotFoundError as exc:
            raise ApiError(HTTPStatus.NOT_FOUND, ErrorCode.NOT_FOUND, "team not found") from exc
        except Exception as exc:
            logger.exception("error getting team")
            raise _internal(ERR_DEACTIVATING_USERS_MSG) from exc

        # Deactivating everyone would leave nobody to review.
        if not req.user_ids or len(req.user_ids) == len(team.members):
            raise _invalid("cannot deactivate all team members")

        member_ids = {member.user_id for member in team.members}
        for user_id in req.user_ids:
            if user_id not in member_ids:
                raise _invalid(f"user {user_id} is not a member of team {req.team_name}")

        open_prs = self._open_prs_for_users(req.user_ids)
        reassignments = self._build_reassignments_plan(open_prs.values(), req.user_ids, team)

        try:
            deactivated = self._team_repo.deactivate_team_members(
                req.team_name, req.user_ids, reassignments
            )
        except Exception as exc:
            logger.exception("error deactivating users atomically")
            raise _internal(ERR_DEACTIVATING_USERS_MSG) from exc

        logger.info(
            "team members deactivated: team_name=%s deactivated_count=%d reassignments_count=%d",
            req.team_name,
            len(deactivated or ()),
            len(reassignments),
        )
        return DeactivationResult(
            deactivated_user_ids=list(deactivated or ()),
            reassignments=reassignments,
        ).to_dict()

    def _open_prs_for_users(self, user_ids: Iterable[str]) -> dict[str, PullRequestShort]:
        """Collect open PRs reviewed by any of the users, keyed by PR id."""
        prs_by_id: dict[str, PullRequestShort] = {}
        for user_id in user_ids:
            try:
                prs = self._pr_reviewers_repo.get_prs_by_reviewer(user_id)
            except Exception:
                logger.exception("error getting PRs for reviewer: user_id=%s", user_id)
                continue
            for pr in prs or ():
                if pr.status == PullRequestStatus.OPEN:
                    prs_by_id[pr.pull_request_id] = pr
        return prs_by_id

    def _build_reassignments_plan(
        self,
        prs: Iterable[PullRequestShort],
        users_to_deactivate: Iterable[str],
        team: Team,
    ) -> list[ReviewerReassignment]:
        """Plan replacements for deactivated reviewers, refusing to leave a PR unreviewed."""
        leaving = set(users_to_deactivate)
        available = [member for member in team.members if member.user_id not in leaving]
        reassignments: list[ReviewerReassignment] = []

        for pr in prs:
            try:
                current = list(
                    self._pr_reviewers_repo.get_assigned_reviewers(pr.pull_request_id) or ()
                )
            except Exception:
                logger.exception("error getting reviewers for PR: pr_id=%s", pr.pull_request_id)
                continue

            to_replace = [reviewer for reviewer in current if reviewer in leaving]
            if not to_replace:
                continue

            already_assigned = set(current)
            candidates = [
                candidate
                for candidate in rand_select_reviewers(available, pr.author_id, len(to_replace))
                if candidate not in already_assigned
            ]
            pending = iter(candidates)

            added = 0
            for reviewer_id in to_replace:
                new_reviewer_id = next(pending, "")
                if new_reviewer_id:
                    already_assigned.add(new_reviewer_id)
                    added += 1
                reassignments.append(
                    ReviewerReassignment(
                        pr_id=pr.pull_request_id,
                        old_reviewer_id=reviewer_id,
                        new_reviewer_id=new_reviewer_id,
                    )
                )

            if len(current) - len(to_replace) + added == 0:
                raise ApiError(
                    HTTPStatus.BAD_REQUEST,
                    ErrorCode.NO_CANDIDATE,
                    f"cannot deactivate reviewers: PR {pr.pull_request_id} "
                    "would be left without reviewers",
                )

        return reassignments
"""Creating teams and looking them up."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from prreview.database import TeamRepository, UserRepository
from prreview.domain import (
    ERR_CREATE_TEAM_MSG,
    ERR_GET_TEAM_MSG,
    AlreadyExistsError,
    ApiError,
    ErrorCode,
    Team,
    TeamNotFoundError,
)

logger = logging.getLogger(__name__)


class TeamService:
    """Business rules for teams.

    Each operation returns the JSON body of a successful reply and raises
    ApiError for every failure.
    """

    def __init__(self, team_repo: TeamRepository, user_repo: UserRepository) -> None:
        self._team_repo = team_repo
        self._user_repo = user_repo

    def create_team(self, payload: Any) -> dict[str, Any]:
        """Create a team together with its members."""
        team = Team.from_dict(payload)

        try:
            self._team_repo.create_team_with_members(team.team_name, team.members)
        except AlreadyExistsError as exc:
            raise ApiError(
                HTTPStatus.BAD_REQUEST, ErrorCode.TEAM_EXISTS, "team_name already exists"
            ) from exc
        except Exception as exc:
            logger.exception("error creating team with members")
            raise ApiError(
                HTTPStatus.INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR, ERR_CREATE_TEAM_MSG
            ) from exc

        logger.info("team created successfully: team_name=%s", team.team_name)
        return {"team": team.to_dict()}

    def get_team(self, team_name: str | None) -> dict[str, Any]:
        """Return the named team with its members."""
        if not team_name:
            raise ApiError(
                HTTPStatus.BAD_REQUEST,
                ErrorCode.INVALID_REQUEST,
                "team_name query parameter is required",
            )

        try:
            team = self._team_repo.get_team_by_name(team_name)
        except TeamNotFoundError as exc:
            raise ApiError(HTTPStatus.NOT_FOUND, ErrorCode.NOT_FOUND, "team not found") from exc
        except Exception as exc:
            logger.exception("error getting team")
            raise ApiError(
                HTTPStatus.INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR, ERR_GET_TEAM_MSG
            ) from exc

        logger.info("team retrieved successfully: team_name=%s", team_name)
        return team.to_dict()
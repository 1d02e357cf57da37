from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from prreview.domain import (
    AlreadyExistsError,
    ApiError,
    ErrorCode,
    Team,
    TeamMember,
    TeamNotFoundError,
)
from prreview.team_service import TeamService


@pytest.fixture
def env():
    repos = SimpleNamespace(teams=Mock(), users=Mock())
    repos.service = TeamService(repos.teams, repos.users)
    return repos


def test_create_team_with_members(env):
    env.teams.create_team_with_members.return_value = "team-id"
    payload = {
        "team_name": "Backend Team",
        "members": [
            {"user_id": "user-alice-1", "username": "Alice", "is_active": True},
            {"user_id": "user-bob-1", "username": "Bob", "is_active": True},
        ],
    }
    result = env.service.create_team(payload)

    assert result["team"]["team_name"] == "Backend Team"
    assert [m["user_id"] for m in result["team"]["members"]] == ["user-alice-1", "user-bob-1"]
    name, members = env.teams.create_team_with_members.call_args.args
    assert name == "Backend Team"
    assert members == [
        TeamMember("user-alice-1", "Alice", True),
        TeamMember("user-bob-1", "Bob", True),
    ]


def test_create_team_invalid_body(env):
    with pytest.raises(ApiError) as info:
        env.service.create_team("invalid json")
    assert info.value.status == 400
    assert info.value.code == ErrorCode.INVALID_REQUEST


def test_create_team_generic_error_is_internal(env):
    env.teams.create_team_with_members.side_effect = RuntimeError("duplicate key error")
    with pytest.raises(ApiError) as info:
        env.service.create_team({"team_name": "Existing Team", "members": []})
    assert info.value.status == 500


def test_create_team_already_exists(env):
    env.teams.create_team_with_members.side_effect = AlreadyExistsError("dup")
    with pytest.raises(ApiError) as info:
        env.service.create_team({"team_name": "Existing Team", "members": []})
    assert info.value.status == 400
    assert info.value.code == ErrorCode.TEAM_EXISTS


def test_create_team_storage_error(env):
    env.teams.create_team_with_members.side_effect = RuntimeError("database error")
    payload = {
        "team_name": "Backend Team",
        "members": [{"user_id": "user-alice-2", "username": "Alice", "is_active": True}],
    }
    with pytest.raises(ApiError) as info:
        env.service.create_team(payload)
    assert info.value.status == 500
    assert info.value.code == ErrorCode.INTERNAL_ERROR


def test_get_team_success(env):
    env.teams.get_team_by_name.return_value = Team(
        team_name="Backend Team",
        members=[
            TeamMember("test-str-id", "Alice", True),
            TeamMember("test-str-id", "Bob", True),
        ],
    )
    result = env.service.get_team("Backend Team")
    assert result["team_name"] == "Backend Team"
    assert len(result["members"]) == 2
    env.teams.get_team_by_name.assert_called_once_with("Backend Team")


@pytest.mark.parametrize("team_name", ["", None])
def test_get_team_missing_name(env, team_name):
    with pytest.raises(ApiError) as info:
        env.service.get_team(team_name)
    assert info.value.status == 400
    assert info.value.code == ErrorCode.INVALID_REQUEST


def test_get_team_not_found(env):
    env.teams.get_team_by_name.side_effect = TeamNotFoundError()
    with pytest.raises(ApiError) as info:
        env.service.get_team("NonExistent")
    assert info.value.status == 404
    assert info.value.code == ErrorCode.NOT_FOUND


def test_get_team_internal_error(env):
    env.teams.get_team_by_name.side_effect = RuntimeError("database connection error")
    with pytest.raises(ApiError) as info:
        env.service.get_team("Backend Team")
    assert info.value.status == 500
    assert info.value.code == ErrorCode.INTERNAL_ERROR
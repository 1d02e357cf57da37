import pytest

from prreview.domain import TeamMember
from prreview.utils import contains, rand_select_reviewers

TEST_ITEM = "apple"


@pytest.mark.parametrize(
    "items, item, expected",
    [
        ([TEST_ITEM, "banana", "cherry"], "banana", True),
        ([TEST_ITEM, "banana", "cherry"], "orange", False),
        ([], TEST_ITEM, False),
        (None, TEST_ITEM, False),
        (["", TEST_ITEM, "banana"], "", True),
        ([TEST_ITEM], TEST_ITEM, True),
        ([TEST_ITEM], "banana", False),
        (["Apple", "Banana", "Cherry"], TEST_ITEM, False),
        ([TEST_ITEM, "banana", TEST_ITEM, "cherry", TEST_ITEM], TEST_ITEM, True),
        ([TEST_ITEM + " ", " banana", " cherry "], TEST_ITEM, False),
    ],
)
def test_contains(items, item, expected):
    assert contains(items, item) is expected


def member(user_id, active=True):
    return TeamMember(user_id=user_id, username=user_id, is_active=active)


def test_all_active_author_excluded():
    members = [member("user1"), member("user2"), member("user3"), member("user4")]
    result = rand_select_reviewers(members, "user1", 2)
    assert len(result) == 2
    assert "user1" not in result
    assert all(r in {"user2", "user3", "user4"} for r in result)


def test_filters_out_inactive_members():
    members = [member("user1"), member("user2", False), member("user3"), member("user4", False)]
    result = rand_select_reviewers(members, "user5", 5)
    assert sorted(result) == ["user1", "user3"]


def test_excludes_author_even_if_active():
    members = [member("user1"), member("user2"), member("user3")]
    result = rand_select_reviewers(members, "user2", 5)
    assert sorted(result) == ["user1", "user3"]


def test_returns_all_when_fewer_than_max():
    members = [member("user1"), member("user2")]
    assert sorted(rand_select_reviewers(members, "user3", 5)) == ["user1", "user2"]


def test_returns_all_when_equal_to_max():
    members = [member("user1"), member("user2"), member("user3")]
    assert sorted(rand_select_reviewers(members, "user4", 3)) == ["user1", "user2", "user3"]


@pytest.mark.parametrize("members", [[], None])
def test_empty_or_missing_members(members):
    assert rand_select_reviewers(members, "user1", 2) == []


def test_only_author_in_members():
    assert rand_select_reviewers([member("user1")], "user1", 2) == []


def test_only_inactive_members():
    members = [member("user1", False), member("user2", False), member("user3", False)]
    assert rand_select_reviewers(members, "user4", 2) == []


@pytest.mark.parametrize("max_count", [0, -1])
def test_non_positive_max_count(max_count):
    members = [member("user1"), member("user2"), member("user3")]
    assert rand_select_reviewers(members, "user4", max_count) == []


def test_large_team_selection_is_unique():
    members = [member(f"user{i}") for i in range(1, 11)]
    result = rand_select_reviewers(members, "user1", 3)
    assert len(result) == 3
    assert "user1" not in result
    assert len(set(result)) == 3


def test_mixed_active_and_inactive_with_author():
    members = [
        member("user1"),
        member("user2", False),
        member("user3"),
        member("user4", False),
        member("user5"),
        member("user6"),
    ]
    result = rand_select_reviewers(members, "user3", 2)
    assert len(result) == 2
    assert all(r in {"user1", "user5", "user6"} for r in result)


def test_randomness_produces_varied_results():
    members = [member(f"user{i}") for i in range(1, 6)]
    results = set()
    for _ in range(20):
        result = rand_select_reviewers(members, "user6", 2)
        assert len(result) == 2
        results.add(",".join(result))
    assert len(results) >= 2
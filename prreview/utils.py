"""Small helpers for membership tests and reviewer selection."""

from __future__ import annotations

import random
from typing import Iterable

from prreview.domain import TeamMember


def contains(items: Iterable[str] | None, item: str) -> bool:
    """Return True if item is an exact, case-sensitive member of items."""
    if items is None:
        return False
    return any(candidate == item for candidate in items)


def rand_select_reviewers(
    members: Iterable[TeamMember] | None, author_id: str, max_count: int
) -> list[str]:
    """Pick up to max_count random active members other than the author."""
    if max_count <= 0:
        return []
    candidates = [
        member.user_id
        for member in members or ()
        if member.is_active and member.user_id != author_id
    ]
    if len(candidates) <= max_count:
        return candidates
    return random.sample(candidates, max_count)
"""Database connection, transactions and repository interfaces."""

from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Protocol, Sequence

from prreview.domain import (
    PullRequest,
    PullRequestShort,
    ReviewerReassignment,
    Team,
    TeamMember,
    User,
)

logger = logging.getLogger(__name__)

_NOW = "(strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now'))"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS teams (
    id TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    team_id TEXT REFERENCES teams(id) ON DELETE SET NULL,
    is_active INTEGER NOT NULL DEFAULT 1
);
CREATE TABLE IF NOT EXISTS pull_requests (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    author_id TEXT NOT NULL REFERENCES users(id),
    status TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN', 'MERGED')),
    need_more_reviewers INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT {_NOW},
    merged_at TEXT
);
CREATE TABLE IF NOT EXISTS pr_reviewers (
    pull_request_id TEXT NOT NULL REFERENCES pull_requests(id) ON DELETE CASCADE,
    reviewer_id TEXT NOT NULL REFERENCES users(id),
    assigned_at TEXT NOT NULL DEFAULT {_NOW},
    PRIMARY KEY (pull_request_id, reviewer_id)
);
"""


def _database_path(url: str) -> str:
    if "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    if scheme != "sqlite":
        raise ValueError(f"unsupported database URL scheme: {scheme}")
    if rest in ("", "/", ":memory:", "/:memory:"):
        return ":memory:"
    return rest[1:] if rest.startswith("/") else rest


def connect(url: str | None = None) -> sqlite3.Connection:
    """Open the database named by url (or DB_URL), check it and create tables."""
    if url is None:
        url = os.environ.get("DB_URL", "")
    if not url:
        raise ValueError("database URL is not set")
    path = _database_path(url)
    try:
        conn = sqlite3.connect(
            path,
            check_same_thread=False,
            isolation_level=None,
            uri=path.startswith("file:"),
        )
    except sqlite3.Error as exc:
        logger.error("unable to connect to database: %s", exc)
        raise
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("SELECT 1")
        conn.executescript(_SCHEMA)
    except sqlite3.Error as exc:
        logger.error("unable to ping database: %s", exc)
        conn.close()
        raise
    logger.info("connected to database successfully")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the block in one transaction: commit on success, roll back on error."""
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    try:
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise


class TeamRepository(Protocol):
    def get_team_by_name(self, team_name: str) -> Team: ...

    def create_team_with_members(self, team_name: str, members: Sequence[TeamMember]) -> str: ...

    def deactivate_team_members(
        self,
        team_name: str,
        user_ids: Sequence[str],
        reassignments: Sequence[ReviewerReassignment],
    ) -> list[str]: ...


class UserRepository(Protocol):
    def get_user_by_id(self, user_id: str) -> User: ...

    def set_user_is_active(self, user_id: str, is_active: bool) -> None: ...


class PullRequestRepository(Protocol):
    def get_pull_request_by_id(self, pr_id: str) -> PullRequest: ...

    def merge_pull_request(self, pr_id: str) -> None: ...

    def set_need_more_reviewers(self, pr_id: str, need_more: bool) -> None: ...

    def create_pull_request_with_reviewers(
        self, pr: PullRequest, reviewer_ids: Sequence[str], need_more_reviewers: bool
    ) -> None: ...


class PrReviewersRepository(Protocol):
    def get_assigned_reviewers(self, pr_id: str) -> list[str]: ...

    def get_prs_by_reviewer(self, user_id: str) -> list[PullRequestShort]: ...

    def reassign_reviewer_atomic(
        self, pr_id: str, old_reviewer_id: str, new_reviewer_id: str
    ) -> None: ...
"""Storage of pull requests."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Sequence

from prreview.database import transaction
from prreview.domain import AlreadyExistsError, NotFoundError, PullRequest, PullRequestStatus


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def _parse_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


class PullRequestStorage:
    """Pull request repository backed by a database connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_pull_request_by_id(self, pr_id: str) -> PullRequest:
        """Return the pull request without its reviewers."""
        row = self._conn.execute(
            "SELECT name, author_id, status, created_at, merged_at FROM pull_requests WHERE id = ?",
            (pr_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"pull request {pr_id} not found")
        name, author_id, status, created_at, merged_at = row
        return PullRequest(
            pull_request_id=pr_id,
            pull_request_name=name,
            author_id=author_id,
            status=PullRequestStatus(status),
            created_at=_parse_time(created_at),
            merged_at=_parse_time(merged_at),
        )

    def merge_pull_request(self, pr_id: str) -> None:
        """Mark the pull request merged; an already merged one is left unchanged."""
        merged = PullRequestStatus.MERGED.value
        self._conn.execute(
            "UPDATE pull_requests SET status = ?, merged_at = ? WHERE id = ? AND status != ?",
            (merged, _now(), pr_id, merged),
        )

    def set_need_more_reviewers(self, pr_id: str, need_more: bool) -> None:
        self._conn.execute(
            "UPDATE pull_requests SET need_more_reviewers = ? WHERE id = ?", (need_more, pr_id)
        )

    def create_pull_request_with_reviewers(
        self, pr: PullRequest, reviewer_ids: Sequence[str], need_more_reviewers: bool
    ) -> None:
        """Insert the pull request and its reviewers in one transaction."""
        try:
            with transaction(self._conn) as tx:
                tx.execute(
                    "INSERT INTO pull_requests (id, name, author_id, status) VALUES (?, ?, ?, ?)",
                    (
                        pr.pull_request_id,
                        pr.pull_request_name,
                        pr.author_id,
                        PullRequestStatus(pr.status).value,
                    ),
                )
                assigned_at = _now()
                tx.executemany(
                    "INSERT INTO pr_reviewers (pull_request_id, reviewer_id, assigned_at) "
                    "VALUES (?, ?, ?)",
                    [(pr.pull_request_id, reviewer, assigned_at) for reviewer in reviewer_ids],
                )
                if need_more_reviewers:
                    tx.execute(
                        "UPDATE pull_requests SET need_more_reviewers = ? WHERE id = ?",
                        (True, pr.pull_request_id),
                    )
        except sqlite3.IntegrityError as exc:
            if _is_unique_violation(exc):
                raise AlreadyExistsError(str(exc)) from exc
            raise
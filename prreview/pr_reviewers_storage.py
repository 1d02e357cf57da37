"""Storage of reviewer assignments."""

from __future__ import annotations

import sqlite3

from prreview.database import transaction
from prreview.domain import PullRequestShort, PullRequestStatus


class PrReviewersStorage:
    """Reviewer assignment repository backed by a database connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_assigned_reviewers(self, pr_id: str) -> list[str]:
        """Return reviewer ids in the order they were assigned."""
        rows = self._conn.execute(
            "SELECT reviewer_id FROM pr_reviewers WHERE pull_request_id = ? "
            "ORDER BY assigned_at, rowid",
            (pr_id,),
        )
        return [reviewer_id for (reviewer_id,) in rows]

    def get_prs_by_reviewer(self, user_id: str) -> list[PullRequestShort]:
        """Return the pull requests the user reviews, newest first."""
        rows = self._conn.execute(
            "SELECT pr.id, pr.name, pr.author_id, pr.status "
            "FROM pull_requests pr JOIN pr_reviewers prr ON pr.id = prr.pull_request_id "
            "WHERE prr.reviewer_id = ? "
            "ORDER BY pr.created_at DESC, pr.rowid DESC",
            (user_id,),
        )
        return [
            PullRequestShort(
                pull_request_id=pr_id,
                pull_request_name=name,
                author_id=author_id,
                status=PullRequestStatus(status),
            )
            for pr_id, name, author_id, status in rows
        ]

    def reassign_reviewer_atomic(
        self, pr_id: str, old_reviewer_id: str, new_reviewer_id: str
    ) -> None:
        """Replace one reviewer with another in a single transaction."""
        with transaction(self._conn) as tx:
            tx.execute(
                "DELETE FROM pr_reviewers WHERE pull_request_id = ? AND reviewer_id = ?",
                (pr_id, old_reviewer_id),
            )
            tx.execute(
                "INSERT INTO pr_reviewers (pull_request_id, reviewer_id) VALUES (?, ?)",
                (pr_id, new_reviewer_id),
            )
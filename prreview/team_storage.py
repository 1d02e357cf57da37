"""Storage of teams and their members."""

from __future__ import annotations

import sqlite3
import uuid
from typing import Sequence

from prreview.database import transaction
from prreview.domain import (
    AlreadyExistsError,
    ReviewerReassignment,
    Team,
    TeamMember,
    TeamNotFoundError,
)


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


class TeamStorage:
    """Team repository backed by a database connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_team_by_name(self, team_name: str) -> Team:
        """Return the team with its members ordered by name."""
        row = self._conn.execute("SELECT id FROM teams WHERE name = ?", (team_name,)).fetchone()
        if row is None:
            raise TeamNotFoundError()
        (team_id,) = row
        rows = self._conn.execute(
            "SELECT id, name, is_active FROM users WHERE team_id = ? ORDER BY name",
            (team_id,),
        )
        members = [
            TeamMember(user_id=user_id, username=username, is_active=bool(is_active))
            for user_id, username, is_active in rows
        ]
        return Team(team_name=team_name, members=members)

    def create_team_with_members(self, team_name: str, members: Sequence[TeamMember]) -> str:
        """Create the team and its users in one transaction; return the team id."""
        team_id = str(uuid.uuid4())
        try:
            with transaction(self._conn) as tx:
                tx.execute("INSERT INTO teams (id, name) VALUES (?, ?)", (team_id, team_name))
                tx.executemany(
                    "INSERT INTO users (id, name, team_id, is_active) VALUES (?, ?, ?, ?)",
                    [(m.user_id, m.username, team_id, m.is_active) for m in members],
                )
        except sqlite3.IntegrityError as exc:
            if _is_unique_violation(exc):
                raise AlreadyExistsError(str(exc)) from exc
            raise
        return team_id

    def deactivate_team_members(
        self,
        team_name: str,
        user_ids: Sequence[str],
        reassignments: Sequence[ReviewerReassignment],
    ) -> list[str]:
        """Deactivate members (all when user_ids is empty) and apply reassignments atomically."""
        query = "SELECT u.id FROM users u JOIN teams t ON u.team_id = t.id WHERE t.name = ?"
        params: list[str] = [team_name]
        if user_ids:
            query += f" AND u.id IN ({', '.join('?' for _ in user_ids)})"
            params.extend(user_ids)
        query += " ORDER BY u.rowid"

        with transaction(self._conn) as tx:
            deactivated = [user_id for (user_id,) in tx.execute(query, params).fetchall()]
            tx.executemany(
                "UPDATE users SET is_active = 0 WHERE id = ?",
                [(user_id,) for user_id in deactivated],
            )
            for reassignment in reassignments:
                tx.execute(
                    "DELETE FROM pr_reviewers WHERE pull_request_id = ? AND reviewer_id = ?",
                    (reassignment.pr_id, reassignment.old_reviewer_id),
                )
                if reassignment.new_reviewer_id:
                    tx.execute(
                        "INSERT INTO pr_reviewers (pull_request_id, reviewer_id) VALUES (?, ?)",
                        (reassignment.pr_id, reassignment.new_reviewer_id),
                    )
        return deactivated
"""Storage of users."""

from __future__ import annotations

import sqlite3

from prreview.domain import NotFoundError, User


class UserStorage:
    """User repository backed by a database connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_user_by_id(self, user_id: str) -> User:
        """Return the user with the name of its team."""
        row = self._conn.execute(
            "SELECT u.name, t.name, u.is_active "
            "FROM users u LEFT JOIN teams t ON u.team_id = t.id "
            "WHERE u.id = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"user {user_id} not found")
        username, team_name, is_active = row
        return User(
            user_id=user_id,
            username=username,
            team_name=team_name or "",
            is_active=bool(is_active),
        )

    def set_user_is_active(self, user_id: str, is_active: bool) -> None:
        """Set the active flag of a user."""
        self._conn.execute("UPDATE users SET is_active = ? WHERE id = ?", (is_active, user_id))
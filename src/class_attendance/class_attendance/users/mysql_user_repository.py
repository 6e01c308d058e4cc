from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = """
    user_id, name, email, password_hash, role, auth_provider, google_id,
    profile_picture, is_active, email_verified, created_at, last_login
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row.get("password_hash"),
        role=Role(row.get("role") or Role.STUDENT.value),
        auth_provider=row.get("auth_provider") or "local",
        google_id=row.get("google_id"),
        profile_picture=row.get("profile_picture") or "",
        is_active=bool(row.get("is_active", True)),
        email_verified=bool(row.get("email_verified", False)),
        created_at=row.get("created_at"),
        last_login=row.get("last_login"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email.lower())

    def get_by_google_id(self, google_id: str) -> Optional[User]:
        return self._get_one("google_id", google_id)

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: Optional[str],
        role: Role = Role.STUDENT,
        auth_provider: str = "local",
        google_id: Optional[str] = None,
        profile_picture: str = "",
        email_verified: bool = False,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, auth_provider, google_id,
                                  profile_picture, is_active, email_verified)
                VALUES(%s,%s,%s,%s,%s,%s,%s,1,%s)
                """,
                (
                    name,
                    email.lower(),
                    password_hash,
                    role.value,
                    auth_provider,
                    google_id,
                    profile_picture or "",
                    1 if email_verified else 0,
                ),
            )
            return int(cur.lastrowid)

    def update_profile(
        self,
        user_id: int,
        *,
        name: str,
        profile_picture: str,
        google_id: Optional[str] = None,
        auth_provider: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET name=%s,
                    profile_picture=%s,
                    google_id=COALESCE(%s, google_id),
                    auth_provider=COALESCE(%s, auth_provider)
                WHERE user_id=%s
                """,
                (name, profile_picture or "", google_id, auth_provider, int(user_id)),
            )
            return cur.rowcount > 0

    def touch_last_login(self, user_id: int, *, when: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login=%s WHERE user_id=%s", (when, int(user_id)))

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_google_id(self, google_id: str) -> Optional[User]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_profile(
        self,
        user_id: int,
        *,
        name: str,
        profile_picture: str,
        google_id: Optional[str] = None,
        auth_provider: Optional[str] = None,
    ) -> bool:
        """Overwrite name/picture; link the provider id when given."""

        raise NotImplementedError

    def touch_last_login(self, user_id: int, *, when: datetime) -> None:
        raise NotImplementedError

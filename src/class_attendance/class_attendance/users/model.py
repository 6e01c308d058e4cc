from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account.

    Note: Plain data object (no DB access code).
    """

    user_id: int
    name: str
    email: str
    password_hash: Optional[str]
    role: Role = Role.STUDENT
    auth_provider: str = "local"
    google_id: Optional[str] = None
    profile_picture: str = ""
    is_active: bool = True
    email_verified: bool = False
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    def to_safe_dict(self) -> dict:
        """Public profile without credentials."""
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "profilePicture": self.profile_picture,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class ProviderProfile:
    """Identity returned by an external OAuth provider after its handshake."""

    provider: str
    provider_id: str
    display_name: str
    email: str
    photo_url: Optional[str] = None

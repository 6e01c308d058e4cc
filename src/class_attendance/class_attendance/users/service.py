from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common import datetime_utils
from ..common.validators import require_email, require_max_length, require_min_length, require_non_empty
from ..core.constants import MAX_NAME_LENGTH, MIN_NAME_LENGTH, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ValidationError
from .model import ProviderProfile, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role

    @classmethod
    def of(cls, user: User) -> "SessionUser":
        return cls(user_id=user.user_id, name=user.name, email=user.email, role=user.role)


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        if not email or not password:
            raise AuthenticationError("Email and password are required")
        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthenticationError(INVALID_CREDENTIALS)

        user = self._users.get_by_email(email.strip().lower())
        if not user or not user.is_active or not user.password_hash:
            raise AuthenticationError(INVALID_CREDENTIALS)

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # placeholder or corrupted hash
            ok = False
        if not ok:
            raise AuthenticationError(INVALID_CREDENTIALS)

        self._users.touch_last_login(user.user_id, when=datetime_utils.now_local())
        return SessionUser.of(user)

    def login_with_provider(self, profile: ProviderProfile) -> SessionUser:
        """Resolve an identity-provider profile to a local account.

        Lookup order: linked provider id, then an existing account with the same
        email (which gets linked), else a new verified account.
        """
        email = require_email(profile.email)
        name = profile.display_name.strip() or email

        user = self._users.get_by_google_id(profile.provider_id)
        if user:
            self._users.update_profile(
                user.user_id,
                name=name,
                profile_picture=profile.photo_url or user.profile_picture,
            )
            logger.info("Provider user logged in: %s", user.email)
        else:
            user = self._users.get_by_email(email)
            if user:
                self._users.update_profile(
                    user.user_id,
                    name=name,
                    profile_picture=user.profile_picture or (profile.photo_url or ""),
                    google_id=profile.provider_id,
                    auth_provider=profile.provider,
                )
                logger.info("Linked %s account to existing user: %s", profile.provider, user.email)
            else:
                user_id = self._users.create_user(
                    name=name,
                    email=email,
                    password_hash=None,
                    auth_provider=profile.provider,
                    google_id=profile.provider_id,
                    profile_picture=profile.photo_url or "",
                    email_verified=True,
                )
                logger.info("Created %s user: %s", profile.provider, email)
                user = self._users.get_by_id(user_id)
                if not user:
                    raise AuthenticationError("Account could not be created")

        self._users.touch_last_login(user.user_id, when=datetime_utils.now_local())
        refreshed = self._users.get_by_id(user.user_id) or user
        return SessionUser.of(refreshed)


class UserService:
    """Use case: self-service registration and profile lookup."""

    def __init__(self, users: UserRepository):
        self._users = users

    def register(self, *, name: str, email: str, password: str, confirm_password: str) -> int:
        if not name or not email or not password or not confirm_password:
            raise ValidationError("All fields are required")
        if not all(isinstance(v, str) for v in (name, email, password, confirm_password)):
            raise ValidationError("All fields must be text")
        if password != confirm_password:
            raise ValidationError("Passwords do not match")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        name = require_non_empty(name, "Name")
        require_min_length(name, "Name", MIN_NAME_LENGTH)
        require_max_length(name, "Name", MAX_NAME_LENGTH)
        email = require_email(email)

        if self._users.get_by_email(email):
            raise ValidationError("User already exists with this email")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
        )
        logger.info("Registered user %s (id=%s)", email, user_id)
        return user_id

    def get_profile(self, user_id: int) -> Optional[User]:
        return self._users.get_by_id(int(user_id))

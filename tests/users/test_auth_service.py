from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash

from src.class_attendance.class_attendance.core.enums import Role
from src.class_attendance.class_attendance.core.exceptions import AuthenticationError, ValidationError
from src.class_attendance.class_attendance.users.model import ProviderProfile
from src.class_attendance.class_attendance.users.service import AuthService, UserService


def _register(users_repo, email="asha@example.com", password="secret1"):
    return UserService(users_repo).register(name="Asha", email=email, password=password, confirm_password=password)


def test_register_hashes_password_and_lowercases_email(users_repo):
    user_id = _register(users_repo, email="Asha@Example.com")
    user = users_repo.get_by_id(user_id)

    assert user.email == "asha@example.com"
    assert user.role == Role.STUDENT
    assert user.password_hash != "secret1"
    assert check_password_hash(user.password_hash, "secret1")


@pytest.mark.parametrize(
    "name, email, password, confirm, message",
    [
        ("", "a@example.com", "secret1", "secret1", "All fields are required"),
        ("Asha", "a@example.com", "secret1", "secret2", "Passwords do not match"),
        ("Asha", "a@example.com", "abc", "abc", "Password must be at least 6 characters long"),
        ("A", "a@example.com", "secret1", "secret1", "Name must be at least 2 characters long"),
        ("A" * 51, "a@example.com", "secret1", "secret1", "Name cannot exceed 50 characters"),
        ("Asha", "not-an-email", "secret1", "secret1", "Please enter a valid email address"),
    ],
)
def test_register_validation(users_repo, name, email, password, confirm, message):
    with pytest.raises(ValidationError, match=message):
        UserService(users_repo).register(name=name, email=email, password=password, confirm_password=confirm)


def test_register_rejects_duplicate_email(users_repo):
    _register(users_repo)
    with pytest.raises(ValidationError, match="already exists"):
        _register(users_repo, email="ASHA@example.com")


def test_authenticate_success_updates_last_login(users_repo, fixed_now):
    user_id = _register(users_repo)

    s_user = AuthService(users_repo).authenticate(" Asha@example.com ", "secret1")

    assert s_user.user_id == user_id
    assert s_user.role == Role.STUDENT
    assert users_repo.last_logins[user_id] == fixed_now


@pytest.mark.parametrize("email, password", [("asha@example.com", "wrong"), ("nobody@example.com", "secret1"), ("", "")])
def test_authenticate_failures(users_repo, email, password):
    _register(users_repo)
    with pytest.raises(AuthenticationError):
        AuthService(users_repo).authenticate(email, password)


def test_authenticate_rejects_inactive_user(users_repo):
    user_id = _register(users_repo)
    users_repo.deactivate(user_id)

    with pytest.raises(AuthenticationError):
        AuthService(users_repo).authenticate("asha@example.com", "secret1")


def test_provider_only_account_cannot_use_password(users_repo):
    AuthService(users_repo).login_with_provider(
        ProviderProfile(provider="google", provider_id="g-1", display_name="Ravi", email="ravi@example.com")
    )
    with pytest.raises(AuthenticationError):
        AuthService(users_repo).authenticate("ravi@example.com", "anything")


def test_provider_login_creates_verified_user(users_repo):
    s_user = AuthService(users_repo).login_with_provider(
        ProviderProfile(
            provider="google",
            provider_id="g-1",
            display_name="Ravi Kumar",
            email="Ravi@Example.com",
            photo_url="https://img.example/r.png",
        )
    )

    user = users_repo.get_by_id(s_user.user_id)
    assert user.email == "ravi@example.com"
    assert user.google_id == "g-1"
    assert user.auth_provider == "google"
    assert user.email_verified
    assert user.password_hash is None
    assert user.profile_picture == "https://img.example/r.png"


def test_provider_login_links_existing_email_account(users_repo):
    user_id = _register(users_repo)

    s_user = AuthService(users_repo).login_with_provider(
        ProviderProfile(provider="google", provider_id="g-9", display_name="Asha Rao", email="asha@example.com", photo_url="p.png")
    )

    assert s_user.user_id == user_id
    user = users_repo.get_by_id(user_id)
    assert user.google_id == "g-9"
    assert user.auth_provider == "google"
    assert user.name == "Asha Rao"
    assert user.profile_picture == "p.png"
    # local password keeps working after linking
    assert AuthService(users_repo).authenticate("asha@example.com", "secret1").user_id == user_id


def test_provider_login_refreshes_known_account(users_repo):
    auth = AuthService(users_repo)
    first = auth.login_with_provider(
        ProviderProfile(provider="google", provider_id="g-1", display_name="Ravi", email="ravi@example.com", photo_url="a.png")
    )
    second = auth.login_with_provider(
        ProviderProfile(provider="google", provider_id="g-1", display_name="Ravi K", email="ravi@example.com")
    )

    assert second.user_id == first.user_id
    assert second.name == "Ravi K"
    assert users_repo.get_by_id(first.user_id).profile_picture == "a.png"


def test_non_text_credentials_are_rejected(users_repo):
    _register(users_repo)
    with pytest.raises(AuthenticationError):
        AuthService(users_repo).authenticate(5, "secret1")
    with pytest.raises(ValidationError, match="must be text"):
        UserService(users_repo).register(name="Asha", email=["a@example.com"], password="secret1", confirm_password="secret1")

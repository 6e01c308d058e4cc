from __future__ import annotations

import copy
import os
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest

os.environ.setdefault("APP_ENV", "testing")

from src.class_attendance.class_attendance.attendance.model import AttendanceSnapshot, SemesterWindow
from src.class_attendance.class_attendance.common import datetime_utils
from src.class_attendance.class_attendance.container import wire
from src.class_attendance.class_attendance.core.enums import Role
from src.class_attendance.class_attendance.courses.model import Course, CourseCatalog
from src.class_attendance.class_attendance.users.model import User


class InMemoryUsers:
    def __init__(self):
        self._users: dict[int, User] = {}
        self._next_id = 1
        self.last_logins: dict[int, datetime] = {}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.email == email.lower()), None)

    def get_by_google_id(self, google_id: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.google_id == google_id), None)

    def create_user(
        self,
        *,
        name,
        email,
        password_hash,
        role=Role.STUDENT,
        auth_provider="local",
        google_id=None,
        profile_picture="",
        email_verified=False,
    ) -> int:
        uid = self._next_id
        self._next_id += 1
        self._users[uid] = User(
            user_id=uid,
            name=name,
            email=email.lower(),
            password_hash=password_hash,
            role=role,
            auth_provider=auth_provider,
            google_id=google_id,
            profile_picture=profile_picture,
            email_verified=email_verified,
        )
        return uid

    def update_profile(self, user_id, *, name, profile_picture, google_id=None, auth_provider=None) -> bool:
        user = self._users.get(int(user_id))
        if not user:
            return False
        self._users[user.user_id] = replace(
            user,
            name=name,
            profile_picture=profile_picture,
            google_id=google_id or user.google_id,
            auth_provider=auth_provider or user.auth_provider,
        )
        return True

    def touch_last_login(self, user_id, *, when) -> None:
        self.last_logins[int(user_id)] = when

    def deactivate(self, user_id: int) -> None:
        self._users[user_id] = replace(self._users[user_id], is_active=False)


class InMemoryAttendanceDocuments:
    """Keeps serialized documents so every load goes through the JSON boundary."""

    def __init__(self):
        self.documents: dict[int, dict] = {}
        self.saves = 0

    def load(self, user_id: int) -> AttendanceSnapshot:
        return AttendanceSnapshot.from_document(copy.deepcopy(self.documents.get(int(user_id))))

    def save(self, user_id: int, snapshot: AttendanceSnapshot) -> None:
        self.saves += 1
        self.documents[int(user_id)] = copy.deepcopy(snapshot.to_document())


@pytest.fixture
def semester() -> SemesterWindow:
    return SemesterWindow(start=date(2025, 7, 27), end=date(2025, 11, 22))


@pytest.fixture
def today() -> date:
    return date(2025, 8, 15)


@pytest.fixture
def fixed_now(monkeypatch) -> datetime:
    now = datetime(2025, 8, 15, 10, 0, 0)
    monkeypatch.setattr(datetime_utils, "now_local", lambda: now)
    return now


@pytest.fixture
def courses() -> CourseCatalog:
    return CourseCatalog(
        [
            Course(class_id="cs301", title="Compiler Design", faculty="Dr. T. Sugritha"),
            Course(class_id="cs302", title="Database Management Systems", faculty="Dr. M. Ambika"),
        ]
    )


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def documents() -> InMemoryAttendanceDocuments:
    return InMemoryAttendanceDocuments()


@pytest.fixture
def container(users_repo, documents, semester, courses):
    return wire(users_repo=users_repo, attendance_repo=documents, semester=semester, courses=courses)

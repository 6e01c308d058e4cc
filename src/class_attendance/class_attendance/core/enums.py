from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role stored on the account."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class MarkKind(str, Enum):
    """Which day-marking set a toggle edits."""

    ABSENT = "absent"
    OFF = "off"


class ClassDayState(str, Enum):
    """Derived state of one calendar day for one class (never persisted)."""

    OUTSIDE_SEMESTER = "outside_semester"
    FUTURE = "future"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    ABSENT = "absent"
    PRESENT = "present"

    @property
    def is_toggleable(self) -> bool:
        return self in {ClassDayState.HOLIDAY, ClassDayState.ABSENT, ClassDayState.PRESENT}

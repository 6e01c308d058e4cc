from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from datetime import MAXYEAR, MINYEAR, date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..core.enums import MarkKind
from ..core.exceptions import ValidationError

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")

ATTENDANCE_FIELD = "attendanceData"
OFF_DAYS_FIELD = "offDaysData"


@dataclass(frozen=True, order=True)
class MonthKey:
    """A calendar month (month is 1..12).

    The ``"YYYY-MM"`` string form is produced only at the persistence/JSON boundary.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not MINYEAR <= int(self.year) <= MAXYEAR:
            raise ValidationError(f"Invalid year: {self.year}")
        if not 1 <= int(self.month) <= 12:
            raise ValidationError(f"Invalid month: {self.month}")

    @classmethod
    def of(cls, value: date) -> "MonthKey":
        return cls(value.year, value.month)

    @classmethod
    def parse(cls, value: str) -> "MonthKey":
        m = _MONTH_KEY_RE.match(str(value))
        if not m:
            raise ValidationError(f"Invalid month key: {value!r}")
        return cls(int(m.group(1)), int(m.group(2)))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    def day(self, day: int) -> date:
        return date(self.year, self.month, day)

    def shifted(self, delta: int) -> "MonthKey":
        index = self.year * 12 + (self.month - 1) + int(delta)
        return MonthKey(index // 12, index % 12 + 1)


@dataclass(frozen=True)
class SemesterWindow:
    """Inclusive date range during which attendance can be recorded."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationError("Semester start must not be after semester end")

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    @property
    def first_month(self) -> MonthKey:
        return MonthKey.of(self.start)

    @property
    def last_month(self) -> MonthKey:
        return MonthKey.of(self.end)


DayMarks = Dict[str, Dict[MonthKey, List[int]]]


@dataclass
class AttendanceSnapshot:
    """Both day-marking stores of one user.

    ``attendance`` holds the days marked absent, ``off_days`` the days marked as
    holiday. A day may sit in both sets; classification gives the off-day priority.
    """

    attendance: DayMarks = field(default_factory=dict)
    off_days: DayMarks = field(default_factory=dict)

    def marks(self, kind: MarkKind) -> DayMarks:
        return self.attendance if kind == MarkKind.ABSENT else self.off_days

    def days(self, kind: MarkKind, class_id: str, key: MonthKey) -> Sequence[int]:
        return self.marks(kind).get(class_id, {}).get(key, ())

    def ensure_classes(self, class_ids: Iterable[str]) -> None:
        for class_id in class_ids:
            self.attendance.setdefault(class_id, {})
            self.off_days.setdefault(class_id, {})

    def to_document(self) -> dict:
        return {
            ATTENDANCE_FIELD: _marks_to_json(self.attendance),
            OFF_DAYS_FIELD: _marks_to_json(self.off_days),
        }

    @classmethod
    def from_document(cls, doc: Optional[Mapping[str, Any]]) -> "AttendanceSnapshot":
        if doc is None:
            return cls()
        if not isinstance(doc, Mapping):
            raise ValidationError("Attendance document must be an object")
        return cls(
            attendance=_marks_from_json(doc.get(ATTENDANCE_FIELD), ATTENDANCE_FIELD),
            off_days=_marks_from_json(doc.get(OFF_DAYS_FIELD), OFF_DAYS_FIELD),
        )


def _marks_to_json(marks: DayMarks) -> dict:
    return {
        class_id: {str(key): list(days) for key, days in sorted(months.items())}
        for class_id, months in marks.items()
    }


def _marks_from_json(raw: Any, field_name: str) -> DayMarks:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError(f"{field_name} must be an object")

    marks: DayMarks = {}
    for class_id, months in raw.items():
        if not isinstance(months, Mapping):
            raise ValidationError(f"{field_name}.{class_id} must be an object")
        parsed: Dict[MonthKey, List[int]] = {}
        for raw_key, days in months.items():
            key = MonthKey.parse(raw_key)
            if not isinstance(days, list):
                raise ValidationError(f"{field_name}.{class_id}.{raw_key} must be a list")
            for d in days:
                # bool is an int subclass
                if isinstance(d, bool) or not isinstance(d, int) or not 1 <= d <= key.days_in_month:
                    raise ValidationError(f"Invalid day {d!r} in {field_name}.{class_id}.{raw_key}")
            parsed[key] = sorted(set(days))
        marks[str(class_id)] = parsed
    return marks


@dataclass(frozen=True)
class MonthlyStats:
    conducted: int = 0
    absent: int = 0
    off: int = 0

    @property
    def present(self) -> int:
        return self.conducted - self.absent

    def __add__(self, other: "MonthlyStats") -> "MonthlyStats":
        return MonthlyStats(
            conducted=self.conducted + other.conducted,
            absent=self.absent + other.absent,
            off=self.off + other.off,
        )


@dataclass(frozen=True)
class CumulativeStats:
    total_conducted: int
    total_absent: int
    total_off: int
    total_possible_leaves: int
    possible_leaves: int

    @property
    def total_present(self) -> int:
        return self.total_conducted - self.total_absent

"""Attendance accounting.

Pure functions over an explicitly passed :class:`AttendanceSnapshot`. Nothing here
touches the database or the clock: callers pass ``today`` and own the snapshot.

Day states are decided in a fixed order (first match wins)::

    outside semester > future > weekend > holiday > absent > present

A day marked both off and absent is therefore a holiday. The two sets are edited
independently and mutual exclusion is not enforced on write.
"""
from __future__ import annotations

import bisect
import math
from datetime import date
from typing import Iterator

from ..core.constants import DEFAULT_LEAVE_RATIO
from ..core.enums import ClassDayState, MarkKind
from .model import AttendanceSnapshot, CumulativeStats, MonthKey, MonthlyStats, SemesterWindow


def is_weekend(value: date) -> bool:
    return value.weekday() >= 5


def classify_day(
    class_id: str,
    value: date,
    snapshot: AttendanceSnapshot,
    semester: SemesterWindow,
    today: date,
) -> ClassDayState:
    if not semester.contains(value):
        return ClassDayState.OUTSIDE_SEMESTER
    if value > today:
        return ClassDayState.FUTURE
    if is_weekend(value):
        return ClassDayState.WEEKEND

    key = MonthKey.of(value)
    if value.day in snapshot.days(MarkKind.OFF, class_id, key):
        return ClassDayState.HOLIDAY
    if value.day in snapshot.days(MarkKind.ABSENT, class_id, key):
        return ClassDayState.ABSENT
    return ClassDayState.PRESENT


def counted_day_range(key: MonthKey, semester: SemesterWindow, today: date) -> range:
    """Days of ``key`` that fall inside the semester and not after ``today``.

    Empty when the month lies wholly outside that span.
    """
    current = MonthKey.of(today)
    if key < semester.first_month or key > semester.last_month or key > current:
        return range(0)

    start_day = semester.start.day if key == semester.first_month else 1
    end_day = key.days_in_month
    if key == semester.last_month:
        end_day = min(end_day, semester.end.day)
    if key == current:
        end_day = min(end_day, today.day)
    return range(start_day, end_day + 1)


def compute_monthly_stats(
    class_id: str,
    key: MonthKey,
    snapshot: AttendanceSnapshot,
    semester: SemesterWindow,
    today: date,
) -> MonthlyStats:
    absents = set(snapshot.days(MarkKind.ABSENT, class_id, key))
    offs = set(snapshot.days(MarkKind.OFF, class_id, key))

    conducted = absent = off = 0
    for day in counted_day_range(key, semester, today):
        if is_weekend(key.day(day)):
            continue
        if day in offs:
            off += 1
        else:
            conducted += 1
            if day in absents:
                absent += 1

    return MonthlyStats(conducted=conducted, absent=absent, off=off)


def iter_semester_months(semester: SemesterWindow, today: date) -> Iterator[MonthKey]:
    """Months from the semester start through ``min(today, semester.end)``."""
    last = MonthKey.of(min(today, semester.end))
    key = semester.first_month
    while key <= last:
        yield key
        key = key.shifted(1)


def leave_budget(total_conducted: int, total_absent: int, *, leave_ratio: int = DEFAULT_LEAVE_RATIO) -> tuple[int, int]:
    """Return ``(total_possible_leaves, possible_leaves)``.

    One leave is allowed per ``leave_ratio`` conducted classes, rounded down; the
    remaining budget never goes below zero.
    """
    total_possible = total_conducted // int(leave_ratio)
    return total_possible, max(0, total_possible - total_absent)


def compute_cumulative_stats(
    class_id: str,
    snapshot: AttendanceSnapshot,
    semester: SemesterWindow,
    today: date,
    *,
    leave_ratio: int = DEFAULT_LEAVE_RATIO,
) -> CumulativeStats:
    total = MonthlyStats()
    for key in iter_semester_months(semester, today):
        total = total + compute_monthly_stats(class_id, key, snapshot, semester, today)

    total_possible, remaining = leave_budget(total.conducted, total.absent, leave_ratio=leave_ratio)
    return CumulativeStats(
        total_conducted=total.conducted,
        total_absent=total.absent,
        total_off=total.off,
        total_possible_leaves=total_possible,
        possible_leaves=remaining,
    )


def attendance_percentage(conducted: int, absent: int) -> int:
    """Whole-number percentage of conducted classes attended (0 when none were held)."""
    if conducted == 0:
        return 0
    # half-up, not banker's rounding
    return int(math.floor(100 * (conducted - absent) / conducted + 0.5))


def toggle_day(
    snapshot: AttendanceSnapshot,
    class_id: str,
    day: int,
    key: MonthKey,
    kind: MarkKind,
) -> AttendanceSnapshot:
    """Flip membership of ``day`` in the ``kind`` set, keeping the set ascending.

    Only the selected set is edited. The snapshot is changed in place and returned;
    persisting it is up to the caller.
    """
    days = snapshot.marks(kind).setdefault(class_id, {}).setdefault(key, [])
    if day in days:
        days.remove(day)
    else:
        bisect.insort(days, day)
    return snapshot


def is_month_allowed(key: MonthKey, semester: SemesterWindow) -> bool:
    return not (key.last_day < semester.start or key.first_day > semester.end)


def clamp_to_semester_month(value: date, semester: SemesterWindow) -> MonthKey:
    if value < semester.start:
        return semester.first_month
    if value > semester.end:
        return semester.last_month
    return MonthKey.of(value)

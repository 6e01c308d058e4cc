from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.class_attendance.class_attendance.attendance.engine import (
    attendance_percentage,
    clamp_to_semester_month,
    classify_day,
    compute_cumulative_stats,
    compute_monthly_stats,
    is_month_allowed,
    leave_budget,
    toggle_day,
)
from src.class_attendance.class_attendance.attendance.model import AttendanceSnapshot, MonthKey, MonthlyStats
from src.class_attendance.class_attendance.core.enums import ClassDayState, MarkKind

JULY = MonthKey(2025, 7)
AUGUST = MonthKey(2025, 8)


def _snapshot(absent=None, off=None) -> AttendanceSnapshot:
    return AttendanceSnapshot(attendance=absent or {}, off_days=off or {})


@pytest.mark.parametrize("value", [date(2025, 7, 26), date(2025, 1, 6), date(2025, 11, 24), date(2026, 3, 2)])
def test_days_outside_semester(value, semester):
    today = date(2026, 6, 1)
    assert classify_day("cs301", value, _snapshot(), semester, today) == ClassDayState.OUTSIDE_SEMESTER


def test_outside_semester_wins_over_marks(semester, today):
    snap = _snapshot(absent={"cs301": {JULY: [25]}}, off={"cs301": {JULY: [25]}})
    assert classify_day("cs301", date(2025, 7, 25), snap, semester, today) == ClassDayState.OUTSIDE_SEMESTER

    stats = compute_monthly_stats("cs301", JULY, snap, semester, today)
    assert stats == MonthlyStats(conducted=4, absent=0, off=0)


def test_days_after_today_are_future(semester, today):
    snap = _snapshot(absent={"cs301": {AUGUST: [18]}})
    assert classify_day("cs301", date(2025, 8, 16), snap, semester, today) == ClassDayState.FUTURE
    assert classify_day("cs301", date(2025, 8, 18), snap, semester, today) == ClassDayState.FUTURE
    assert classify_day("cs301", today, snap, semester, today) == ClassDayState.PRESENT


def test_weekends_never_count(semester, today):
    # Aug 2/3 2025 are Saturday/Sunday
    snap = _snapshot(absent={"cs301": {AUGUST: [2]}}, off={"cs301": {AUGUST: [3]}})
    assert classify_day("cs301", date(2025, 8, 2), snap, semester, today) == ClassDayState.WEEKEND
    assert classify_day("cs301", date(2025, 8, 3), snap, semester, today) == ClassDayState.WEEKEND

    stats = compute_monthly_stats("cs301", AUGUST, snap, semester, today)
    assert stats == MonthlyStats(conducted=11, absent=0, off=0)


def test_every_semester_weekend_classifies_as_weekend(semester):
    today = date(2025, 12, 31)
    day = semester.start
    while day <= semester.end:
        state = classify_day("cs301", day, _snapshot(), semester, today)
        if day.weekday() >= 5:
            assert state == ClassDayState.WEEKEND
        else:
            assert state == ClassDayState.PRESENT
        day += timedelta(days=1)


def test_toggle_absent_scenario(semester, today):
    snap = _snapshot()
    monday = date(2025, 7, 28)

    assert classify_day("cs301", monday, snap, semester, today) == ClassDayState.PRESENT
    toggle_day(snap, "cs301", 28, JULY, MarkKind.ABSENT)
    assert classify_day("cs301", monday, snap, semester, today) == ClassDayState.ABSENT
    toggle_day(snap, "cs301", 28, JULY, MarkKind.ABSENT)
    assert classify_day("cs301", monday, snap, semester, today) == ClassDayState.PRESENT


def test_toggle_twice_restores_membership():
    snap = _snapshot(absent={"cs301": {AUGUST: [4, 6]}})

    toggle_day(snap, "cs301", 5, AUGUST, MarkKind.ABSENT)
    assert snap.attendance["cs301"][AUGUST] == [4, 5, 6]
    toggle_day(snap, "cs301", 5, AUGUST, MarkKind.ABSENT)
    assert snap.attendance["cs301"][AUGUST] == [4, 6]


def test_toggle_keeps_days_sorted_and_returns_snapshot():
    snap = _snapshot()
    for day in (14, 1, 7):
        result = toggle_day(snap, "cs302", day, AUGUST, MarkKind.OFF)
        assert result is snap
    assert snap.off_days["cs302"][AUGUST] == [1, 7, 14]


def test_toggle_only_edits_selected_set():
    snap = _snapshot(absent={"cs301": {AUGUST: [5]}})
    toggle_day(snap, "cs301", 5, AUGUST, MarkKind.OFF)

    assert snap.attendance["cs301"][AUGUST] == [5]
    assert snap.off_days["cs301"][AUGUST] == [5]


def test_holiday_wins_over_absence(semester, today):
    snap = _snapshot(absent={"cs301": {AUGUST: [5]}}, off={"cs301": {AUGUST: [5]}})

    assert classify_day("cs301", date(2025, 8, 5), snap, semester, today) == ClassDayState.HOLIDAY
    stats = compute_monthly_stats("cs301", AUGUST, snap, semester, today)
    assert stats == MonthlyStats(conducted=10, absent=0, off=1)


def test_first_semester_month_starts_at_semester_start(semester, today):
    # Jul 27 (Sun) .. Jul 31 (Thu)
    stats = compute_monthly_stats("cs301", JULY, _snapshot(), semester, today)
    assert stats.conducted == 4


def test_current_month_stops_at_today(semester, today):
    snap = _snapshot(absent={"cs301": {AUGUST: [1, 20]}}, off={"cs301": {AUGUST: [15, 29]}})
    stats = compute_monthly_stats("cs301", AUGUST, snap, semester, today)

    assert stats == MonthlyStats(conducted=10, absent=1, off=1)
    assert stats.present == 9


def test_month_after_today_is_empty(semester, today):
    snap = _snapshot(absent={"cs301": {MonthKey(2025, 9): [1, 2]}})
    stats = compute_monthly_stats("cs301", MonthKey(2025, 9), snap, semester, today)
    assert stats == MonthlyStats(conducted=0, absent=0, off=0)


def test_months_outside_semester_are_empty(semester):
    today = date(2026, 1, 31)
    assert compute_monthly_stats("cs301", MonthKey(2025, 6), _snapshot(), semester, today) == MonthlyStats()
    assert compute_monthly_stats("cs301", MonthKey(2025, 12), _snapshot(), semester, today) == MonthlyStats()


def test_last_semester_month_stops_at_semester_end(semester):
    # Nov 22 2025 is a Saturday; Nov 1 too
    stats = compute_monthly_stats("cs301", MonthKey(2025, 11), _snapshot(), semester, date(2026, 1, 1))
    assert stats.conducted == 15


def test_cumulative_stats_up_to_today(semester, today):
    snap = _snapshot(
        absent={"cs301": {JULY: [28], AUGUST: [4]}},
        off={"cs301": {AUGUST: [15]}},
    )
    stats = compute_cumulative_stats("cs301", snap, semester, today)

    assert stats.total_conducted == 14
    assert stats.total_absent == 2
    assert stats.total_off == 1
    assert stats.total_possible_leaves == 3
    assert stats.possible_leaves == 1
    assert stats.total_present == 12


def test_cumulative_stats_whole_semester(semester):
    stats = compute_cumulative_stats("cs301", _snapshot(), semester, date(2025, 12, 31))

    assert stats.total_conducted == 4 + 21 + 22 + 23 + 15
    assert stats.total_possible_leaves == 21
    assert stats.possible_leaves == 21


def test_cumulative_stats_before_semester_start(semester):
    stats = compute_cumulative_stats("cs301", _snapshot(), semester, date(2025, 7, 1))
    assert (stats.total_conducted, stats.total_absent, stats.total_off) == (0, 0, 0)
    assert stats.possible_leaves == 0


def test_possible_leaves_never_negative(semester):
    today = date(2025, 7, 31)
    snap = _snapshot(absent={"cs301": {JULY: [28, 29, 30, 31]}})
    stats = compute_cumulative_stats("cs301", snap, semester, today)

    assert stats.total_conducted == 4
    assert stats.total_absent == 4
    assert stats.total_possible_leaves == 1
    assert stats.possible_leaves == 0


def test_leave_ratio_is_configurable(semester, today):
    stats = compute_cumulative_stats("cs301", _snapshot(), semester, today, leave_ratio=5)
    assert stats.total_possible_leaves == 3


@pytest.mark.parametrize(
    "conducted, absent, expected",
    [(0, 0, (0, 0)), (3, 0, (0, 0)), (4, 0, (1, 1)), (15, 2, (3, 1)), (40, 25, (10, 0))],
)
def test_leave_budget(conducted, absent, expected):
    assert leave_budget(conducted, absent) == expected


def test_unknown_class_has_no_activity(semester, today):
    snap = _snapshot(absent={"cs301": {AUGUST: [4]}})
    stats = compute_cumulative_stats("nope", snap, semester, today)
    assert stats.total_absent == 0
    assert stats.total_off == 0


@pytest.mark.parametrize(
    "conducted, absent, expected",
    [(0, 0, 0), (10, 0, 100), (10, 10, 0), (8, 1, 88), (3, 1, 67), (200, 1, 100), (200, 3, 99)],
)
def test_attendance_percentage(conducted, absent, expected):
    assert attendance_percentage(conducted, absent) == expected


@pytest.mark.parametrize(
    "key, allowed",
    [
        (MonthKey(2025, 6), False),
        (MonthKey(2025, 7), True),
        (MonthKey(2025, 8), True),
        (MonthKey(2025, 11), True),
        (MonthKey(2025, 12), False),
        (MonthKey(2024, 8), False),
    ],
)
def test_is_month_allowed(key, allowed, semester):
    assert is_month_allowed(key, semester) is allowed


@pytest.mark.parametrize(
    "value, expected",
    [
        (date(2025, 1, 10), MonthKey(2025, 7)),
        (date(2025, 7, 27), MonthKey(2025, 7)),
        (date(2025, 9, 30), MonthKey(2025, 9)),
        (date(2025, 11, 23), MonthKey(2025, 11)),
        (date(2026, 2, 1), MonthKey(2025, 11)),
    ],
)
def test_clamp_to_semester_month(value, expected, semester):
    assert clamp_to_semester_month(value, semester) == expected

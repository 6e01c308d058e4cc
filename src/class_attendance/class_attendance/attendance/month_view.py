from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from ..core.constants import (
    CARD_DANGER_BELOW,
    CARD_WARNING_BELOW,
    MONTH_GOOD_FROM,
    MONTH_NAMES,
    MONTH_WARNING_FROM,
    WEEKDAY_HEADERS,
)
from ..core.enums import ClassDayState
from ..core.exceptions import ValidationError
from .engine import attendance_percentage, classify_day, compute_monthly_stats, is_month_allowed
from .model import AttendanceSnapshot, MonthKey, MonthlyStats, SemesterWindow

# state -> (css class, icon, tooltip suffix)
_CELL_LOOK = {
    ClassDayState.OUTSIDE_SEMESTER: ("muted", "", "Outside semester"),
    ClassDayState.FUTURE: ("muted", "", "Future date"),
    ClassDayState.WEEKEND: ("weekend", "\U0001F3AF", "Weekend"),
    ClassDayState.HOLIDAY: ("off clickable", "\U0001F3D6️", "Holiday/Off day (Click to toggle)"),
    ClassDayState.ABSENT: ("absent clickable", "❌", "Absent (Click to mark Present)"),
    ClassDayState.PRESENT: ("present clickable", "✅", "Present (Click to mark Absent)"),
}


@dataclass(frozen=True)
class CalendarCell:
    day: int
    date: date
    state: ClassDayState
    clickable: bool
    is_today: bool
    css_class: str
    icon: str
    tooltip: str


@dataclass(frozen=True)
class MonthCalendar:
    class_id: str
    key: MonthKey
    allowed: bool
    stats: MonthlyStats
    percentage: int
    band: str
    leading_blanks: int = 0
    cells: List[CalendarCell] = field(default_factory=list)
    prev_key: Optional[MonthKey] = None
    next_key: Optional[MonthKey] = None

    @property
    def title(self) -> str:
        return f"{MONTH_NAMES[self.key.month - 1]} {self.key.year}"

    @property
    def weekday_headers(self) -> tuple:
        return WEEKDAY_HEADERS


def sunday_first_index(value: date) -> int:
    return (value.weekday() + 1) % 7


def month_band(percent: int) -> str:
    if percent >= MONTH_GOOD_FROM:
        return "good"
    if percent >= MONTH_WARNING_FROM:
        return "warning"
    return "danger"


def card_band(percent: int) -> str:
    if percent < CARD_DANGER_BELOW:
        return "danger"
    if percent < CARD_WARNING_BELOW:
        return "warning"
    return "good"


def build_cell(class_id: str, value: date, snapshot: AttendanceSnapshot, semester: SemesterWindow, today: date) -> CalendarCell:
    state = classify_day(class_id, value, snapshot, semester, today)
    css, icon, suffix = _CELL_LOOK[state]

    tooltip = f"{WEEKDAY_HEADERS[sunday_first_index(value)]}, {MONTH_NAMES[value.month - 1]} {value.day}, {value.year} - {suffix}"
    is_today = value == today
    if is_today:
        css = f"{css} today"
        tooltip += " - Today"

    return CalendarCell(
        day=value.day,
        date=value,
        state=state,
        clickable=state.is_toggleable,
        is_today=is_today,
        css_class=css,
        icon=icon,
        tooltip=tooltip,
    )


def _neighbour(key: MonthKey, delta: int, semester: SemesterWindow) -> Optional[MonthKey]:
    try:
        other = key.shifted(delta)
    except ValidationError:
        return None
    return other if is_month_allowed(other, semester) else None


def build_month_calendar(
    class_id: str,
    key: MonthKey,
    snapshot: AttendanceSnapshot,
    semester: SemesterWindow,
    today: date,
) -> MonthCalendar:
    nav = {"prev_key": _neighbour(key, -1, semester), "next_key": _neighbour(key, 1, semester)}

    if not is_month_allowed(key, semester):
        return MonthCalendar(
            class_id=class_id,
            key=key,
            allowed=False,
            stats=MonthlyStats(),
            percentage=0,
            band=month_band(0),
            **nav,
        )

    stats = compute_monthly_stats(class_id, key, snapshot, semester, today)
    percent = attendance_percentage(stats.conducted, stats.absent)
    cells = [
        build_cell(class_id, key.day(day), snapshot, semester, today)
        for day in range(1, key.days_in_month + 1)
    ]
    return MonthCalendar(
        class_id=class_id,
        key=key,
        allowed=True,
        stats=stats,
        percentage=percent,
        band=month_band(percent),
        leading_blanks=sunday_first_index(key.first_day),
        cells=cells,
        **nav,
    )

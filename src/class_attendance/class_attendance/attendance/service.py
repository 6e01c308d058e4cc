from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Mapping, Optional

from ..common.datetime_utils import today_local
from ..core.constants import DEFAULT_LEAVE_RATIO
from ..core.enums import ClassDayState, MarkKind
from ..core.exceptions import ValidationError
from ..courses.model import Course, CourseCatalog
from .engine import (
    attendance_percentage,
    clamp_to_semester_month,
    classify_day,
    compute_cumulative_stats,
    compute_monthly_stats,
    toggle_day,
)
from .model import AttendanceSnapshot, CumulativeStats, MonthKey, MonthlyStats, SemesterWindow
from .month_view import MonthCalendar, build_month_calendar, card_band
from .repository import AttendanceDocumentRepository

logger = logging.getLogger(__name__)

LOAD_WARNING = "Could not load your attendance data. Showing an empty sheet."


def monthly_to_dict(stats: MonthlyStats) -> dict:
    return {
        "totalConducted": stats.conducted,
        "totalAbsent": stats.absent,
        "totalOff": stats.off,
        "present": stats.present,
        "percentage": attendance_percentage(stats.conducted, stats.absent),
    }


def cumulative_to_dict(stats: CumulativeStats) -> dict:
    return {
        "totalConducted": stats.total_conducted,
        "totalAbsent": stats.total_absent,
        "totalOff": stats.total_off,
        "totalPossibleLeaves": stats.total_possible_leaves,
        "possibleLeaves": stats.possible_leaves,
        "percentage": attendance_percentage(stats.total_conducted, stats.total_absent),
    }


@dataclass(frozen=True)
class LoadResult:
    snapshot: AttendanceSnapshot
    warning: Optional[str] = None


@dataclass(frozen=True)
class ClassSummary:
    """Summary card of one class."""

    course: Course
    stats: CumulativeStats
    percentage: int
    band: str

    def to_dict(self) -> dict:
        return {
            "classId": self.course.class_id,
            "title": self.course.title,
            "faculty": self.course.faculty,
            "band": self.band,
            **cumulative_to_dict(self.stats),
        }


@dataclass(frozen=True)
class ToggleResult:
    class_id: str
    day: date
    kind: MarkKind
    state: ClassDayState
    monthly: MonthlyStats
    cumulative: CumulativeStats

    def to_dict(self) -> dict:
        return {
            "classId": self.class_id,
            "date": self.day.isoformat(),
            "kind": self.kind.value,
            "state": self.state.value,
            "monthly": monthly_to_dict(self.monthly),
            "cumulative": cumulative_to_dict(self.cumulative),
        }


class AttendanceService:
    def __init__(
        self,
        documents: AttendanceDocumentRepository,
        *,
        semester: SemesterWindow,
        courses: CourseCatalog,
        leave_ratio: int = DEFAULT_LEAVE_RATIO,
    ):
        if int(leave_ratio) <= 0:
            raise ValidationError("Leave ratio must be positive")
        self._documents = documents
        self._semester = semester
        self._courses = courses
        self._leave_ratio = int(leave_ratio)

    @property
    def semester(self) -> SemesterWindow:
        return self._semester

    @property
    def courses(self) -> CourseCatalog:
        return self._courses

    def require_course(self, class_id: str) -> Course:
        course = self._courses.get(class_id)
        if not course:
            raise ValidationError(f"Unknown class: {class_id}")
        return course

    def load(self, user_id: int) -> LoadResult:
        """Load for display; a storage failure degrades to an empty snapshot plus a warning."""
        try:
            snapshot = self._documents.load(int(user_id))
        except Exception:
            logger.warning("Failed to load attendance for user %s", user_id, exc_info=True)
            snapshot = AttendanceSnapshot()
            snapshot.ensure_classes(self._courses.class_ids)
            return LoadResult(snapshot=snapshot, warning=LOAD_WARNING)

        snapshot.ensure_classes(self._courses.class_ids)
        return LoadResult(snapshot=snapshot)

    def load_for_edit(self, user_id: int) -> AttendanceSnapshot:
        # Errors propagate: saving an empty fallback would wipe the stored document.
        snapshot = self._documents.load(int(user_id))
        snapshot.ensure_classes(self._courses.class_ids)
        return snapshot

    def replace(self, user_id: int, document: Mapping) -> AttendanceSnapshot:
        """Whole-document replace of the user's attendance data."""
        snapshot = AttendanceSnapshot.from_document(document)
        snapshot.ensure_classes(self._courses.class_ids)
        self._documents.save(int(user_id), snapshot)
        logger.info("Replaced attendance document for user %s", user_id)
        return snapshot

    def initial_month(self, *, today: date | None = None) -> MonthKey:
        return clamp_to_semester_month(today or today_local(), self._semester)

    def cumulative(self, class_id: str, snapshot: AttendanceSnapshot, *, today: date | None = None) -> CumulativeStats:
        return compute_cumulative_stats(
            class_id,
            snapshot,
            self._semester,
            today or today_local(),
            leave_ratio=self._leave_ratio,
        )

    def monthly(self, class_id: str, key: MonthKey, snapshot: AttendanceSnapshot, *, today: date | None = None) -> MonthlyStats:
        return compute_monthly_stats(class_id, key, snapshot, self._semester, today or today_local())

    def summary(self, course: Course, snapshot: AttendanceSnapshot, *, today: date | None = None) -> ClassSummary:
        stats = self.cumulative(course.class_id, snapshot, today=today)
        percent = attendance_percentage(stats.total_conducted, stats.total_absent)
        return ClassSummary(course=course, stats=stats, percentage=percent, band=card_band(percent))

    def summaries(self, snapshot: AttendanceSnapshot, *, today: date | None = None) -> List[ClassSummary]:
        today = today or today_local()
        return [self.summary(course, snapshot, today=today) for course in self._courses]

    def month_calendar(
        self,
        class_id: str,
        snapshot: AttendanceSnapshot,
        key: Optional[MonthKey] = None,
        *,
        today: date | None = None,
    ) -> MonthCalendar:
        today = today or today_local()
        key = key or clamp_to_semester_month(today, self._semester)
        return build_month_calendar(class_id, key, snapshot, self._semester, today)

    def toggle(
        self,
        user_id: int,
        class_id: str,
        day: date,
        kind: MarkKind = MarkKind.ABSENT,
        *,
        today: date | None = None,
    ) -> ToggleResult:
        today = today or today_local()
        self.require_course(class_id)

        snapshot = self.load_for_edit(user_id)
        state = classify_day(class_id, day, snapshot, self._semester, today)
        if not state.is_toggleable:
            raise ValidationError(f"{day.isoformat()} cannot be changed ({state.value.replace('_', ' ')})")

        key = MonthKey.of(day)
        toggle_day(snapshot, class_id, day.day, key, kind)
        self._documents.save(int(user_id), snapshot)

        return ToggleResult(
            class_id=class_id,
            day=day,
            kind=kind,
            state=classify_day(class_id, day, snapshot, self._semester, today),
            monthly=self.monthly(class_id, key, snapshot, today=today),
            cumulative=self.cumulative(class_id, snapshot, today=today),
        )

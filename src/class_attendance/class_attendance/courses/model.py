from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from ..common.validators import require_non_empty


@dataclass(frozen=True)
class Course:
    """A class tracked on the dashboard."""

    class_id: str
    title: str
    faculty: str = ""

    @property
    def code(self) -> str:
        return self.class_id.upper()


class CourseCatalog:
    """Fixed, ordered set of classes read from configuration."""

    def __init__(self, courses: Iterable[Course]):
        self._courses = {c.class_id: c for c in courses}

    @classmethod
    def from_config(cls, items: Sequence[Mapping[str, str]]) -> "CourseCatalog":
        return cls(
            Course(
                class_id=require_non_empty(str(item.get("class_id", "")), "Class id").lower(),
                title=str(item.get("title", "")),
                faculty=str(item.get("faculty", "")),
            )
            for item in items
        )

    def __iter__(self):
        return iter(self._courses.values())

    def __len__(self) -> int:
        return len(self._courses)

    def __contains__(self, class_id: object) -> bool:
        return class_id in self._courses

    def get(self, class_id: str) -> Optional[Course]:
        return self._courses.get(class_id)

    @property
    def class_ids(self) -> list[str]:
        return list(self._courses)

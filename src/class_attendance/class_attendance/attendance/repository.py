from __future__ import annotations

from typing import Protocol

from .model import AttendanceSnapshot


class AttendanceDocumentRepository(Protocol):
    """Whole-document storage of a user's attendance snapshot.

    There is no partial update: ``save`` replaces the stored document (last write wins).
    """

    def load(self, user_id: int) -> AttendanceSnapshot:
        """Return the stored snapshot, or an empty one if the user has none yet."""

        raise NotImplementedError

    def save(self, user_id: int, snapshot: AttendanceSnapshot) -> None:
        raise NotImplementedError

from __future__ import annotations

import json

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import ATTENDANCE_FIELD, OFF_DAYS_FIELD, AttendanceSnapshot
from .repository import AttendanceDocumentRepository


def _decode(value) -> dict:
    if value is None:
        return {}
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value) if value.strip() else {}
    return value


class MySQLAttendanceRepository(AttendanceDocumentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load(self, user_id: int) -> AttendanceSnapshot:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_data, off_days_data
                FROM attendance_documents
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            if not row:
                return AttendanceSnapshot()
            return AttendanceSnapshot.from_document(
                {
                    ATTENDANCE_FIELD: _decode(row.get("attendance_data")),
                    OFF_DAYS_FIELD: _decode(row.get("off_days_data")),
                }
            )

    def save(self, user_id: int, snapshot: AttendanceSnapshot) -> None:
        doc = snapshot.to_document()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_documents(user_id, attendance_data, off_days_data)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    attendance_data=VALUES(attendance_data),
                    off_days_data=VALUES(off_days_data)
                """,
                (int(user_id), json.dumps(doc[ATTENDANCE_FIELD]), json.dumps(doc[OFF_DAYS_FIELD])),
            )

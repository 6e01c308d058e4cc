from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.model import SemesterWindow
from .attendance.repository import AttendanceDocumentRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LEAVE_RATIO
from .courses.model import CourseCatalog
from .database.connection import DatabaseConnection, DBConfig
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    attendance_repo: AttendanceDocumentRepository

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService


def wire(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceDocumentRepository,
    semester: SemesterWindow,
    courses: CourseCatalog,
    leave_ratio: int = DEFAULT_LEAVE_RATIO,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            semester=semester,
            courses=courses,
            leave_ratio=leave_ratio,
        ),
    )


def build_container(
    *,
    db_config: Mapping,
    semester: SemesterWindow,
    courses: CourseCatalog,
    leave_ratio: int = DEFAULT_LEAVE_RATIO,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return wire(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        semester=semester,
        courses=courses,
        leave_ratio=leave_ratio,
        conn=conn,
    )

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from functools import partial
from typing import Any, Callable, ContextManager, Optional

from werkzeug.security import generate_password_hash

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import today_local
from .common.locks import KeyedLock
from .core.constants import DEFAULT_JWT_ALGORITHM, DEFAULT_TOKEN_TTL_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_base import transaction
from .members.mysql_member_repository import MySQLMemberRepository
from .members.repository import MemberRepository
from .members.service import MemberService
from .stats.service import StatsService
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    members_repo: MemberRepository
    attendance_repo: AttendanceRepository

    auth_service: AuthService
    member_service: MemberService
    attendance_service: AttendanceService
    stats_service: StatsService

    conn: Optional[DatabaseConnection] = None


def wire(
    *,
    members_repo: MemberRepository,
    attendance_repo: AttendanceRepository,
    auth_service: AuthService,
    transaction_factory: Optional[Callable[[], ContextManager[Any]]] = None,
    conn: Optional[DatabaseConnection] = None,
    today: Callable[[], date] = today_local,
) -> Container:
    """Build the services on top of any repository implementation."""

    # Members and attendance share the lock table: both rewrite the member row.
    locks = KeyedLock()
    member_service = MemberService(members_repo, transaction=transaction_factory, locks=locks)
    attendance_service = AttendanceService(
        attendance_repo,
        members_repo,
        transaction=transaction_factory,
        locks=locks,
        today=today,
    )
    return Container(
        members_repo=members_repo,
        attendance_repo=attendance_repo,
        auth_service=auth_service,
        member_service=member_service,
        attendance_service=attendance_service,
        stats_service=StatsService(members_repo),
        conn=conn,
    )


def build_auth_service(settings: Any) -> AuthService:
    return AuthService(
        admin_username=str(getattr(settings, "ADMIN_USERNAME", "admin")),
        admin_password_hash=generate_password_hash(str(getattr(settings, "ADMIN_PASSWORD"))),
        secret_key=str(getattr(settings, "SECRET_KEY")),
        algorithm=str(getattr(settings, "JWT_ALGORITHM", DEFAULT_JWT_ALGORITHM)),
        ttl_hours=int(getattr(settings, "TOKEN_TTL_HOURS", DEFAULT_TOKEN_TTL_HOURS)),
    )


def build_container(*, db_config: dict, settings: Any) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        members_repo=MySQLMemberRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        auth_service=build_auth_service(settings),
        transaction_factory=partial(transaction, conn),
        conn=conn,
    )

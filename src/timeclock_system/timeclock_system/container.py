from __future__ import annotations

from dataclasses import dataclass

from .database.connection import DBConfig, DatabaseConnection
from .reports.service import ReportService
from .time_entries.mysql_time_entry_repository import MySQLTimeEntryRepository
from .time_entries.repository import TimeEntryRepository
from .time_entries.service import ShiftService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .workplaces.matcher import ClockInMatcher
from .workplaces.mysql_assignment_repository import MySQLAssignmentRepository
from .workplaces.mysql_workplace_repository import MySQLWorkplaceRepository
from .workplaces.repository import AssignmentRepository, WorkplaceRepository
from .workplaces.service import WorkplaceService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    workplaces_repo: WorkplaceRepository
    assignments_repo: AssignmentRepository
    time_entries_repo: TimeEntryRepository

    auth_service: AuthService
    user_service: UserService
    workplace_service: WorkplaceService
    shift_service: ShiftService
    report_service: ReportService


def wire_container(
    *,
    users_repo: UserRepository,
    workplaces_repo: WorkplaceRepository,
    assignments_repo: AssignmentRepository,
    time_entries_repo: TimeEntryRepository,
    matcher: ClockInMatcher | None = None,
) -> Container:
    """Build services on top of the given repositories (MySQL or in-memory)."""

    return Container(
        users_repo=users_repo,
        workplaces_repo=workplaces_repo,
        assignments_repo=assignments_repo,
        time_entries_repo=time_entries_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        workplace_service=WorkplaceService(workplaces_repo, assignments_repo, users_repo),
        shift_service=ShiftService(
            time_entries_repo,
            assignments_repo,
            workplaces_repo,
            users_repo,
            matcher=matcher or ClockInMatcher(),
        ),
        report_service=ReportService(users_repo, workplaces_repo, assignments_repo, time_entries_repo),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        workplaces_repo=MySQLWorkplaceRepository(conn),
        assignments_repo=MySQLAssignmentRepository(conn),
        time_entries_repo=MySQLTimeEntryRepository(conn),
    )

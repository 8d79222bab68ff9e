from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.constants import ADMIN_RECENT_LIMIT, WORKER_HISTORY_LIMIT
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..time_entries.model import TimeEntry, TimeEntryView
from ..time_entries.repository import TimeEntryRepository
from ..time_entries.stats import WorkerStats, compute_worker_stats
from ..users.model import UserProfile
from ..users.repository import UserRepository
from ..workplaces.model import Workplace
from ..workplaces.repository import AssignmentRepository, WorkplaceRepository


@dataclass(frozen=True)
class WorkerDashboard:
    profile: Optional[UserProfile]
    workplaces: Sequence[Workplace]
    active_entry: Optional[TimeEntry]
    recent_entries: Sequence[TimeEntryView]

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.to_dict() if self.profile else None,
            "workplaces": [w.to_dict() for w in self.workplaces],
            "active_entry": self.active_entry.to_dict() if self.active_entry else None,
            "recent_entries": [e.to_dict() for e in self.recent_entries],
        }


@dataclass(frozen=True)
class AdminDashboard:
    workers: Sequence[dict]
    workplaces: Sequence[Workplace]
    open_entries: Sequence[TimeEntry]
    recent_entries: Sequence[TimeEntryView]

    def to_dict(self) -> dict:
        return {
            "workers": list(self.workers),
            "workplaces": [w.to_dict() for w in self.workplaces],
            "open_entries": [e.to_dict() for e in self.open_entries],
            "recent_entries": [e.to_dict() for e in self.recent_entries],
        }


@dataclass(frozen=True)
class WorkerDetail:
    profile: UserProfile
    workplaces: Sequence[Workplace]
    time_entries: Sequence[TimeEntry]
    active_entry: Optional[TimeEntry]
    stats: WorkerStats

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.to_dict(),
            "workplaces": [w.to_dict() for w in self.workplaces],
            "time_entries": [e.to_dict() for e in self.time_entries],
            "active_entry": self.active_entry.to_dict() if self.active_entry else None,
            "stats": self.stats.to_dict(),
        }


class ReportService:
    """Read side: dashboards and per-worker statistics."""

    def __init__(
        self,
        users: UserRepository,
        workplaces: WorkplaceRepository,
        assignments: AssignmentRepository,
        time_entries: TimeEntryRepository,
    ):
        self._users = users
        self._workplaces = workplaces
        self._assignments = assignments
        self._entries = time_entries

    def worker_stats(self, worker_id: str, *, now: datetime | None = None) -> WorkerStats:
        entries = self._entries.list_for_worker(worker_id)
        return compute_worker_stats(entries, now or now_utc())

    def worker_dashboard(self, worker_id: str, *, history_limit: int = WORKER_HISTORY_LIMIT) -> WorkerDashboard:
        return WorkerDashboard(
            profile=self._users.get_by_id(worker_id),
            workplaces=self._assignments.list_workplaces_for_worker(worker_id),
            active_entry=self._entries.get_open_for_worker(worker_id),
            recent_entries=self._entries.list_recent_views(limit=history_limit, worker_id=worker_id),
        )

    def admin_dashboard(self, *, current_role: Role, recent_limit: int = ADMIN_RECENT_LIMIT) -> AdminDashboard:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admins only")

        by_worker = self._assignments.list_workplaces_by_worker()
        open_entries = list(self._entries.list_open())
        open_by_worker = {e.worker_id: e for e in open_entries}

        workers = []
        for user in self._users.list_all():
            row = user.to_dict()
            row["workplaces"] = [w.to_dict() for w in by_worker.get(user.user_id, [])]
            active = open_by_worker.get(user.user_id)
            row["active_entry"] = active.to_dict() if active else None
            workers.append(row)

        return AdminDashboard(
            workers=workers,
            workplaces=self._workplaces.list_all(),
            open_entries=open_entries,
            recent_entries=self._entries.list_recent_views(limit=recent_limit),
        )

    def worker_detail(self, *, current_role: Role, worker_id: str, now: datetime | None = None) -> WorkerDetail:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admins only")

        profile = self._users.get_by_id(worker_id)
        if not profile:
            raise NotFoundError("Worker not found")

        entries = self._entries.list_for_worker(worker_id)
        active = next((e for e in entries if e.is_open), None)
        return WorkerDetail(
            profile=profile,
            workplaces=self._assignments.list_workplaces_for_worker(worker_id),
            time_entries=entries,
            active_entry=active,
            stats=compute_worker_stats(entries, now or now_utc()),
        )

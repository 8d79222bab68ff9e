from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, require_identifier, require_latitude, require_longitude
from ..core.enums import ClockAction, EntryMethod, Role
from ..core.exceptions import (
    AlreadyClockedInError,
    AuthorizationError,
    NoActiveShiftAtWorkplaceError,
    NotClockedInError,
    NotFoundError,
    ValidationError,
)
from ..workplaces.matcher import ClockInMatcher, WorkplaceMatch
from ..users.repository import UserRepository
from ..workplaces.repository import AssignmentRepository, WorkplaceRepository
from .model import TimeEntry
from .repository import TimeEntryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockInResult:
    entry: TimeEntry
    match: WorkplaceMatch


class ShiftService:
    """Shift state machine: a worker is either Off (no open entry) or On (one open entry).

    Only clock-in (Off -> On) and clock-out (On -> Off) exist. The final
    check-and-write of each transition is delegated to the repository's atomic
    operations, so a lost race is reported as the same rejection as a plain
    invalid transition.
    """

    def __init__(
        self,
        time_entries: TimeEntryRepository,
        assignments: AssignmentRepository,
        workplaces: WorkplaceRepository,
        users: UserRepository,
        *,
        matcher: ClockInMatcher | None = None,
    ):
        self._entries = time_entries
        self._assignments = assignments
        self._workplaces = workplaces
        self._users = users
        self._matcher = matcher or ClockInMatcher()

    def get_active_entry(self, worker_id: str) -> Optional[TimeEntry]:
        return self._entries.get_open_for_worker(worker_id)

    def clock_in(
        self,
        worker_id: str,
        workplace_id: str,
        *,
        method: EntryMethod,
        actor_id: str,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> TimeEntry:
        now = now or now_utc()

        if self._entries.get_open_for_worker(worker_id):
            logger.warning("Clock-in rejected for worker %s: already clocked in", worker_id)
            raise AlreadyClockedInError()

        entry = self._entries.insert_open_entry(
            worker_id=worker_id,
            workplace_id=workplace_id,
            clock_in_at=now,
            method=method,
            created_by=actor_id,
            notes=optional_text(notes),
        )
        if entry is None:
            logger.warning("Clock-in rejected for worker %s: concurrent open entry", worker_id)
            raise AlreadyClockedInError()

        logger.info(
            "Worker %s clocked in at workplace %s (method=%s, by=%s)",
            worker_id,
            workplace_id,
            method.value,
            actor_id,
        )
        return entry

    def worker_clock_in(
        self,
        worker_id: str,
        latitude: Any,
        longitude: Any,
        *,
        now: datetime | None = None,
    ) -> ClockInResult:
        """Self-service clock-in: the position must fall inside an assigned geofence."""

        lat = require_latitude(latitude)
        lon = require_longitude(longitude)

        workplaces = self._assignments.list_workplaces_for_worker(worker_id)
        match = self._matcher.match(latitude=lat, longitude=lon, workplaces=workplaces)
        logger.debug(
            "Worker %s matched workplace %s at %.1fm",
            worker_id,
            match.workplace.workplace_id,
            match.distance_m,
        )

        entry = self.clock_in(
            worker_id,
            match.workplace.workplace_id,
            method=EntryMethod.SELF,
            actor_id=worker_id,
            now=now,
        )
        return ClockInResult(entry=entry, match=match)

    def clock_out(
        self,
        worker_id: str,
        *,
        method: EntryMethod,
        actor_id: str,
        workplace_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> TimeEntry:
        now = now or now_utc()
        error = NoActiveShiftAtWorkplaceError if workplace_id is not None else NotClockedInError

        entry = self._entries.get_open_for_worker(worker_id, workplace_id=workplace_id)
        if not entry:
            logger.warning("Clock-out rejected for worker %s: %s", worker_id, error.default_message)
            raise error()

        if now < entry.clock_in_at:
            raise ValidationError("Clock-out time cannot be before clock-in time")

        if not self._entries.close_entry(entry_id=entry.entry_id, clock_out_at=now, method=method, actor_id=actor_id):
            logger.warning("Clock-out rejected for worker %s: entry %s already closed", worker_id, entry.entry_id)
            raise error()

        logger.info(
            "Worker %s clocked out of entry %s (method=%s, by=%s)",
            worker_id,
            entry.entry_id,
            method.value,
            actor_id,
        )
        return replace(entry, clock_out_at=now, method=method, created_by=actor_id)

    def worker_clock_out(self, worker_id: str, *, now: datetime | None = None) -> TimeEntry:
        return self.clock_out(worker_id, method=EntryMethod.SELF, actor_id=worker_id, now=now)

    def admin_clock(
        self,
        *,
        current_role: Role,
        admin_id: str,
        worker_id: str,
        workplace_id: str,
        action: Any,
        now: datetime | None = None,
    ) -> TimeEntry:
        """Admin override: clock a worker in or out without geofence checks."""

        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can clock workers in or out")

        worker_id = require_identifier(worker_id, "Worker")
        workplace_id = require_identifier(workplace_id, "Workplace")
        try:
            action = ClockAction(action)
        except ValueError:
            raise ValidationError("Action must be clock-in or clock-out")

        if not self._users.get_by_id(worker_id):
            raise NotFoundError("Worker not found")

        if action == ClockAction.CLOCK_IN:
            if not self._workplaces.get_by_id(workplace_id):
                raise NotFoundError("Workplace not found")
            return self.clock_in(worker_id, workplace_id, method=EntryMethod.ADMIN, actor_id=admin_id, now=now)

        return self.clock_out(
            worker_id,
            method=EntryMethod.ADMIN,
            actor_id=admin_id,
            workplace_id=workplace_id,
            now=now,
        )

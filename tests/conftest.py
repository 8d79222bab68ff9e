from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.timeclock_system.timeclock_system.container import wire_container
from src.timeclock_system.timeclock_system.core.enums import EntryMethod, Role
from src.timeclock_system.timeclock_system.time_entries.model import TimeEntry, TimeEntryView
from src.timeclock_system.timeclock_system.users.model import UserProfile
from src.timeclock_system.timeclock_system.workplaces.model import WorkerAssignment, Workplace


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryWorkplaces:
    def __init__(self):
        self.by_id: dict[str, Workplace] = {}

    def add(self, workplace: Workplace) -> Workplace:
        self.by_id[workplace.workplace_id] = workplace
        return workplace

    def list_all(self):
        return sorted(self.by_id.values(), key=lambda w: w.name)

    def get_by_id(self, workplace_id):
        return self.by_id.get(workplace_id)

    def create(self, *, name, description, latitude, longitude, radius_m, now):
        wid = _new_id()
        self.by_id[wid] = Workplace(
            workplace_id=wid,
            name=name,
            latitude=latitude,
            longitude=longitude,
            radius_m=radius_m,
            description=description,
            created_at=now,
            updated_at=now,
        )
        return wid

    def update(self, *, workplace_id, name, description, latitude, longitude, radius_m, now):
        current = self.by_id.get(workplace_id)
        if not current:
            return False
        self.by_id[workplace_id] = replace(
            current,
            name=name,
            description=description,
            latitude=latitude,
            longitude=longitude,
            radius_m=radius_m,
            updated_at=now,
        )
        return True

    def delete(self, workplace_id):
        return self.by_id.pop(workplace_id, None) is not None


class InMemoryAssignments:
    def __init__(self, workplaces: InMemoryWorkplaces):
        self._workplaces = workplaces
        self.items: list[WorkerAssignment] = []

    def _ordered(self, worker_id):
        mine = [a for a in self.items if a.worker_id == worker_id]
        return sorted(mine, key=lambda a: (a.assigned_at, a.workplace_id))

    def list_workplaces_for_worker(self, worker_id):
        found = (self._workplaces.get_by_id(a.workplace_id) for a in self._ordered(worker_id))
        return [w for w in found if w is not None]

    def list_for_worker(self, worker_id):
        return self._ordered(worker_id)

    def list_workplaces_by_worker(self):
        return {wid: self.list_workplaces_for_worker(wid) for wid in {a.worker_id for a in self.items}}

    def assign(self, *, worker_id, workplace_id, now):
        if any(a.worker_id == worker_id and a.workplace_id == workplace_id for a in self.items):
            return False
        self.items.append(WorkerAssignment(_new_id(), worker_id, workplace_id, now))
        return True

    def remove(self, *, worker_id, workplace_id):
        before = len(self.items)
        self.items = [a for a in self.items if not (a.worker_id == worker_id and a.workplace_id == workplace_id)]
        return len(self.items) < before


class InMemoryUsers:
    def __init__(self, assignments: InMemoryAssignments):
        self._assignments = assignments
        self.by_id: dict[str, UserProfile] = {}

    def add(self, profile: UserProfile) -> UserProfile:
        self.by_id[profile.user_id] = profile
        return profile

    def get_by_id(self, user_id):
        return self.by_id.get(user_id)

    def get_by_email(self, email):
        return next((u for u in self.by_id.values() if u.email == email), None)

    def list_all(self):
        return sorted(self.by_id.values(), key=lambda u: u.email)

    def create_user(self, *, email, password_hash, full_name, phone, role, now, workplace_id=None):
        uid = _new_id()
        self.by_id[uid] = UserProfile(
            user_id=uid,
            email=email,
            role=role,
            password_hash=password_hash,
            full_name=full_name,
            phone=phone,
            created_at=now,
            updated_at=now,
        )
        if workplace_id:
            self._assignments.assign(worker_id=uid, workplace_id=workplace_id, now=now)
        return uid

    def update_profile(self, user_id, *, changes, now):
        current = self.by_id.get(user_id)
        if not current:
            return False
        self.by_id[user_id] = replace(current, updated_at=now, **changes)
        return True

    def delete_by_id(self, user_id):
        return self.by_id.pop(user_id, None) is not None


class InMemoryTimeEntries:
    """Mirrors the MySQL repository's conditional writes under a lock."""

    def __init__(self, users: InMemoryUsers, workplaces: InMemoryWorkplaces):
        self._users = users
        self._workplaces = workplaces
        self._lock = threading.Lock()
        self.by_id: dict[str, TimeEntry] = {}

    def add(self, entry: TimeEntry) -> TimeEntry:
        self.by_id[entry.entry_id] = entry
        return entry

    def get_open_for_worker(self, worker_id, *, workplace_id=None):
        with self._lock:
            snapshot = list(self.by_id.values())
        for e in snapshot:
            if e.worker_id == worker_id and e.is_open:
                if workplace_id is None or e.workplace_id == workplace_id:
                    return e
        return None

    def insert_open_entry(self, *, worker_id, workplace_id, clock_in_at, method, created_by, notes=None):
        with self._lock:
            if any(e.worker_id == worker_id and e.is_open for e in self.by_id.values()):
                return None
            entry = TimeEntry(
                entry_id=_new_id(),
                worker_id=worker_id,
                workplace_id=workplace_id,
                clock_in_at=clock_in_at,
                clock_out_at=None,
                method=method,
                created_by=created_by,
                notes=notes,
                created_at=clock_in_at,
            )
            self.by_id[entry.entry_id] = entry
            return entry

    def close_entry(self, *, entry_id, clock_out_at, method, actor_id):
        with self._lock:
            entry = self.by_id.get(entry_id)
            if not entry or not entry.is_open:
                return False
            self.by_id[entry_id] = replace(entry, clock_out_at=clock_out_at, method=method, created_by=actor_id)
            return True

    def list_for_worker(self, worker_id, *, limit=None):
        items = sorted(
            (e for e in self.by_id.values() if e.worker_id == worker_id),
            key=lambda e: e.clock_in_at,
            reverse=True,
        )
        return items[:limit] if limit is not None else items

    def list_open(self):
        with self._lock:
            return [e for e in self.by_id.values() if e.is_open]

    def list_recent_views(self, *, limit, worker_id=None):
        items = sorted(self.by_id.values(), key=lambda e: e.clock_in_at, reverse=True)
        if worker_id is not None:
            items = [e for e in items if e.worker_id == worker_id]

        views = []
        for e in items[:limit]:
            workplace: Optional[Workplace] = self._workplaces.get_by_id(e.workplace_id) if e.workplace_id else None
            worker = self._users.get_by_id(e.worker_id)
            views.append(
                TimeEntryView(
                    entry_id=e.entry_id,
                    worker_id=e.worker_id,
                    workplace_id=e.workplace_id,
                    clock_in_at=e.clock_in_at,
                    clock_out_at=e.clock_out_at,
                    method=e.method,
                    workplace_name=workplace.name if workplace else None,
                    worker_name=worker.display_name if worker else None,
                    worker_email=worker.email if worker else None,
                )
            )
        return views


class Store:
    """Bundle of in-memory repositories plus a few builders for test data."""

    def __init__(self):
        self.workplaces = InMemoryWorkplaces()
        self.assignments = InMemoryAssignments(self.workplaces)
        self.users = InMemoryUsers(self.assignments)
        self.time_entries = InMemoryTimeEntries(self.users, self.workplaces)

    def workplace(self, name, latitude, longitude, radius_m=50.0, workplace_id=None) -> Workplace:
        return self.workplaces.add(
            Workplace(
                workplace_id=workplace_id or _new_id(),
                name=name,
                latitude=latitude,
                longitude=longitude,
                radius_m=radius_m,
            )
        )

    def user(self, email, *, role=Role.WORKER, password="password123", full_name=None) -> UserProfile:
        return self.users.add(
            UserProfile(
                user_id=_new_id(),
                email=email,
                role=role,
                password_hash=generate_password_hash(password),
                full_name=full_name,
            )
        )

    def assign(self, worker: UserProfile, workplace: Workplace, at: datetime) -> None:
        self.assignments.assign(worker_id=worker.user_id, workplace_id=workplace.workplace_id, now=at)

    def entry(self, worker: UserProfile, clock_in_at, clock_out_at=None, workplace: Workplace | None = None) -> TimeEntry:
        return self.time_entries.add(
            TimeEntry(
                entry_id=_new_id(),
                worker_id=worker.user_id,
                workplace_id=workplace.workplace_id if workplace else None,
                clock_in_at=clock_in_at,
                clock_out_at=clock_out_at,
                method=EntryMethod.SEED,
                created_by=None,
            )
        )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture
def container(store):
    return wire_container(
        users_repo=store.users,
        workplaces_repo=store.workplaces,
        assignments_repo=store.assignments,
        time_entries_repo=store.time_entries,
    )

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from src.timeclock_system.timeclock_system.core.enums import EntryMethod, Role
from src.timeclock_system.timeclock_system.core.exceptions import (
    AlreadyClockedInError,
    AuthorizationError,
    NoActiveShiftAtWorkplaceError,
    NoAssignmentsError,
    NotClockedInError,
    NotFoundError,
    OutOfRangeError,
    ValidationError,
)
from src.timeclock_system.timeclock_system.time_entries.service import ShiftService


@pytest.fixture
def site(store):
    return store.workplace("Plant", 40.0, -74.0, radius_m=100.0)


@pytest.fixture
def worker(store, site, fixed_now):
    w = store.user("worker@example.com", full_name="Wendy Worker")
    store.assign(w, site, fixed_now - timedelta(days=30))
    return w


@pytest.fixture
def admin(store):
    return store.user("admin@example.com", role=Role.ADMIN)


def test_clock_in_inside_geofence(container, worker, site, fixed_now):
    result = container.shift_service.worker_clock_in(worker.user_id, "40.0002", -74.0, now=fixed_now)

    assert result.match.workplace.workplace_id == site.workplace_id
    assert result.entry.is_open
    assert result.entry.clock_in_at == fixed_now
    assert result.entry.method == EntryMethod.SELF
    assert result.entry.created_by == worker.user_id
    assert container.shift_service.get_active_entry(worker.user_id) == result.entry


def test_second_clock_in_is_rejected(container, store, worker, fixed_now):
    container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)

    with pytest.raises(AlreadyClockedInError):
        container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now + timedelta(minutes=5))

    assert len(store.time_entries.list_for_worker(worker.user_id)) == 1


def test_clock_in_without_assignments(container, store, fixed_now):
    loner = store.user("loner@example.com")
    with pytest.raises(NoAssignmentsError):
        container.shift_service.worker_clock_in(loner.user_id, 40.0, -74.0, now=fixed_now)
    assert store.time_entries.list_open() == []


def test_clock_in_out_of_range(container, store, worker, fixed_now):
    with pytest.raises(OutOfRangeError):
        container.shift_service.worker_clock_in(worker.user_id, 40.01, -74.0, now=fixed_now)
    assert store.time_entries.list_open() == []


@pytest.mark.parametrize("lat, lon", [(None, -74.0), ("abc", -74.0), (90.5, -74.0), (40.0, 181), (True, -74.0)])
def test_clock_in_rejects_bad_coordinates(container, worker, lat, lon):
    with pytest.raises(ValidationError):
        container.shift_service.worker_clock_in(worker.user_id, lat, lon)


def test_out_of_range_is_checked_before_open_shift(container, worker, fixed_now):
    container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)
    with pytest.raises(OutOfRangeError):
        container.shift_service.worker_clock_in(worker.user_id, 41.0, -74.0, now=fixed_now)


def test_clock_out_closes_the_open_shift(container, worker, fixed_now):
    container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)

    closed = container.shift_service.worker_clock_out(worker.user_id, now=fixed_now + timedelta(hours=8))

    assert closed.clock_out_at == fixed_now + timedelta(hours=8)
    assert container.shift_service.get_active_entry(worker.user_id) is None


def test_clock_out_when_off(container, worker):
    with pytest.raises(NotClockedInError) as exc:
        container.shift_service.worker_clock_out(worker.user_id)
    assert exc.value.kind == "NotClockedIn"


def test_clock_out_before_clock_in_is_rejected(container, worker, fixed_now):
    container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)

    with pytest.raises(ValidationError):
        container.shift_service.worker_clock_out(worker.user_id, now=fixed_now - timedelta(seconds=1))

    assert container.shift_service.get_active_entry(worker.user_id) is not None


def test_zero_length_shift_is_allowed(container, worker, fixed_now):
    container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)
    closed = container.shift_service.worker_clock_out(worker.user_id, now=fixed_now)
    assert closed.clock_out_at == closed.clock_in_at


def test_admin_clock_in_skips_geofence(container, worker, admin, site, fixed_now):
    entry = container.shift_service.admin_clock(
        current_role=Role.ADMIN,
        admin_id=admin.user_id,
        worker_id=worker.user_id,
        workplace_id=site.workplace_id,
        action="clock-in",
        now=fixed_now,
    )
    assert entry.method == EntryMethod.ADMIN
    assert entry.created_by == admin.user_id

    out = container.shift_service.admin_clock(
        current_role=Role.ADMIN,
        admin_id=admin.user_id,
        worker_id=worker.user_id,
        workplace_id=site.workplace_id,
        action="clock-out",
        now=fixed_now + timedelta(hours=1),
    )
    assert out.entry_id == entry.entry_id
    assert not out.is_open


def test_admin_clock_out_at_other_workplace(container, store, worker, admin, fixed_now):
    other = store.workplace("Other", 10.0, 10.0)
    container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)

    with pytest.raises(NoActiveShiftAtWorkplaceError) as exc:
        container.shift_service.admin_clock(
            current_role=Role.ADMIN,
            admin_id=admin.user_id,
            worker_id=worker.user_id,
            workplace_id=other.workplace_id,
            action="clock-out",
        )
    assert exc.value.message == "no active shift found"


def test_admin_clock_in_unknown_workplace(container, worker, admin):
    with pytest.raises(NotFoundError):
        container.shift_service.admin_clock(
            current_role=Role.ADMIN,
            admin_id=admin.user_id,
            worker_id=worker.user_id,
            workplace_id="missing",
            action="clock-in",
        )


def test_admin_clock_bad_action(container, worker, admin, site):
    with pytest.raises(ValidationError):
        container.shift_service.admin_clock(
            current_role=Role.ADMIN,
            admin_id=admin.user_id,
            worker_id=worker.user_id,
            workplace_id=site.workplace_id,
            action="pause",
        )


def test_admin_clock_requires_admin(container, worker, site):
    with pytest.raises(AuthorizationError):
        container.shift_service.admin_clock(
            current_role=Role.WORKER,
            admin_id=worker.user_id,
            worker_id=worker.user_id,
            workplace_id=site.workplace_id,
            action="clock-in",
        )


def test_concurrent_clock_ins_create_one_entry(container, store, worker, fixed_now):
    attempts = 8
    barrier = threading.Barrier(attempts)
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)
            result = "ok"
        except AlreadyClockedInError:
            result = "rejected"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("rejected") == attempts - 1
    assert len(store.time_entries.list_open()) == 1


def test_concurrent_clock_outs_close_once(container, worker, fixed_now):
    container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)
    attempts = 6
    barrier = threading.Barrier(attempts)
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            container.shift_service.worker_clock_out(worker.user_id, now=fixed_now + timedelta(hours=1))
            result = "ok"
        except NotClockedInError:
            result = "rejected"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1


class StaleReadEntries:
    """Wraps a repository so the pre-check never sees an open entry."""

    def __init__(self, inner):
        self._inner = inner

    def get_open_for_worker(self, worker_id, *, workplace_id=None):
        return None

    def __getattr__(self, name):
        return getattr(self._inner, name)


def test_lost_insert_race_reports_already_clocked_in(store, worker, fixed_now):
    service = ShiftService(StaleReadEntries(store.time_entries), store.assignments, store.workplaces, store.users)
    service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)

    with pytest.raises(AlreadyClockedInError):
        service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)
    assert len(store.time_entries.list_open()) == 1


def test_clock_in_at_the_workplace_center(container, store, fixed_now):
    nyc = store.workplace("NYC", 40.7128, -74.0060, radius_m=100.0)
    worker = store.user("nyc@example.com")
    store.assign(worker, nyc, fixed_now)

    result = container.shift_service.worker_clock_in(worker.user_id, 40.7128, -74.0060, now=fixed_now)
    assert result.entry.clock_out_at is None
    assert result.match.distance_m == 0

    with pytest.raises(AlreadyClockedInError):
        container.shift_service.worker_clock_in(worker.user_id, 40.7128, -74.0060, now=fixed_now)

    out_at = fixed_now + timedelta(minutes=45)
    closed = container.shift_service.worker_clock_out(worker.user_id, now=out_at)
    assert closed.clock_out_at == out_at
    assert store.time_entries.by_id[closed.entry_id].clock_out_at == out_at


def test_admin_clock_in_unknown_worker(container, store, admin, site):
    with pytest.raises(NotFoundError) as exc:
        container.shift_service.admin_clock(
            current_role=Role.ADMIN,
            admin_id=admin.user_id,
            worker_id="no-such-worker",
            workplace_id=site.workplace_id,
            action="clock-in",
        )
    assert exc.value.message == "Worker not found"
    assert store.time_entries.list_open() == []


def test_admin_clock_out_unknown_worker(container, admin, site):
    with pytest.raises(NotFoundError):
        container.shift_service.admin_clock(
            current_role=Role.ADMIN,
            admin_id=admin.user_id,
            worker_id="no-such-worker",
            workplace_id=site.workplace_id,
            action="clock-out",
        )


def test_concurrent_clock_out_and_clock_in(container, store, worker, fixed_now):
    container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=fixed_now)
    later = fixed_now + timedelta(hours=1)
    barrier = threading.Barrier(2)
    failures: list[Exception] = []
    failures_lock = threading.Lock()

    def run(call):
        barrier.wait()
        try:
            call()
        except (AlreadyClockedInError, NotClockedInError) as e:
            with failures_lock:
                failures.append(e)

    threads = [
        threading.Thread(target=run, args=(lambda: container.shift_service.worker_clock_out(worker.user_id, now=later),)),
        threading.Thread(
            target=run,
            args=(lambda: container.shift_service.worker_clock_in(worker.user_id, 40.0, -74.0, now=later),),
        ),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    open_entries = store.time_entries.list_open()
    assert len(open_entries) <= 1
    # clock-in either followed the clock-out, or lost to the still-open shift
    if failures:
        assert [type(e) for e in failures] == [AlreadyClockedInError]
        assert open_entries == []
    else:
        assert len(open_entries) == 1
        assert open_entries[0].clock_in_at == later
    assert len(store.time_entries.list_for_worker(worker.user_id)) == (1 if failures else 2)

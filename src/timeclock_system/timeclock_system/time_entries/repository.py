from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import EntryMethod
from .model import TimeEntry, TimeEntryView


class TimeEntryRepository(Protocol):
    """Storage contract for time entries.

    The two write operations are atomic conditional writes: at most one open
    entry per worker can exist no matter how many callers race.
    """

    def get_open_for_worker(self, worker_id: str, *, workplace_id: Optional[str] = None) -> Optional[TimeEntry]:
        raise NotImplementedError

    def insert_open_entry(
        self,
        *,
        worker_id: str,
        workplace_id: str,
        clock_in_at: datetime,
        method: EntryMethod,
        created_by: str,
        notes: Optional[str] = None,
    ) -> Optional[TimeEntry]:
        """Insert an open entry unless the worker already has one.

        Returns the new entry, or None when an open entry exists (nothing written).
        """

        raise NotImplementedError

    def close_entry(
        self,
        *,
        entry_id: str,
        clock_out_at: datetime,
        method: EntryMethod,
        actor_id: str,
    ) -> bool:
        """Set clock_out_at on the entry only if it is still open.

        Returns False when the entry is missing or was closed concurrently.
        """

        raise NotImplementedError

    def list_for_worker(self, worker_id: str, *, limit: Optional[int] = None) -> Sequence[TimeEntry]:
        """Entries of a worker, newest clock_in_at first."""

        raise NotImplementedError

    def list_open(self) -> Sequence[TimeEntry]:
        raise NotImplementedError

    def list_recent_views(self, *, limit: int, worker_id: Optional[str] = None) -> Sequence[TimeEntryView]:
        raise NotImplementedError

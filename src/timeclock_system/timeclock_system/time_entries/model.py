from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import EntryMethod


@dataclass(frozen=True)
class TimeEntry:
    """Domain entity: one shift. ``clock_out_at is None`` means the shift is open."""

    entry_id: str
    worker_id: str
    workplace_id: Optional[str]
    clock_in_at: datetime
    clock_out_at: Optional[datetime]
    method: EntryMethod
    created_by: Optional[str]
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.clock_out_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "worker_id": self.worker_id,
            "workplace_id": self.workplace_id,
            "clock_in_at": to_iso(self.clock_in_at),
            "clock_out_at": to_iso(self.clock_out_at),
            "method": self.method.value,
            "created_by": self.created_by,
            "notes": self.notes,
            "created_at": to_iso(self.created_at),
        }


@dataclass(frozen=True)
class TimeEntryView:
    """Read-model for dashboards (entry joined with workplace and worker names)."""

    entry_id: str
    worker_id: str
    workplace_id: Optional[str]
    clock_in_at: datetime
    clock_out_at: Optional[datetime]
    method: EntryMethod
    workplace_name: Optional[str] = None
    worker_name: Optional[str] = None
    worker_email: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "worker_id": self.worker_id,
            "workplace_id": self.workplace_id,
            "workplace_name": self.workplace_name,
            "worker_name": self.worker_name,
            "worker_email": self.worker_email,
            "clock_in_at": to_iso(self.clock_in_at),
            "clock_out_at": to_iso(self.clock_out_at),
            "method": self.method.value,
        }

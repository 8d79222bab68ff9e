from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import to_iso
from ..core.constants import STATS_WINDOW_DAYS
from .model import TimeEntry

SECONDS_PER_HOUR = 3600


@dataclass(frozen=True)
class WorkerStats:
    total_hours_past_week: float
    total_shifts_past_week: int
    average_shift_duration_hours: float
    last_clock_in_at: Optional[datetime]
    last_clock_out_at: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "total_hours_past_week": self.total_hours_past_week,
            "total_shifts_past_week": self.total_shifts_past_week,
            "average_shift_duration_hours": self.average_shift_duration_hours,
            "last_clock_in_at": to_iso(self.last_clock_in_at),
            "last_clock_out_at": to_iso(self.last_clock_out_at),
        }


def compute_worker_stats(
    entries: Sequence[TimeEntry],
    now: datetime,
    *,
    window_days: int = STATS_WINDOW_DAYS,
) -> WorkerStats:
    """Trailing-window statistics for one worker.

    ``entries`` must be ordered by clock_in_at, newest first. An open entry
    counts as running until ``now``. Totals only count the part of each shift
    that falls inside ``[now - window_days, now]``; the average uses the full
    length of completed shifts that touch the window.
    """

    window_start = now - timedelta(days=window_days)

    last_clock_in_at = entries[0].clock_in_at if entries else None
    last_clock_out_at = next((e.clock_out_at for e in entries if e.clock_out_at is not None), None)

    total = timedelta(0)
    shifts = 0
    full_durations: list[timedelta] = []

    for entry in entries:
        end = entry.clock_out_at if entry.clock_out_at is not None else now
        if end < window_start:
            continue

        start = max(entry.clock_in_at, window_start)
        clipped_end = min(end, now)
        if clipped_end < start:
            # starts after the reference instant
            continue

        total += clipped_end - start
        shifts += 1

        if entry.clock_out_at is not None:
            full_durations.append(entry.clock_out_at - entry.clock_in_at)

    average = (
        sum(full_durations, timedelta(0)).total_seconds() / len(full_durations) / SECONDS_PER_HOUR
        if full_durations
        else 0.0
    )

    return WorkerStats(
        total_hours_past_week=total.total_seconds() / SECONDS_PER_HOUR,
        total_shifts_past_week=shifts,
        average_shift_duration_hours=average,
        last_clock_in_at=last_clock_in_at,
        last_clock_out_at=last_clock_out_at,
    )

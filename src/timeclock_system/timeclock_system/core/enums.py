from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role used for authorization checks."""

    ADMIN = "admin"
    WORKER = "worker"


class EntryMethod(str, Enum):
    """How a time entry was written."""

    SELF = "self"
    ADMIN = "admin"
    SEED = "seed"


class ClockAction(str, Enum):
    CLOCK_IN = "clock-in"
    CLOCK_OUT = "clock-out"

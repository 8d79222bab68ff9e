from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..common.geo import distance_m
from ..core.exceptions import NoAssignmentsError, OutOfRangeError
from .model import Workplace


@dataclass(frozen=True)
class WorkplaceMatch:
    workplace: Workplace
    distance_m: float


@dataclass
class ClockInMatcher:
    """Select the workplace a worker may clock in at from their position.

    A workplace is eligible when the distance to its center is at most
    ``radius_m`` (boundary inclusive). Among eligible workplaces the nearest
    one wins; equal distances keep the first one in input order, which the
    repository yields by assignment time.
    """

    def match(self, *, latitude: float, longitude: float, workplaces: Iterable[Optional[Workplace]]) -> WorkplaceMatch:
        candidates = [w for w in workplaces if w is not None]
        if not candidates:
            raise NoAssignmentsError()

        eligible: list[WorkplaceMatch] = []
        for workplace in candidates:
            distance = distance_m(workplace.latitude, workplace.longitude, latitude, longitude)
            if distance <= workplace.radius_m:
                eligible.append(WorkplaceMatch(workplace=workplace, distance_m=distance))

        if not eligible:
            raise OutOfRangeError()

        # min() returns the first of several equal keys
        return min(eligible, key=lambda m: m.distance_m)

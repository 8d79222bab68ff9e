from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from .model import WorkerAssignment, Workplace


class WorkplaceRepository(Protocol):
    def list_all(self) -> Sequence[Workplace]:
        raise NotImplementedError

    def get_by_id(self, workplace_id: str) -> Optional[Workplace]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        description: Optional[str],
        latitude: float,
        longitude: float,
        radius_m: float,
        now: datetime,
    ) -> str:
        """Insert a workplace and return its id."""

        raise NotImplementedError

    def update(
        self,
        *,
        workplace_id: str,
        name: str,
        description: Optional[str],
        latitude: float,
        longitude: float,
        radius_m: float,
        now: datetime,
    ) -> bool:
        raise NotImplementedError

    def delete(self, workplace_id: str) -> bool:
        """Delete a workplace.

        Assignments go with it; time entries keep their row with workplace_id set to NULL.
        """

        raise NotImplementedError


class AssignmentRepository(Protocol):
    def list_workplaces_for_worker(self, worker_id: str) -> Sequence[Workplace]:
        """Workplaces assigned to a worker, ordered by assigned_at then workplace id.

        Assignments whose workplace no longer exists are left out.
        """

        raise NotImplementedError

    def list_for_worker(self, worker_id: str) -> Sequence[WorkerAssignment]:
        raise NotImplementedError

    def list_workplaces_by_worker(self) -> Mapping[str, Sequence[Workplace]]:
        raise NotImplementedError

    def assign(self, *, worker_id: str, workplace_id: str, now: datetime) -> bool:
        """Create the (worker, workplace) pair; False when it already exists."""

        raise NotImplementedError

    def remove(self, *, worker_id: str, workplace_id: str) -> bool:
        raise NotImplementedError

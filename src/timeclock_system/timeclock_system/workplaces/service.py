from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import (
    optional_text,
    require_identifier,
    require_latitude,
    require_longitude,
    require_non_empty,
    require_radius,
)
from ..core.constants import DEFAULT_RADIUS_M
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import Workplace
from ..users.repository import UserRepository
from .repository import AssignmentRepository, WorkplaceRepository

logger = logging.getLogger(__name__)


class WorkplaceService:
    """Use case: manage workplaces and worker assignments (admin)."""

    def __init__(self, workplaces: WorkplaceRepository, assignments: AssignmentRepository, users: UserRepository):
        self._workplaces = workplaces
        self._assignments = assignments
        self._users = users

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can manage workplaces")

    def list_workplaces(self) -> Sequence[Workplace]:
        return self._workplaces.list_all()

    def get_workplace(self, workplace_id: str) -> Workplace:
        workplace = self._workplaces.get_by_id(workplace_id)
        if not workplace:
            raise NotFoundError("Workplace not found")
        return workplace

    def workplaces_for_worker(self, worker_id: str) -> Sequence[Workplace]:
        return self._assignments.list_workplaces_for_worker(worker_id)

    def upsert_workplace(
        self,
        *,
        current_role: Role,
        name: str,
        latitude: Any,
        longitude: Any,
        radius_m: Any = None,
        description: Optional[str] = None,
        workplace_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> str:
        """Create a workplace, or update it in place when ``workplace_id`` is given.

        Returns the workplace id.
        """

        self._require_admin(current_role)
        now = now or now_utc()

        fields = dict(
            name=require_non_empty(name, "Name"),
            description=optional_text(description),
            latitude=require_latitude(latitude),
            longitude=require_longitude(longitude),
            radius_m=require_radius(DEFAULT_RADIUS_M if radius_m in (None, "") else radius_m),
            now=now,
        )

        if workplace_id:
            if not self._workplaces.update(workplace_id=workplace_id, **fields):
                raise NotFoundError("Workplace not found")
            logger.info("Workplace %s updated", workplace_id)
            return workplace_id

        new_id = self._workplaces.create(**fields)
        logger.info("Workplace %s created (%s)", new_id, fields["name"])
        return new_id

    def delete_workplace(self, *, current_role: Role, workplace_id: str) -> None:
        self._require_admin(current_role)
        workplace_id = require_identifier(workplace_id, "Workplace")
        if not self._workplaces.delete(workplace_id):
            raise NotFoundError("Workplace not found")
        logger.info("Workplace %s deleted", workplace_id)

    def assign_worker(
        self,
        *,
        current_role: Role,
        worker_id: str,
        workplace_id: str,
        now: datetime | None = None,
    ) -> bool:
        """Assign a worker to a workplace.

        Assigning an existing pair again is a no-op; returns whether a new
        assignment was created.
        """

        self._require_admin(current_role)
        worker_id = require_identifier(worker_id, "Worker")
        workplace_id = require_identifier(workplace_id, "Workplace")
        self.get_workplace(workplace_id)
        if not self._users.get_by_id(worker_id):
            raise NotFoundError("Worker not found")

        created = self._assignments.assign(worker_id=worker_id, workplace_id=workplace_id, now=now or now_utc())
        if created:
            logger.info("Worker %s assigned to workplace %s", worker_id, workplace_id)
        return created

    def remove_assignment(self, *, current_role: Role, worker_id: str, workplace_id: str) -> None:
        self._require_admin(current_role)
        worker_id = require_identifier(worker_id, "Worker")
        workplace_id = require_identifier(workplace_id, "Workplace")
        if self._assignments.remove(worker_id=worker_id, workplace_id=workplace_id):
            logger.info("Worker %s unassigned from workplace %s", worker_id, workplace_id)

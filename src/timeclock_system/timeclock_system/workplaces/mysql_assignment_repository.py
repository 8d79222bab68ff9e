from __future__ import annotations

import uuid
from datetime import datetime
from typing import Dict, List, Sequence

from ..common.datetime_utils import ensure_utc, to_db_datetime
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, is_duplicate_key
from .model import WorkerAssignment, Workplace
from .mysql_workplace_repository import row_to_workplace
from .repository import AssignmentRepository


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_workplaces_for_worker(self, worker_id: str) -> Sequence[Workplace]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT w.workplace_id, w.name, w.description, w.latitude, w.longitude, w.radius_m,
                       w.created_at, w.updated_at
                FROM worker_assignments wa
                JOIN workplaces w ON w.workplace_id = wa.workplace_id
                WHERE wa.worker_id=%s
                ORDER BY wa.assigned_at ASC, wa.workplace_id ASC
                """,
                (worker_id,),
            )
            return [row_to_workplace(r) for r in fetchall(cur)]

    def list_for_worker(self, worker_id: str) -> Sequence[WorkerAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, worker_id, workplace_id, assigned_at
                FROM worker_assignments
                WHERE worker_id=%s
                ORDER BY assigned_at ASC, workplace_id ASC
                """,
                (worker_id,),
            )
            return [
                WorkerAssignment(
                    assignment_id=str(r["assignment_id"]),
                    worker_id=str(r["worker_id"]),
                    workplace_id=str(r["workplace_id"]),
                    assigned_at=ensure_utc(r["assigned_at"]),
                )
                for r in fetchall(cur)
            ]

    def list_workplaces_by_worker(self) -> Dict[str, List[Workplace]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT wa.worker_id,
                       w.workplace_id, w.name, w.description, w.latitude, w.longitude, w.radius_m,
                       w.created_at, w.updated_at
                FROM worker_assignments wa
                JOIN workplaces w ON w.workplace_id = wa.workplace_id
                ORDER BY wa.worker_id, wa.assigned_at ASC, wa.workplace_id ASC
                """
            )
            out: Dict[str, List[Workplace]] = {}
            for r in fetchall(cur):
                out.setdefault(str(r["worker_id"]), []).append(row_to_workplace(r))
            return out

    def assign(self, *, worker_id: str, workplace_id: str, now: datetime) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO worker_assignments(assignment_id, worker_id, workplace_id, assigned_at)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (str(uuid.uuid4()), worker_id, workplace_id, to_db_datetime(now)),
                )
        except Exception as e:
            if is_duplicate_key(e):
                return False
            raise
        return True

    def remove(self, *, worker_id: str, workplace_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM worker_assignments WHERE worker_id=%s AND workplace_id=%s",
                (worker_id, workplace_id),
            )
            return cur.rowcount > 0

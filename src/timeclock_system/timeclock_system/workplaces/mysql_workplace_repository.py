from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import ensure_utc, to_db_datetime
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Workplace
from .repository import WorkplaceRepository

WORKPLACE_COLUMNS = "workplace_id, name, description, latitude, longitude, radius_m, created_at, updated_at"


def row_to_workplace(r: dict) -> Workplace:
    return Workplace(
        workplace_id=str(r["workplace_id"]),
        name=r["name"],
        description=r.get("description"),
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        radius_m=float(r["radius_m"]),
        created_at=ensure_utc(r.get("created_at")),
        updated_at=ensure_utc(r.get("updated_at")),
    )


class MySQLWorkplaceRepository(WorkplaceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Workplace]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {WORKPLACE_COLUMNS} FROM workplaces ORDER BY name")
            return [row_to_workplace(r) for r in fetchall(cur)]

    def get_by_id(self, workplace_id: str) -> Optional[Workplace]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {WORKPLACE_COLUMNS} FROM workplaces WHERE workplace_id=%s",
                (workplace_id,),
            )
            r = fetchone(cur)
            return row_to_workplace(r) if r else None

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
        workplace_id = str(uuid.uuid4())
        ts = to_db_datetime(now)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO workplaces(workplace_id, name, description, latitude, longitude, radius_m, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (workplace_id, name, description, latitude, longitude, radius_m, ts, ts),
            )
        return workplace_id

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE workplaces
                SET name=%s, description=%s, latitude=%s, longitude=%s, radius_m=%s, updated_at=%s
                WHERE workplace_id=%s
                """,
                (name, description, latitude, longitude, radius_m, to_db_datetime(now), workplace_id),
            )
            return cur.rowcount > 0

    def delete(self, workplace_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM workplaces WHERE workplace_id=%s", (workplace_id,))
            return cur.rowcount > 0

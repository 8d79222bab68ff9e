from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import ensure_utc, to_db_datetime
from ..core.enums import EntryMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_transaction, fetchall, fetchone, is_duplicate_key
from .model import TimeEntry, TimeEntryView
from .repository import TimeEntryRepository

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = "entry_id, worker_id, workplace_id, clock_in_at, clock_out_at, method, created_by, notes, created_at"


def row_to_entry(r: dict) -> TimeEntry:
    return TimeEntry(
        entry_id=str(r["entry_id"]),
        worker_id=str(r["worker_id"]),
        workplace_id=str(r["workplace_id"]) if r.get("workplace_id") else None,
        clock_in_at=ensure_utc(r["clock_in_at"]),
        clock_out_at=ensure_utc(r.get("clock_out_at")),
        method=EntryMethod(r["method"]),
        created_by=str(r["created_by"]) if r.get("created_by") else None,
        notes=r.get("notes"),
        created_at=ensure_utc(r.get("created_at")),
    )


class MySQLTimeEntryRepository(TimeEntryRepository):
    """MySQL storage for time entries.

    Transitions lock the worker's profile row (``FOR UPDATE``) so that
    concurrent clock-in/clock-out calls for one worker run one after another.
    The ``uq_time_entries_open_worker`` unique index on the generated
    ``open_worker_id`` column backs the same rule at the schema level.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_open_for_worker(self, worker_id: str, *, workplace_id: Optional[str] = None) -> Optional[TimeEntry]:
        clauses = ["worker_id=%s", "clock_out_at IS NULL"]
        params: list[object] = [worker_id]
        if workplace_id is not None:
            clauses.append("workplace_id=%s")
            params.append(workplace_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {ENTRY_COLUMNS}
                FROM time_entries
                WHERE {" AND ".join(clauses)}
                ORDER BY clock_in_at DESC
                LIMIT 1
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return row_to_entry(r) if r else None

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
        entry_id = str(uuid.uuid4())
        ts = to_db_datetime(clock_in_at)
        try:
            with db_transaction(self._conn_factory, isolation_level="READ COMMITTED") as (_, cur):
                cur.execute("SELECT user_id FROM user_profiles WHERE user_id=%s FOR UPDATE", (worker_id,))
                fetchall(cur)
                cur.execute(
                    "SELECT entry_id FROM time_entries WHERE worker_id=%s AND clock_out_at IS NULL FOR UPDATE",
                    (worker_id,),
                )
                if fetchall(cur):
                    return None
                cur.execute(
                    """
                    INSERT INTO time_entries(entry_id, worker_id, workplace_id, clock_in_at, method, created_by, notes, created_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (entry_id, worker_id, workplace_id, ts, method.value, created_by, notes, ts),
                )
        except Exception as e:
            if is_duplicate_key(e):
                logger.warning("Open entry for worker %s rejected by unique index", worker_id)
                return None
            raise

        return TimeEntry(
            entry_id=entry_id,
            worker_id=worker_id,
            workplace_id=workplace_id,
            clock_in_at=ensure_utc(clock_in_at),
            clock_out_at=None,
            method=method,
            created_by=created_by,
            notes=notes,
            created_at=ensure_utc(clock_in_at),
        )

    def close_entry(
        self,
        *,
        entry_id: str,
        clock_out_at: datetime,
        method: EntryMethod,
        actor_id: str,
    ) -> bool:
        with db_transaction(self._conn_factory, isolation_level="READ COMMITTED") as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET clock_out_at=%s, method=%s, created_by=%s
                WHERE entry_id=%s AND clock_out_at IS NULL
                """,
                (to_db_datetime(clock_out_at), method.value, actor_id, entry_id),
            )
            return cur.rowcount == 1

    def list_for_worker(self, worker_id: str, *, limit: Optional[int] = None) -> Sequence[TimeEntry]:
        sql = f"""
            SELECT {ENTRY_COLUMNS}
            FROM time_entries
            WHERE worker_id=%s
            ORDER BY clock_in_at DESC
        """
        params: tuple = (worker_id,)
        if limit is not None:
            sql += " LIMIT %s"
            params = (worker_id, int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [row_to_entry(r) for r in fetchall(cur)]

    def list_open(self) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {ENTRY_COLUMNS}
                FROM time_entries
                WHERE clock_out_at IS NULL
                ORDER BY clock_in_at DESC
                """
            )
            return [row_to_entry(r) for r in fetchall(cur)]

    def list_recent_views(self, *, limit: int, worker_id: Optional[str] = None) -> Sequence[TimeEntryView]:
        where = "WHERE te.worker_id=%s" if worker_id is not None else ""
        params: list[object] = [worker_id] if worker_id is not None else []
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT te.entry_id, te.worker_id, te.workplace_id, te.clock_in_at, te.clock_out_at, te.method,
                       w.name AS workplace_name,
                       u.full_name AS worker_name, u.email AS worker_email
                FROM time_entries te
                LEFT JOIN workplaces w ON w.workplace_id = te.workplace_id
                LEFT JOIN user_profiles u ON u.user_id = te.worker_id
                {where}
                ORDER BY te.clock_in_at DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [
                TimeEntryView(
                    entry_id=str(r["entry_id"]),
                    worker_id=str(r["worker_id"]),
                    workplace_id=str(r["workplace_id"]) if r.get("workplace_id") else None,
                    clock_in_at=ensure_utc(r["clock_in_at"]),
                    clock_out_at=ensure_utc(r.get("clock_out_at")),
                    method=EntryMethod(r["method"]),
                    workplace_name=r.get("workplace_name"),
                    worker_name=r.get("worker_name"),
                    worker_email=r.get("worker_email"),
                )
                for r in fetchall(cur)
            ]

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import ensure_utc, to_db_datetime
from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_transaction, fetchall, fetchone, load_json_object
from .model import UserProfile
from .repository import UserRepository

USER_COLUMNS = "user_id, email, password_hash, full_name, phone, role, metadata, created_at, updated_at"
UPDATABLE_COLUMNS = ("full_name", "phone", "role", "password_hash")


def row_to_user(row: dict) -> UserProfile:
    return UserProfile(
        user_id=str(row["user_id"]),
        email=row["email"],
        password_hash=row["password_hash"],
        full_name=row.get("full_name"),
        phone=row.get("phone"),
        role=Role(row["role"]),
        metadata=load_json_object(row.get("metadata")),
        created_at=ensure_utc(row.get("created_at")),
        updated_at=ensure_utc(row.get("updated_at")),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {USER_COLUMNS} FROM user_profiles WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {USER_COLUMNS} FROM user_profiles WHERE email=%s", (email,))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def list_all(self) -> Sequence[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {USER_COLUMNS} FROM user_profiles ORDER BY created_at ASC")
            return [row_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        full_name: Optional[str],
        phone: Optional[str],
        role: Role,
        now: datetime,
        workplace_id: Optional[str] = None,
    ) -> str:
        user_id = str(uuid.uuid4())
        ts = to_db_datetime(now)
        with db_transaction(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_profiles(user_id, email, password_hash, full_name, phone, role, metadata, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,'{}',%s,%s)
                """,
                (user_id, email, password_hash, full_name, phone, role.value, ts, ts),
            )
            if workplace_id:
                cur.execute(
                    """
                    INSERT IGNORE INTO worker_assignments(assignment_id, worker_id, workplace_id, assigned_at)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (str(uuid.uuid4()), user_id, workplace_id, ts),
                )
        return user_id

    def update_profile(self, user_id: str, *, changes: dict, now: datetime) -> bool:
        items = [(k, v) for k, v in changes.items() if k in UPDATABLE_COLUMNS]
        if not items:
            return self.get_by_id(user_id) is not None

        params: list[object] = []
        assignments = []
        for column, value in items:
            assignments.append(f"{column}=%s")
            params.append(value.value if isinstance(value, Role) else value)
        params.extend([to_db_datetime(now), user_id])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE user_profiles SET {', '.join(assignments)}, updated_at=%s WHERE user_id=%s",
                tuple(params),
            )
            return cur.rowcount > 0

    def delete_by_id(self, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_profiles WHERE user_id=%s", (user_id,))
            return cur.rowcount > 0

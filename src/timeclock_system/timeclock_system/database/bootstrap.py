from __future__ import annotations

import re
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import now_utc, to_db_datetime
from .connection import DBConfig, DatabaseConnection

DEMO_ADMIN = ("admin@example.com", "admin12345", "Admin Demo")
DEMO_WORKER = ("worker@example.com", "worker12345", "Worker Demo")
DEMO_WORKPLACE = ("Downtown Office", "Demo geofence", 40.7128, -74.0060, 100.0)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes, skips '--' comments).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    lines = [line for line in sql.splitlines() if not line.lstrip().startswith("--")]
    for ch in "\n".join(lines):
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connection(db_config: dict) -> DatabaseConnection:
    # Bootstrap runs before the app container exists; don't reuse its singleton.
    return DatabaseConnection(DBConfig.from_dict(db_config))


def ensure_database_exists(db_config: dict) -> None:
    factory = _connection(db_config)
    conn = factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def ensure_demo_data(db_config: dict, *, now: datetime | None = None) -> None:
    """Seed a demo admin, worker, workplace, assignment and a few past shifts.

    Idempotent: rows are looked up by email / workplace name first.
    """

    now = now or now_utc()
    ts = to_db_datetime(now)

    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor(dictionary=True)

        def upsert_user(email: str, password: str, full_name: str, role: str) -> str:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM user_profiles WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE user_profiles
                    SET full_name=%s, password_hash=%s, role=%s, updated_at=%s
                    WHERE user_id=%s
                    """,
                    (full_name, password_hash, role, ts, existing["user_id"]),
                )
                return str(existing["user_id"])

            user_id = str(uuid.uuid4())
            cur.execute(
                """
                INSERT INTO user_profiles(user_id, email, password_hash, full_name, role, metadata, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,'{}',%s,%s)
                """,
                (user_id, email, password_hash, full_name, role, ts, ts),
            )
            return user_id

        admin_id = upsert_user(*DEMO_ADMIN, "admin")
        worker_id = upsert_user(*DEMO_WORKER, "worker")

        name, description, lat, lon, radius = DEMO_WORKPLACE
        cur.execute("SELECT workplace_id FROM workplaces WHERE name=%s", (name,))
        row = cur.fetchone()
        if row:
            workplace_id = str(row["workplace_id"])
        else:
            workplace_id = str(uuid.uuid4())
            cur.execute(
                """
                INSERT INTO workplaces(workplace_id, name, description, latitude, longitude, radius_m, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (workplace_id, name, description, lat, lon, radius, ts, ts),
            )

        cur.execute(
            """
            INSERT IGNORE INTO worker_assignments(assignment_id, worker_id, workplace_id, assigned_at)
            VALUES(%s,%s,%s,%s)
            """,
            (str(uuid.uuid4()), worker_id, workplace_id, ts),
        )

        cur.execute("SELECT COUNT(*) AS n FROM time_entries WHERE worker_id=%s AND method='seed'", (worker_id,))
        if int(cur.fetchone()["n"]) == 0:
            for days_ago in (1, 2, 3):
                start = (now - timedelta(days=days_ago)).replace(hour=13, minute=0, second=0, microsecond=0)
                end = start + timedelta(hours=8)
                cur.execute(
                    """
                    INSERT INTO time_entries(entry_id, worker_id, workplace_id, clock_in_at, clock_out_at, method, created_by, created_at)
                    VALUES(%s,%s,%s,%s,%s,'seed',%s,%s)
                    """,
                    (str(uuid.uuid4()), worker_id, workplace_id, to_db_datetime(start), to_db_datetime(end), admin_id, ts),
                )

        conn.commit()
    finally:
        conn.close()

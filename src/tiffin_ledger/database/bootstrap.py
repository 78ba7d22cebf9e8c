from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

DEMO_MEMBERS = (
    # name, hostel, college, whatsapp, subscription_amount, max_credits
    ("Aarav Patil", "Shivneri Hostel", "COEP", "9800000001", "3000.00", 60),
    ("Diya Kulkarni", "Sinhagad Hostel", "PICT", "9800000002", "1500.00", 30),
    ("Kabir Joshi", "Shivneri Hostel", "VIT", "9800000003", "3000.00", 60),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of the configured DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter for schema/seed files: ';' inside quotes does not end a statement.
    buf: list[str] = []
    quote = ""
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied schema %s", schema_path)


def seed_demo_members(db_config: dict) -> int:
    """Insert demo members that are not there yet (matched by WhatsApp number)."""
    conn = _connect(DBConfig.from_dict(db_config))
    inserted = 0
    try:
        cur = conn.cursor()
        for name, hostel, college, whatsapp, amount, max_credits in DEMO_MEMBERS:
            cur.execute("SELECT member_id FROM members WHERE whatsapp_number=%s", (whatsapp,))
            if cur.fetchone():
                continue
            cur.execute(
                """
                INSERT INTO members(
                    name, hostel_name, college_name, whatsapp_number,
                    subscription_amount, max_credits, remaining_credits, total_paid
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (name, hostel, college, whatsapp, amount, max_credits, max_credits),
            )
            inserted += 1
        conn.commit()
    finally:
        conn.close()
    logger.info("Seeded %d demo member(s)", inserted)
    return inserted


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()

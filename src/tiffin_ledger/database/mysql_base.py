from __future__ import annotations

import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .connection import DatabaseConnection

_local = threading.local()


def _active() -> Dict[int, Tuple[Any, Any]]:
    active = getattr(_local, "active", None)
    if active is None:
        active = {}
        _local.active = active
    return active


@contextmanager
def transaction(conn_factory: DatabaseConnection) -> Iterator[Tuple[Any, Any]]:
    """Open one connection/cursor for the current thread and commit once on exit.

    Every ``db_cursor`` opened on the same factory and thread while the
    transaction is open joins it instead of opening its own connection, so
    repository calls made by a service become one atomic unit. Nested
    ``transaction`` blocks join the outer one.
    """

    active = _active()
    key = id(conn_factory)
    if key in active:
        yield active[key]
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=True)
        active[key] = (conn, cur)
        try:
            yield conn, cur
            conn.commit()
        finally:
            del active[key]
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    joined = _active().get(id(conn_factory))
    if joined is not None:
        yield joined
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def in_transaction(conn_factory: DatabaseConnection) -> bool:
    return id(conn_factory) in _active()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def as_decimal(value: Any) -> Decimal:
    """Normalize DECIMAL columns (mysql-connector may hand back str or float)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def as_bool(value: Any) -> bool:
    """TINYINT(1) comes back as 0/1."""
    return bool(int(value)) if value is not None else False

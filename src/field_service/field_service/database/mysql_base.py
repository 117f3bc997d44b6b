from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
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


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for `col IN (...)`; callers must pass a non-empty sequence."""
    return ", ".join(["%s"] * len(values))


def to_float(value: Any) -> Optional[float]:
    """DECIMAL columns come back as Decimal; domain objects use float."""

    if value is None:
        return None
    return float(value)


def to_json_dict(value: Any) -> dict:
    """Normalize JSON columns across connector versions (str, bytes or dict)."""

    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return {}
        parsed = json.loads(value)
        if not isinstance(parsed, dict):
            raise TypeError(f"Expected JSON object, got {type(parsed)!r}")
        return parsed
    raise TypeError(f"Unsupported JSON column value type: {type(value)!r}")

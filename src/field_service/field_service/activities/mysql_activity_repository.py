from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import ActivityType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float, to_json_dict
from .model import ActivityLogEntry, NewActivity
from .repository import ActivityRepository

_COLUMNS = """
    id, user_id, ticket_id, activity_type, title, description,
    start_time, end_time, duration, location, latitude, longitude, metadata
"""


def _to_entry(r: dict) -> ActivityLogEntry:
    return ActivityLogEntry(
        activity_id=int(r["id"]),
        user_id=int(r["user_id"]),
        activity_type=ActivityType(r["activity_type"]),
        title=r["title"],
        description=r.get("description"),
        ticket_id=int(r["ticket_id"]) if r.get("ticket_id") is not None else None,
        start_time=r["start_time"],
        end_time=r.get("end_time"),
        duration=int(r["duration"]) if r.get("duration") is not None else None,
        location=r.get("location"),
        latitude=to_float(r.get("latitude")),
        longitude=to_float(r.get("longitude")),
        metadata=to_json_dict(r.get("metadata")),
    )


class MySQLActivityRepository(ActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user(self, *, activity_id: int, user_id: int) -> Optional[ActivityLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM daily_activity_logs WHERE id=%s AND user_id=%s",
                (int(activity_id), int(user_id)),
            )
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def create(self, activity: NewActivity) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO daily_activity_logs(
                    user_id, ticket_id, activity_type, title, description,
                    start_time, end_time, duration, location, latitude, longitude, metadata
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    activity.user_id,
                    activity.ticket_id,
                    activity.activity_type.value,
                    activity.title,
                    activity.description,
                    activity.start_time,
                    activity.end_time,
                    activity.duration,
                    activity.location,
                    activity.latitude,
                    activity.longitude,
                    json.dumps(activity.metadata) if activity.metadata else None,
                ),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        activity_id: int,
        end_time: Optional[datetime],
        duration: Optional[int],
        description: Optional[str],
        location: Optional[str],
        latitude: Optional[float],
        longitude: Optional[float],
        metadata: Optional[dict[str, Any]],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE daily_activity_logs
                SET end_time=%s, duration=%s, description=%s, location=%s,
                    latitude=%s, longitude=%s, metadata=%s
                WHERE id=%s
                """,
                (
                    end_time,
                    duration,
                    description,
                    location,
                    latitude,
                    longitude,
                    json.dumps(metadata) if metadata else None,
                    int(activity_id),
                ),
            )
            return cur.rowcount > 0

    def list_for_user(
        self,
        *,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        activity_type: Optional[ActivityType] = None,
        ticket_id: Optional[int] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[ActivityLogEntry]:
        clauses, params = self._filters(user_id, start, end, activity_type, ticket_id)
        sql = f"SELECT {_COLUMNS} FROM daily_activity_logs WHERE {' AND '.join(clauses)} ORDER BY start_time DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_entry(r) for r in fetchall(cur)]

    def count_for_user(
        self,
        *,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        activity_type: Optional[ActivityType] = None,
        ticket_id: Optional[int] = None,
    ) -> int:
        clauses, params = self._filters(user_id, start, end, activity_type, ticket_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM daily_activity_logs WHERE {' AND '.join(clauses)}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_in_range(self, *, user_id: int, start: datetime, end: datetime) -> Sequence[ActivityLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM daily_activity_logs
                WHERE user_id=%s AND start_time >= %s AND start_time < %s
                ORDER BY start_time ASC
                """,
                (int(user_id), start, end),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def count_by_user(
        self,
        *,
        start: Optional[datetime],
        end: Optional[datetime],
        activity_type: Optional[ActivityType] = None,
    ) -> dict[int, int]:
        clauses: list[str] = []
        params: list[Any] = []
        if start is not None:
            clauses.append("start_time >= %s")
            params.append(start)
        if end is not None:
            clauses.append("start_time <= %s")
            params.append(end)
        if activity_type is not None:
            clauses.append("activity_type = %s")
            params.append(activity_type.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT user_id, COUNT(*) AS n FROM daily_activity_logs {where} GROUP BY user_id", tuple(params))
            return {int(r["user_id"]): int(r["n"]) for r in fetchall(cur)}

    @staticmethod
    def _filters(
        user_id: int,
        start: Optional[datetime],
        end: Optional[datetime],
        activity_type: Optional[ActivityType],
        ticket_id: Optional[int],
    ) -> tuple[list[str], list[Any]]:
        clauses = ["user_id = %s"]
        params: list[Any] = [int(user_id)]
        if start is not None:
            clauses.append("start_time >= %s")
            params.append(start)
        if end is not None:
            clauses.append("start_time <= %s")
            params.append(end)
        if activity_type is not None:
            clauses.append("activity_type = %s")
            params.append(activity_type.value)
        if ticket_id is not None:
            clauses.append("ticket_id = %s")
            params.append(int(ticket_id))
        return clauses, params

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.constants import AUTO_CHECKOUT_MARKER
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float
from .model import AttendanceSession, GeoPoint
from .repository import AttendanceFilter, AttendanceRepository

_COLUMNS = """
    a.id, a.user_id, a.check_in_at, a.check_out_at,
    a.check_in_latitude, a.check_in_longitude, a.check_in_address,
    a.check_out_latitude, a.check_out_longitude, a.check_out_address,
    a.total_hours, a.status, a.notes, a.created_at, a.updated_at
"""

_ZONE_EXISTS = (
    "EXISTS (SELECT 1 FROM service_person_zones spz "
    "WHERE spz.user_id = a.user_id AND spz.service_zone_id = %s)"
)


def _point(lat, lng, address) -> Optional[GeoPoint]:
    if lat is None and lng is None and not address:
        return None
    return GeoPoint(latitude=to_float(lat), longitude=to_float(lng), address=address)


def _to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        check_in_at=r["check_in_at"],
        check_out_at=r.get("check_out_at"),
        check_in_location=_point(r.get("check_in_latitude"), r.get("check_in_longitude"), r.get("check_in_address")),
        check_out_location=_point(r.get("check_out_latitude"), r.get("check_out_longitude"), r.get("check_out_address")),
        total_hours=to_float(r.get("total_hours")),
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _geo_params(location: Optional[GeoPoint]) -> tuple:
    if location is None:
        return None, None, None
    return location.latitude, location.longitude, location.address


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance a WHERE a.id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def find_sessions(self, criteria: AttendanceFilter) -> Sequence[AttendanceSession]:
        clauses: list[str] = []
        params: list[Any] = []

        if criteria.start is not None:
            clauses.append("a.check_in_at >= %s")
            params.append(criteria.start)
        if criteria.end is not None:
            clauses.append("a.check_in_at <= %s")
            params.append(criteria.end)
        if criteria.status is not None:
            clauses.append("a.status = %s")
            params.append(criteria.status.value)
        if criteria.auto_checked_out:
            clauses.append("a.notes LIKE %s")
            params.append(f"%{AUTO_CHECKOUT_MARKER}%")
        if criteria.user_id is not None:
            clauses.append("a.user_id = %s")
            params.append(int(criteria.user_id))
        if criteria.zone_id is not None:
            clauses.append(_ZONE_EXISTS)
            params.append(int(criteria.zone_id))
        if criteria.search:
            clauses.append("(u.name LIKE %s OR u.email LIKE %s)")
            params.extend([f"%{criteria.search}%", f"%{criteria.search}%"])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance a
                JOIN users u ON u.id = a.user_id
                {where}
                ORDER BY a.check_in_at DESC
                """,
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_for_user(
        self,
        *,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceSession]:
        clauses, params = self._user_range(user_id, start, end)
        sql = f"SELECT {_COLUMNS} FROM attendance a WHERE {' AND '.join(clauses)} ORDER BY a.check_in_at DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_session(r) for r in fetchall(cur)]

    def count_for_user(self, *, user_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None) -> int:
        clauses, params = self._user_range(user_id, start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendance a WHERE {' AND '.join(clauses)}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def find_checked_in_between(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
        zone_id: Optional[int] = None,
    ) -> Sequence[AttendanceSession]:
        clauses = ["a.check_in_at >= %s", "a.check_in_at < %s", "a.status = %s"]
        params: list[Any] = [start, end, AttendanceStatus.CHECKED_IN.value]
        if user_id is not None:
            clauses.append("a.user_id = %s")
            params.append(int(user_id))
        if zone_id is not None:
            clauses.append(_ZONE_EXISTS)
            params.append(int(zone_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance a WHERE {' AND '.join(clauses)} ORDER BY a.check_in_at DESC",
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def latest_between(self, *, user_id: int, start: datetime, end: datetime) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance a
                WHERE a.user_id=%s AND a.check_in_at >= %s AND a.check_in_at < %s
                ORDER BY a.check_in_at DESC
                LIMIT 1
                """,
                (int(user_id), start, end),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create_checkin(
        self,
        *,
        user_id: int,
        check_in_at: datetime,
        location: GeoPoint,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> int:
        lat, lng, address = _geo_params(location)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(
                    user_id, check_in_at, check_in_latitude, check_in_longitude, check_in_address,
                    status, notes, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), check_in_at, lat, lng, address, status.value, notes, check_in_at, check_in_at),
            )
            return int(cur.lastrowid)

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_at: datetime,
        location: Optional[GeoPoint],
        total_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        lat, lng, address = _geo_params(location)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_out_at=%s, check_out_latitude=%s, check_out_longitude=%s, check_out_address=%s,
                    total_hours=%s, status=%s, notes=%s, updated_at=%s
                WHERE id=%s
                """,
                (check_out_at, lat, lng, address, total_hours, status.value, notes, check_out_at, int(attendance_id)),
            )
            return cur.rowcount > 0

    def reopen(self, *, attendance_id: int, notes: Optional[str], updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_out_at=NULL, check_out_latitude=NULL, check_out_longitude=NULL, check_out_address=NULL,
                    total_hours=NULL, status=%s, notes=%s, updated_at=%s
                WHERE id=%s
                """,
                (AttendanceStatus.CHECKED_IN.value, notes, updated_at, int(attendance_id)),
            )
            return cur.rowcount > 0

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_at: datetime,
        check_out_at: Optional[datetime],
        check_in_location: Optional[GeoPoint],
        check_out_location: Optional[GeoPoint],
        total_hours: Optional[float],
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        in_lat, in_lng, in_address = _geo_params(check_in_location)
        out_lat, out_lng, out_address = _geo_params(check_out_location)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_in_at=%s, check_out_at=%s,
                    check_in_latitude=%s, check_in_longitude=%s, check_in_address=%s,
                    check_out_latitude=%s, check_out_longitude=%s, check_out_address=%s,
                    total_hours=%s, status=%s, notes=%s
                WHERE id=%s
                """,
                (
                    check_in_at,
                    check_out_at,
                    in_lat,
                    in_lng,
                    in_address,
                    out_lat,
                    out_lng,
                    out_address,
                    total_hours,
                    status.value,
                    notes,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    @staticmethod
    def _user_range(user_id: int, start: Optional[datetime], end: Optional[datetime]) -> tuple[list[str], list[Any]]:
        clauses = ["a.user_id = %s"]
        params: list[Any] = [int(user_id)]
        if start is not None:
            clauses.append("a.check_in_at >= %s")
            params.append(start)
        if end is not None:
            clauses.append("a.check_in_at <= %s")
            params.append(end)
        return clauses, params

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import ServiceZone, User
from .repository import UserRepository


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, email, role, is_active FROM users WHERE id=%s",
                (int(user_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            zones = self._zones_for(cur, [int(row["id"])])
            return self._to_user(row, zones)

    def get_many(self, user_ids: Iterable[int]) -> Sequence[User]:
        ids = sorted({int(i) for i in user_ids})
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT id, name, email, role, is_active FROM users WHERE id IN ({in_clause(ids)})",
                tuple(ids),
            )
            rows = fetchall(cur)
            zones = self._zones_for(cur, ids)
            return [self._to_user(r, zones) for r in rows]

    def find_roster(
        self,
        *,
        zone_id: Optional[int] = None,
        user_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Sequence[User]:
        clauses = ["u.role = %s", "u.is_active = 1"]
        params: list[Any] = [Role.SERVICE_PERSON.value]

        if zone_id is not None:
            clauses.append(
                "EXISTS (SELECT 1 FROM service_person_zones spz "
                "WHERE spz.user_id = u.id AND spz.service_zone_id = %s)"
            )
            params.append(int(zone_id))
        if user_id is not None:
            clauses.append("u.id = %s")
            params.append(int(user_id))
        if search:
            clauses.append("(u.name LIKE %s OR u.email LIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.id, u.name, u.email, u.role, u.is_active
                FROM users u
                WHERE {' AND '.join(clauses)}
                ORDER BY u.name ASC, u.id ASC
                """,
                tuple(params),
            )
            rows = fetchall(cur)
            zones = self._zones_for(cur, [int(r["id"]) for r in rows])
            return [self._to_user(r, zones) for r in rows]

    def list_zones(self, *, zone_id: Optional[int] = None) -> Sequence[ServiceZone]:
        with db_cursor(self._conn_factory) as (_, cur):
            if zone_id is not None:
                cur.execute("SELECT id, name, description FROM service_zones WHERE id=%s", (int(zone_id),))
            else:
                cur.execute("SELECT id, name, description FROM service_zones ORDER BY name ASC")
            return [
                ServiceZone(zone_id=int(r["id"]), name=r["name"], description=r.get("description"))
                for r in fetchall(cur)
            ]

    @staticmethod
    def _zones_for(cur, user_ids: list[int]) -> dict[int, tuple[ServiceZone, ...]]:
        if not user_ids:
            return {}
        cur.execute(
            f"""
            SELECT spz.user_id, z.id, z.name, z.description
            FROM service_person_zones spz
            JOIN service_zones z ON z.id = spz.service_zone_id
            WHERE spz.user_id IN ({in_clause(user_ids)})
            ORDER BY z.name ASC
            """,
            tuple(user_ids),
        )
        out: dict[int, list[ServiceZone]] = defaultdict(list)
        for r in fetchall(cur):
            out[int(r["user_id"])].append(ServiceZone(zone_id=int(r["id"]), name=r["name"], description=r.get("description")))
        return {k: tuple(v) for k, v in out.items()}

    @staticmethod
    def _to_user(row: dict, zones: dict[int, tuple[ServiceZone, ...]]) -> User:
        user_id = int(row["id"])
        return User(
            user_id=user_id,
            name=row.get("name"),
            email=row["email"],
            role=Role(row["role"]),
            is_active=bool(row.get("is_active", True)),
            zones=zones.get(user_id, ()),
        )

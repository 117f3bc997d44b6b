from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest

from src.field_service.field_service.activities.model import ActivityLogEntry, NewActivity
from src.field_service.field_service.attendance.model import AttendanceSession, GeoPoint
from src.field_service.field_service.container import wire
from src.field_service.field_service.core.constants import AUTO_CHECKOUT_MARKER
from src.field_service.field_service.core.enums import ActivityType, AttendanceStatus, Role
from src.field_service.field_service.main import create_app
from src.field_service.field_service.users.model import ServiceZone, User


class InMemoryUsers:
    def __init__(self):
        self.users: dict[int, User] = {}
        self.zones: dict[int, ServiceZone] = {}

    def add_zone(self, zone_id: int, name: str) -> ServiceZone:
        zone = ServiceZone(zone_id=zone_id, name=name)
        self.zones[zone_id] = zone
        return zone

    def add(self, user_id: int, name: str, *, role: Role = Role.SERVICE_PERSON, zone_ids=(), is_active=True) -> User:
        user = User(
            user_id=user_id,
            name=name,
            email=f"{name.lower()}@example.com",
            role=role,
            is_active=is_active,
            zones=tuple(self.zones[z] for z in zone_ids),
        )
        self.users[user_id] = user
        return user

    def in_zone(self, user_id: int, zone_id: int) -> bool:
        user = self.users.get(user_id)
        return bool(user) and any(z.zone_id == zone_id for z in user.zones)

    def matches(self, user_id: int, search: str) -> bool:
        user = self.users.get(user_id)
        needle = search.lower()
        return bool(user) and (needle in (user.name or "").lower() or needle in user.email.lower())

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_many(self, user_ids):
        return [self.users[i] for i in sorted(set(user_ids)) if i in self.users]

    def find_roster(self, *, zone_id=None, user_id=None, search=None):
        out = []
        for u in self.users.values():
            if u.role != Role.SERVICE_PERSON or not u.is_active:
                continue
            if zone_id is not None and not self.in_zone(u.user_id, zone_id):
                continue
            if user_id is not None and u.user_id != user_id:
                continue
            if search and not self.matches(u.user_id, search):
                continue
            out.append(u)
        return sorted(out, key=lambda u: (u.name or "", u.user_id))

    def list_zones(self, *, zone_id=None):
        zones = sorted(self.zones.values(), key=lambda z: z.name)
        return [z for z in zones if zone_id is None or z.zone_id == zone_id]


class InMemoryAttendance:
    def __init__(self, users: InMemoryUsers):
        self.rows: dict[int, AttendanceSession] = {}
        self._users = users
        self._id = 0

    def seed(self, user_id, check_in_at, check_out_at=None, *, total_hours=None, status=AttendanceStatus.CHECKED_IN, notes=None):
        self._id += 1
        self.rows[self._id] = AttendanceSession(
            id=self._id,
            user_id=user_id,
            check_in_at=check_in_at,
            check_out_at=check_out_at,
            check_in_location=GeoPoint(12.97, 77.59, "Site A"),
            total_hours=total_hours,
            status=status,
            notes=notes,
        )
        return self._id

    def get_by_id(self, attendance_id):
        return self.rows.get(int(attendance_id))

    def find_sessions(self, criteria):
        out = []
        for s in self.rows.values():
            if criteria.start and s.check_in_at < criteria.start:
                continue
            if criteria.end and s.check_in_at > criteria.end:
                continue
            if criteria.status and s.status != criteria.status:
                continue
            if criteria.auto_checked_out and AUTO_CHECKOUT_MARKER not in (s.notes or ""):
                continue
            if criteria.user_id is not None and s.user_id != criteria.user_id:
                continue
            if criteria.zone_id is not None and not self._users.in_zone(s.user_id, criteria.zone_id):
                continue
            if criteria.search and not self._users.matches(s.user_id, criteria.search):
                continue
            out.append(s)
        return sorted(out, key=lambda s: s.check_in_at, reverse=True)

    def _for_user(self, user_id, start, end):
        rows = [
            s
            for s in self.rows.values()
            if s.user_id == user_id and (start is None or s.check_in_at >= start) and (end is None or s.check_in_at <= end)
        ]
        return sorted(rows, key=lambda s: s.check_in_at, reverse=True)

    def list_for_user(self, *, user_id, start=None, end=None, offset=0, limit=None):
        rows = self._for_user(user_id, start, end)
        return rows[offset:offset + limit] if limit is not None else rows[offset:]

    def count_for_user(self, *, user_id, start=None, end=None):
        return len(self._for_user(user_id, start, end))

    def find_checked_in_between(self, *, start, end, user_id=None, zone_id=None):
        rows = [
            s
            for s in self.rows.values()
            if s.status == AttendanceStatus.CHECKED_IN
            and start <= s.check_in_at < end
            and (user_id is None or s.user_id == user_id)
            and (zone_id is None or self._users.in_zone(s.user_id, zone_id))
        ]
        return sorted(rows, key=lambda s: s.check_in_at, reverse=True)

    def latest_between(self, *, user_id, start, end):
        rows = [s for s in self._for_user(user_id, start, None) if s.check_in_at < end]
        return rows[0] if rows else None

    def create_checkin(self, *, user_id, check_in_at, location, status, notes=None):
        self._id += 1
        self.rows[self._id] = AttendanceSession(
            id=self._id,
            user_id=user_id,
            check_in_at=check_in_at,
            check_in_location=location,
            status=status,
            notes=notes,
            created_at=check_in_at,
            updated_at=check_in_at,
        )
        return self._id

    def update_checkout(self, *, attendance_id, check_out_at, location, total_hours, status, notes=None):
        row = self.rows.get(attendance_id)
        if row is None:
            return False
        self.rows[attendance_id] = replace(
            row,
            check_out_at=check_out_at,
            check_out_location=location,
            total_hours=total_hours,
            status=status,
            notes=notes,
            updated_at=check_out_at,
        )
        return True

    def reopen(self, *, attendance_id, notes, updated_at):
        row = self.rows.get(attendance_id)
        if row is None:
            return False
        self.rows[attendance_id] = replace(
            row,
            check_out_at=None,
            check_out_location=None,
            total_hours=None,
            status=AttendanceStatus.CHECKED_IN,
            notes=notes,
            updated_at=updated_at,
        )
        return True

    def admin_update_record(self, *, attendance_id, check_in_at, check_out_at, check_in_location, check_out_location, total_hours, status, notes=None):
        row = self.rows.get(attendance_id)
        if row is None:
            return False
        self.rows[attendance_id] = replace(
            row,
            check_in_at=check_in_at,
            check_out_at=check_out_at,
            check_in_location=check_in_location,
            check_out_location=check_out_location,
            total_hours=total_hours,
            status=status,
            notes=notes,
        )
        return True


class InMemoryActivities:
    def __init__(self):
        self.rows: dict[int, ActivityLogEntry] = {}
        self._id = 0

    def seed(self, user_id, start_time, end_time=None, *, activity_type=ActivityType.TICKET_WORK, title="Work", duration=None):
        self._id += 1
        self.rows[self._id] = ActivityLogEntry(
            activity_id=self._id,
            user_id=user_id,
            activity_type=activity_type,
            title=title,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
        )
        return self._id

    def get_for_user(self, *, activity_id, user_id):
        row = self.rows.get(activity_id)
        return row if row and row.user_id == user_id else None

    def create(self, activity: NewActivity) -> int:
        self._id += 1
        self.rows[self._id] = ActivityLogEntry(
            activity_id=self._id,
            user_id=activity.user_id,
            activity_type=activity.activity_type,
            title=activity.title,
            start_time=activity.start_time,
            end_time=activity.end_time,
            duration=activity.duration,
            description=activity.description,
            ticket_id=activity.ticket_id,
            location=activity.location,
            latitude=activity.latitude,
            longitude=activity.longitude,
            metadata=dict(activity.metadata),
        )
        return self._id

    def update(self, *, activity_id, end_time, duration, description, location, latitude, longitude, metadata):
        row = self.rows.get(activity_id)
        if row is None:
            return False
        self.rows[activity_id] = replace(
            row,
            end_time=end_time,
            duration=duration,
            description=description,
            location=location,
            latitude=latitude,
            longitude=longitude,
            metadata=dict(metadata or {}),
        )
        return True

    def _filtered(self, user_id, start, end, activity_type, ticket_id):
        return [
            a
            for a in self.rows.values()
            if a.user_id == user_id
            and (start is None or a.start_time >= start)
            and (end is None or a.start_time <= end)
            and (activity_type is None or a.activity_type == activity_type)
            and (ticket_id is None or a.ticket_id == ticket_id)
        ]

    def list_for_user(self, *, user_id, start=None, end=None, activity_type=None, ticket_id=None, offset=0, limit=None):
        rows = sorted(self._filtered(user_id, start, end, activity_type, ticket_id), key=lambda a: a.start_time, reverse=True)
        return rows[offset:offset + limit] if limit is not None else rows[offset:]

    def count_for_user(self, *, user_id, start=None, end=None, activity_type=None, ticket_id=None):
        return len(self._filtered(user_id, start, end, activity_type, ticket_id))

    def list_in_range(self, *, user_id, start, end):
        rows = [a for a in self.rows.values() if a.user_id == user_id and start <= a.start_time < end]
        return sorted(rows, key=lambda a: a.start_time)

    def count_by_user(self, *, start, end, activity_type=None):
        counts: dict[int, int] = {}
        for a in self.rows.values():
            if start is not None and a.start_time < start:
                continue
            if end is not None and a.start_time > end:
                continue
            if activity_type is not None and a.activity_type != activity_type:
                continue
            counts[a.user_id] = counts.get(a.user_id, 0) + 1
        return counts


class StubGeocoder:
    def __init__(self, address="221B Baker Street", error: Exception | None = None):
        self.address = address
        self.error = error
        self.calls = []

    def reverse_geocode(self, latitude, longitude):
        self.calls.append((latitude, longitude))
        if self.error:
            raise self.error
        return self.address


@pytest.fixture
def fixed_now():
    return datetime(2024, 6, 1, 19, 30)


@pytest.fixture
def users_repo():
    repo = InMemoryUsers()
    repo.add_zone(1, "North")
    repo.add_zone(2, "South")
    repo.add(7, "Asha", zone_ids=(1,))
    repo.add(9, "Ravi", zone_ids=(1,))
    repo.add(11, "Meera", zone_ids=(2,))
    repo.add(1, "Admin", role=Role.ADMIN)
    repo.add(2, "Zonal", role=Role.ZONE_USER, zone_ids=(1,))
    return repo


@pytest.fixture
def attendance_repo(users_repo):
    return InMemoryAttendance(users_repo)


@pytest.fixture
def activities_repo():
    return InMemoryActivities()


@pytest.fixture
def geocoder():
    return StubGeocoder()


@pytest.fixture
def container(users_repo, attendance_repo, activities_repo, geocoder):
    return wire(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        activities_repo=activities_repo,
        geocoder=geocoder,
    )


@pytest.fixture
def client(container):
    app = create_app(container=container, settings={"SECRET_KEY": "test-secret", "TESTING": True, "LOG_LEVEL": "WARNING"})
    return app.test_client()


@pytest.fixture
def login_as(client):
    """Put an identity in the session the way the external login flow would."""

    def _login(user_id: int, role: Role, zone_id: Optional[int] = None) -> None:
        with client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["role"] = role.value
            if zone_id is not None:
                sess["zone_id"] = zone_id

    return _login

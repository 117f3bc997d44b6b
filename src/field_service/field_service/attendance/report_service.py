from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Union

from ..activities.model import ActivityLogEntry
from ..activities.repository import ActivityRepository
from ..common.datetime_utils import day_bounds, end_of_day, hours_between, now_local, optional_datetime
from ..common.pagination import Page, paginate
from ..common.validators import optional_number, optional_string
from ..core.constants import AUTO_CHECKOUT_MARKER, SYSTEM_NOTES_SEPARATOR
from ..core.enums import ActivityType, AttendanceStatus, FlagType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import ServiceZone, User
from ..users.repository import UserRepository
from .consolidation import absent_record, append_note, consolidate, is_absent_record_id, parse_absent_record_id
from .flags.factory import FlagRuleFactory
from .gaps import compute_gaps
from .model import AttendanceSession, ConsolidatedDayRecord, GapRecord, GeoPoint
from .repository import AttendanceFilter, AttendanceRepository

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger(f"{__name__}.audit")

AUTO_CHECKED_OUT = "AUTO_CHECKED_OUT"


@dataclass(frozen=True)
class ReportFilters:
    """Query parameters of the attendance table (admin, zone and per-user views)."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    zone_id: Optional[int] = None
    user_id: Optional[int] = None
    status: Optional[str] = None
    activity_type: Optional[ActivityType] = None
    search: Optional[str] = None

    @property
    def start(self) -> Optional[datetime]:
        return day_bounds(self.start_date)[0] if self.start_date else None

    @property
    def end(self) -> Optional[datetime]:
        return end_of_day(self.end_date) if self.end_date else None


@dataclass(frozen=True)
class Viewer:
    """Who is asking; zone users only ever see their own zone."""

    user_id: int
    role: Role
    zone_id: Optional[int] = None

    def scoped_zone(self, requested: Optional[int]) -> Optional[int]:
        if self.role == Role.ZONE_USER:
            if self.zone_id is None:
                raise AuthorizationError("Zone user has no assigned zone")
            return self.zone_id
        return requested


@dataclass(frozen=True)
class AttendanceReport:
    page: Page[ConsolidatedDayRecord]
    users: dict[int, User] = field(default_factory=dict)

    def to_dict(self) -> dict:
        rows = []
        for record in self.page.items:
            row = record.to_dict()
            user = self.users.get(record.user_id)
            row["user"] = user.to_dict() if user else None
            rows.append(row)
        return {"attendance": rows, "pagination": self.page.meta()}


@dataclass(frozen=True)
class AttendanceDetail:
    attendance: Union[AttendanceSession, ConsolidatedDayRecord]
    user: User
    activities: tuple[ActivityLogEntry, ...] = ()
    gaps: tuple[GapRecord, ...] = ()

    def to_dict(self) -> dict:
        data = self.attendance.to_dict()
        data["user"] = self.user.to_dict()
        data["activities"] = [a.to_dict() for a in self.activities]
        data["gaps"] = [g.to_dict() for g in self.gaps]
        return data


class AttendanceReportService:
    """Consolidated attendance views for admins and zone users."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        activities: ActivityRepository,
        *,
        flag_rules: FlagRuleFactory | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._activities = activities
        self._rules = (flag_rules or FlagRuleFactory()).build()

    def list_attendance(
        self,
        viewer: Viewer,
        filters: ReportFilters,
        *,
        page: int = 1,
        limit: int = 20,
        as_of: datetime | None = None,
    ) -> AttendanceReport:
        as_of = as_of or now_local()
        zone_id = viewer.scoped_zone(filters.zone_id)
        status, auto_only = self._status_filter(filters.status)

        sessions = self._attendance.find_sessions(
            AttendanceFilter(
                start=filters.start,
                end=filters.end,
                zone_id=zone_id,
                user_id=filters.user_id,
                # ABSENT is decided after merging, so every session of the day must be seen.
                status=None if status == AttendanceStatus.ABSENT else status,
                auto_checked_out=auto_only,
                search=filters.search,
            )
        )

        roster: list[User] = []
        if status in (None, AttendanceStatus.ABSENT):
            roster = list(self._users.find_roster(zone_id=zone_id, user_id=filters.user_id, search=filters.search))

        target_date = filters.start_date or as_of.date()
        counts = self._activity_counts(filters, target_date)

        records = consolidate(sessions, roster, target_date, counts, as_of=as_of, rules=self._rules)
        if status == AttendanceStatus.ABSENT:
            records = [r for r in records if r.has_flag(FlagType.ABSENT)]

        page_result = paginate(self._ordered(records), page=page, limit=limit)
        directory = {u.user_id: u for u in roster}
        missing = {r.user_id for r in page_result.items} - directory.keys()
        if missing:
            directory.update({u.user_id: u for u in self._users.get_many(missing)})
        return AttendanceReport(page=page_result, users=directory)

    def stats(self, viewer: Viewer, filters: ReportFilters) -> dict[str, Any]:
        zone_id = viewer.scoped_zone(filters.zone_id)
        sessions = self._attendance.find_sessions(
            AttendanceFilter(start=filters.start, end=filters.end, zone_id=zone_id)
        )

        breakdown = {s.value: 0 for s in AttendanceStatus}
        breakdown["AUTO_CHECKOUT"] = 0
        hours = []
        for s in sessions:
            breakdown[s.status.value] += 1
            if s.notes and AUTO_CHECKOUT_MARKER in s.notes:
                breakdown["AUTO_CHECKOUT"] += 1
            if s.total_hours is not None:
                hours.append(float(s.total_hours))

        return {
            "total_records": len(sessions),
            "status_breakdown": breakdown,
            "average_hours": round(sum(hours) / len(hours), 2) if hours else 0,
            "period": "custom" if filters.start_date and filters.end_date else "all",
        }

    def detail(self, viewer: Viewer, record_id: str, *, as_of: datetime | None = None) -> AttendanceDetail:
        as_of = as_of or now_local()

        if is_absent_record_id(record_id):
            user_id, work_date = parse_absent_record_id(record_id)
            user = self._visible_user(viewer, user_id)
            return AttendanceDetail(attendance=absent_record(user_id, work_date), user=user)

        try:
            attendance_id = int(record_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid attendance ID format")

        session = self._attendance.get_by_id(attendance_id)
        if session is None:
            raise NotFoundError("Attendance record not found")
        user = self._visible_user(viewer, session.user_id)

        start, end = day_bounds(session.check_in_at.date())
        activities = tuple(self._activities.list_in_range(user_id=session.user_id, start=start, end=end))
        return AttendanceDetail(
            attendance=session,
            user=user,
            activities=activities,
            gaps=tuple(compute_gaps(activities)),
        )

    def update_record(self, admin_id: int, attendance_id: int, changes: dict) -> AttendanceSession:
        record = self._attendance.get_by_id(int(attendance_id))
        if record is None:
            raise NotFoundError("Attendance record not found")

        edited_in = optional_datetime(changes.get("check_in_at"))
        edited_out = optional_datetime(changes.get("check_out_at"))
        # An edit of one side is checked against the stored value of the other.
        check_in_at = edited_in or record.check_in_at
        check_out_at = edited_out or record.check_out_at
        total_hours = record.total_hours
        if check_in_at and check_out_at:
            if check_out_at < check_in_at:
                raise ValidationError("check_out_at must not be before check_in_at")
            if edited_in or edited_out:
                total_hours = hours_between(check_in_at, check_out_at)

        status = record.status
        if changes.get("status"):
            try:
                status = AttendanceStatus(changes["status"])
            except ValueError:
                raise ValidationError(f"Invalid status {changes['status']!r}")

        notes = append_note(record.notes, optional_string(changes.get("notes"), "notes"))
        admin_notes = optional_string(changes.get("admin_notes"), "admin_notes")
        if admin_notes:
            notes = append_note(notes, f"Admin: {admin_notes}", separator=SYSTEM_NOTES_SEPARATOR)

        self._attendance.admin_update_record(
            attendance_id=record.id,
            check_in_at=check_in_at,
            check_out_at=check_out_at,
            check_in_location=self._edited_point(changes, "check_in", record.check_in_location),
            check_out_location=self._edited_point(changes, "check_out", record.check_out_location),
            total_hours=total_hours,
            status=status,
            notes=notes,
        )
        audit_logger.info(
            "ATTENDANCE_UPDATED by admin %s: %s",
            admin_id,
            sorted(k for k, v in changes.items() if v not in (None, "")),
            extra={"user_id": admin_id, "attendance_id": record.id},
        )
        return self._attendance.get_by_id(record.id)

    def service_persons(self, viewer: Viewer, *, zone_id: Optional[int] = None) -> list[User]:
        return list(self._users.find_roster(zone_id=viewer.scoped_zone(zone_id)))

    def service_zones(self, viewer: Viewer) -> list[ServiceZone]:
        return list(self._users.list_zones(zone_id=viewer.scoped_zone(None)))

    def _activity_counts(self, filters: ReportFilters, target_date: date) -> dict[int, int]:
        start, end = filters.start, filters.end
        if start is None and end is None:
            start, end = day_bounds(target_date)[0], end_of_day(target_date)
        return self._activities.count_by_user(start=start, end=end, activity_type=filters.activity_type)

    def _visible_user(self, viewer: Viewer, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found for attendance record")
        if viewer.role == Role.ZONE_USER and viewer.zone_id not in {z.zone_id for z in user.zones}:
            raise AuthorizationError("Attendance record belongs to another zone")
        return user

    @staticmethod
    def _status_filter(raw: Optional[str]) -> tuple[Optional[AttendanceStatus], bool]:
        if not raw or raw == "all":
            return None, False
        if raw == AUTO_CHECKED_OUT:
            return AttendanceStatus.CHECKED_OUT, True
        try:
            return AttendanceStatus(raw), False
        except ValueError:
            raise ValidationError(f"Invalid status {raw!r}")

    @staticmethod
    def _edited_point(changes: dict, prefix: str, current: Optional[GeoPoint]) -> Optional[GeoPoint]:
        lat = optional_number(changes.get(f"{prefix}_latitude"), f"{prefix}_latitude")
        lng = optional_number(changes.get(f"{prefix}_longitude"), f"{prefix}_longitude")
        address = optional_string(changes.get(f"{prefix}_address"), f"{prefix}_address")
        if lat is None and lng is None and not address:
            return current
        current = current or GeoPoint(None, None, None)
        return GeoPoint(
            latitude=lat if lat is not None else current.latitude,
            longitude=lng if lng is not None else current.longitude,
            address=address or current.address,
        )

    @staticmethod
    def _ordered(records: list[ConsolidatedDayRecord]) -> list[ConsolidatedDayRecord]:
        """Newest check-in first; absent placeholders last, by user id."""
        present = sorted((r for r in records if r.earliest_check_in), key=lambda r: r.user_id)
        present.sort(key=lambda r: r.earliest_check_in, reverse=True)
        absent = sorted((r for r in records if not r.earliest_check_in), key=lambda r: r.user_id)
        return present + absent

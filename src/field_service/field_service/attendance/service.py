from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..activities.model import ActivityLogEntry
from ..activities.repository import ActivityRepository
from ..common.datetime_utils import at_hour, day_bounds, end_of_day, hours_between, now_local, period_start
from ..common.pagination import Page, offset_of
from ..common.validators import optional_number, optional_string, require_number
from ..core.constants import AUTO_CHECKOUT_HOUR, LIVE_TRACKING_ACTIVITY_LIMIT, SYSTEM_NOTES_SEPARATOR
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, EarlyCheckoutConfirmationRequired, NotFoundError, ValidationError
from ..geocoding.resolver import LocationResolver
from ..users.model import User
from ..users.repository import UserRepository
from .consolidation import append_note
from .factory import CheckoutStrategyFactory
from .model import AttendanceSession, GeoPoint
from .repository import AttendanceFilter, AttendanceRepository

logger = logging.getLogger(__name__)

_REOPENABLE = (AttendanceStatus.CHECKED_OUT, AttendanceStatus.EARLY_CHECKOUT)


@dataclass(frozen=True)
class CurrentStatus:
    attendance: Optional[AttendanceSession]

    @property
    def is_checked_in(self) -> bool:
        return self.attendance is not None and self.attendance.status == AttendanceStatus.CHECKED_IN

    def to_dict(self) -> dict:
        return {
            "attendance": self.attendance.to_dict() if self.attendance else None,
            "is_checked_in": self.is_checked_in,
        }


@dataclass(frozen=True)
class WorkStats:
    period: str
    total_hours: float
    avg_hours_per_day: float
    total_days_worked: int

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "total_hours": self.total_hours,
            "avg_hours_per_day": self.avg_hours_per_day,
            "total_days_worked": self.total_days_worked,
        }


@dataclass(frozen=True)
class LiveEntry:
    attendance: AttendanceSession
    user: Optional[User]
    recent_activities: tuple[ActivityLogEntry, ...]

    def to_dict(self) -> dict:
        data = self.attendance.to_dict()
        data["user"] = self.user.to_dict() if self.user else None
        data["recent_activities"] = [a.to_dict() for a in self.recent_activities]
        return data


class AttendanceService:
    """Check-in / check-out use cases of a single service person."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        activities: ActivityRepository,
        *,
        locations: LocationResolver | None = None,
        strategy_factory: CheckoutStrategyFactory | None = None,
        auto_checkout_hour: int = AUTO_CHECKOUT_HOUR,
    ):
        self._attendance = attendance
        self._users = users
        self._activities = activities
        self._locations = locations or LocationResolver()
        self._factory = strategy_factory or CheckoutStrategyFactory()
        self._auto_checkout_hour = int(auto_checkout_hour)

    def check_in(
        self,
        user_id: int,
        *,
        latitude,
        longitude,
        address: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or now_local()
        lat = require_number(latitude, "latitude")
        lng = require_number(longitude, "longitude")
        notes = optional_string(notes, "notes")

        start, end = day_bounds(now.date())
        if self._attendance.find_checked_in_between(start=start, end=end, user_id=user_id):
            raise ConflictError("You are already checked in today. Please check out first.")

        location = GeoPoint(lat, lng, self._locations.resolve(lat, lng, optional_string(address, "address")))
        attendance_id = self._attendance.create_checkin(
            user_id=user_id,
            check_in_at=now,
            location=location,
            status=AttendanceStatus.CHECKED_IN,
            notes=notes,
        )
        logger.info("User checked in", extra={"user_id": user_id, "attendance_id": attendance_id})
        return self._reload(attendance_id)

    def check_out(
        self,
        user_id: int,
        attendance_id: int,
        *,
        latitude=None,
        longitude=None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
        confirm_early: bool = False,
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or now_local()
        lat = optional_number(latitude, "latitude")
        lng = optional_number(longitude, "longitude")
        notes = optional_string(notes, "notes")

        record = self._owned(user_id, attendance_id)
        if record.status != AttendanceStatus.CHECKED_IN:
            raise NotFoundError("Active attendance record not found")

        if self._factory.is_early(now) and not confirm_early:
            raise EarlyCheckoutConfirmationRequired(checkout_time=now, scheduled_time=self._factory.cutoff_for(now))

        location = None
        if lat is not None and lng is not None:
            location = GeoPoint(lat, lng, self._locations.resolve(lat, lng, optional_string(address, "address")))

        decision = self._factory.for_checkout(now=now).decide_checkout(session=record, checkout_at=now)
        self._attendance.update_checkout(
            attendance_id=record.id,
            check_out_at=now,
            location=location,
            total_hours=hours_between(record.check_in_at, now),
            status=decision.status,
            notes=append_note(record.notes, notes),
        )
        logger.info(
            "User checked out (%s)",
            decision.status.value,
            extra={"user_id": user_id, "attendance_id": record.id},
        )
        return self._reload(record.id)

    def re_check_in(
        self,
        user_id: int,
        attendance_id: int,
        *,
        latitude,
        longitude,
        address: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Reopen a session closed by mistake earlier the same day."""
        now = now or now_local()
        require_number(latitude, "latitude")
        require_number(longitude, "longitude")
        notes = optional_string(notes, "notes")

        record = self._owned(user_id, attendance_id)
        if record.status not in _REOPENABLE:
            raise NotFoundError("Attendance record not found or not eligible for re-check-in")
        if record.check_in_at.date() != now.date():
            raise ValidationError("Can only re-check-in for today's attendance")

        self._attendance.reopen(attendance_id=record.id, notes=append_note(record.notes, notes), updated_at=now)
        logger.info("User re-checked in", extra={"user_id": user_id, "attendance_id": record.id})
        return self._reload(record.id)

    def current_status(self, user_id: int, *, now: datetime | None = None) -> CurrentStatus:
        now = now or now_local()
        start, end = day_bounds(now.date())
        return CurrentStatus(self._attendance.latest_between(user_id=user_id, start=start, end=end))

    def history(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[AttendanceSession]:
        start = day_bounds(start_date)[0] if start_date else None
        end = end_of_day(end_date) if end_date else None
        if start and end and start > end:
            raise ValidationError("start_date must not be after end_date")

        items = self._attendance.list_for_user(
            user_id=user_id, start=start, end=end, offset=offset_of(page, limit), limit=limit
        )
        total = self._attendance.count_for_user(user_id=user_id, start=start, end=end)
        return Page(items=list(items), page=page, limit=limit, total=total)

    def stats(self, user_id: int, *, period: str = "month", now: datetime | None = None) -> WorkStats:
        now = now or now_local()
        sessions = self._attendance.find_sessions(
            AttendanceFilter(start=period_start(period, now), user_id=user_id, status=AttendanceStatus.CHECKED_OUT)
        )
        total = sum(float(s.total_hours or 0) for s in sessions)
        days = len(sessions)
        return WorkStats(
            period=period,
            total_hours=round(total, 2),
            avg_hours_per_day=round(total / days, 2) if days else 0.0,
            total_days_worked=days,
        )

    def auto_checkout(self, *, now: datetime | None = None) -> list[AttendanceSession]:
        """Close every session still open today at the auto-checkout hour."""
        now = now or now_local()
        start, end = day_bounds(now.date())
        checkout_at = at_hour(now.date(), self._auto_checkout_hour)
        if now < checkout_at:
            raise ValidationError(f"Auto-checkout cannot run before {checkout_at.strftime('%H:%M')}")
        strategy = self._factory.for_auto_checkout()

        closed: list[AttendanceSession] = []
        for record in self._attendance.find_checked_in_between(start=start, end=end):
            if record.check_in_at >= checkout_at:
                # Checked in after the auto-checkout hour; left open.
                logger.info(
                    "Auto-checkout skipped late check-in",
                    extra={"user_id": record.user_id, "attendance_id": record.id},
                )
                continue
            decision = strategy.decide_checkout(session=record, checkout_at=checkout_at)
            self._attendance.update_checkout(
                attendance_id=record.id,
                check_out_at=checkout_at,
                location=None,
                total_hours=hours_between(record.check_in_at, checkout_at),
                status=decision.status,
                notes=append_note(record.notes, decision.note, separator=SYSTEM_NOTES_SEPARATOR),
            )
            closed.append(self._reload(record.id))

        logger.info("Auto-checkout completed for %d users", len(closed))
        return closed

    def live_tracking(self, *, zone_id: Optional[int] = None, now: datetime | None = None) -> list[LiveEntry]:
        now = now or now_local()
        start, end = day_bounds(now.date())
        open_sessions = self._attendance.find_checked_in_between(start=start, end=end, zone_id=zone_id)
        users = {u.user_id: u for u in self._users.get_many(s.user_id for s in open_sessions)}

        entries = []
        for record in open_sessions:
            todays = self._activities.list_in_range(user_id=record.user_id, start=start, end=end)
            recent = tuple(reversed(todays[-LIVE_TRACKING_ACTIVITY_LIMIT:]))
            entries.append(LiveEntry(attendance=record, user=users.get(record.user_id), recent_activities=recent))
        return entries

    def _owned(self, user_id: int, attendance_id) -> AttendanceSession:
        try:
            attendance_id = int(attendance_id)
        except (TypeError, ValueError):
            raise ValidationError("attendance_id is required")

        record = self._attendance.get_by_id(attendance_id)
        if not record or record.user_id != user_id:
            raise NotFoundError("Attendance record not found")
        return record

    def _reload(self, attendance_id: int) -> AttendanceSession:
        record = self._attendance.get_by_id(attendance_id)
        if record is None:
            raise NotFoundError("Attendance record not found")
        return record

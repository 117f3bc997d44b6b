from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import day_bounds, minutes_between, now_local, optional_datetime, parse_iso_datetime, period_start
from ..common.pagination import Page, offset_of
from ..common.validators import optional_number, optional_string, parse_location, require_non_empty
from ..core.enums import ActivityType
from ..core.exceptions import NotFoundError, ValidationError
from ..geocoding.resolver import LocationResolver
from .model import ActivityLogEntry, NewActivity
from .repository import ActivityRepository

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger(f"{__name__}.audit")

ADMIN_SUFFIX = "(Added by admin)"


@dataclass(frozen=True)
class ActivityFilters:
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    activity_type: Optional[ActivityType] = None
    ticket_id: Optional[int] = None


def parse_activity_type(value) -> ActivityType:
    if not value:
        raise ValidationError("Activity type is required")
    try:
        return ActivityType(value)
    except ValueError:
        raise ValidationError("Invalid activity type")


def _duration(start: datetime, end: Optional[datetime]) -> Optional[int]:
    if end is None:
        return None
    if end < start:
        raise ValidationError("end_time must not be before start_time")
    return minutes_between(start, end)


def _metadata(value) -> Optional[dict[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError("metadata must be an object")
    return value


class ActivityService:
    def __init__(
        self,
        activities: ActivityRepository,
        attendance: AttendanceRepository,
        *,
        locations: LocationResolver | None = None,
    ):
        self._activities = activities
        self._attendance = attendance
        self._locations = locations or LocationResolver()

    def create_activity(self, user_id: int, data: dict, *, now: datetime | None = None) -> ActivityLogEntry:
        now = now or now_local()
        start, end = day_bounds(now.date())
        if not self._attendance.find_checked_in_between(start=start, end=end, user_id=user_id):
            raise ValidationError(
                "Check-in required: you must check in before logging activities. "
                "Please check in first with your location."
            )

        activity_type = parse_activity_type(data.get("activity_type"))
        title = require_non_empty(data.get("title"), "Title")
        if not data.get("start_time"):
            raise ValidationError("Start time is required")
        start_time = parse_iso_datetime(data["start_time"])
        end_time = optional_datetime(data.get("end_time"))

        latitude, longitude, location = self._resolve_location(data)
        ticket_id = data.get("ticket_id")

        activity_id = self._activities.create(
            NewActivity(
                user_id=user_id,
                activity_type=activity_type,
                title=title,
                start_time=start_time,
                end_time=end_time,
                duration=_duration(start_time, end_time),
                description=optional_string(data.get("description"), "description"),
                ticket_id=int(ticket_id) if ticket_id not in (None, "") else None,
                location=location,
                latitude=latitude,
                longitude=longitude,
                metadata=_metadata(data.get("metadata")) or {},
            )
        )
        logger.info("Activity logged (%s)", activity_type.value, extra={"user_id": user_id, "activity_id": activity_id})
        return self._reload(activity_id, user_id)

    def update_activity(self, user_id: int, activity_id: int, data: dict) -> ActivityLogEntry:
        existing = self._activities.get_for_user(activity_id=int(activity_id), user_id=user_id)
        if existing is None:
            raise NotFoundError("Activity not found")

        end_time = optional_datetime(data.get("end_time"))
        duration = _duration(existing.start_time, end_time) if end_time else existing.duration

        latitude, longitude, location = existing.latitude, existing.longitude, existing.location
        if any(data.get(k) not in (None, "") for k in ("location", "latitude", "longitude")):
            new_lat, new_lng, location = self._resolve_location(data, fallback=(existing.latitude, existing.longitude))
            latitude, longitude = new_lat, new_lng
            if location is None:
                location = existing.location

        description = optional_string(data.get("description"), "description")
        metadata = _metadata(data.get("metadata"))
        self._activities.update(
            activity_id=existing.activity_id,
            end_time=end_time or existing.end_time,
            duration=duration,
            description=description if description is not None else existing.description,
            location=location,
            latitude=latitude,
            longitude=longitude,
            metadata=metadata if metadata is not None else existing.metadata,
        )
        logger.info("Activity updated", extra={"user_id": user_id, "activity_id": existing.activity_id})
        return self._reload(existing.activity_id, user_id)

    def list_activities(
        self,
        user_id: int,
        filters: ActivityFilters,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> Page[ActivityLogEntry]:
        criteria = dict(
            user_id=user_id,
            start=filters.start_date,
            end=filters.end_date,
            activity_type=filters.activity_type,
            ticket_id=filters.ticket_id,
        )
        items = self._activities.list_for_user(**criteria, offset=offset_of(page, limit), limit=limit)
        return Page(items=list(items), page=page, limit=limit, total=self._activities.count_for_user(**criteria))

    def stats(self, user_id: int, *, period: str = "month", now: datetime | None = None) -> dict:
        now = now or now_local()
        activities = self._activities.list_for_user(user_id=user_id, start=period_start(period, now))

        breakdown: dict[str, dict[str, int]] = {}
        total_duration = 0
        for a in activities:
            entry = breakdown.setdefault(a.activity_type.value, {"count": 0, "total_duration": 0})
            entry["count"] += 1
            entry["total_duration"] += a.duration or 0
            total_duration += a.duration or 0

        return {
            "period": period,
            "total_activities": len(activities),
            "total_duration": total_duration,
            "total_hours": round(total_duration / 60, 2),
            "activity_type_breakdown": breakdown,
        }

    def admin_add_activity(self, admin_id: int, attendance_id: int, data: dict) -> ActivityLogEntry:
        """Log work on behalf of the owner of an attendance record."""
        attendance = self._attendance.get_by_id(int(attendance_id))
        if attendance is None:
            raise NotFoundError("Attendance record not found")

        activity_type = parse_activity_type(data.get("activity_type"))
        title = require_non_empty(data.get("title"), "Title")
        if not data.get("start_time"):
            raise ValidationError("Start time is required")
        start_time = parse_iso_datetime(data["start_time"])
        end_time = optional_datetime(data.get("end_time"))
        description = optional_string(data.get("description"), "description")
        ticket_id = data.get("ticket_id")

        activity_id = self._activities.create(
            NewActivity(
                user_id=attendance.user_id,
                activity_type=activity_type,
                title=title,
                start_time=start_time,
                end_time=end_time,
                duration=_duration(start_time, end_time),
                description=f"{description} {ADMIN_SUFFIX}" if description else "Added by admin",
                ticket_id=int(ticket_id) if ticket_id not in (None, "") else None,
                location=optional_string(data.get("location"), "location"),
                latitude=optional_number(data.get("latitude"), "latitude"),
                longitude=optional_number(data.get("longitude"), "longitude"),
                metadata={"added_by_admin": True, "added_by_id": admin_id},
            )
        )
        audit_logger.info(
            "ACTIVITY_LOG_ADDED by admin %s for attendance %s",
            admin_id,
            attendance.id,
            extra={"user_id": admin_id, "attendance_id": attendance.id, "activity_id": activity_id},
        )
        return self._reload(activity_id, attendance.user_id)

    def _resolve_location(
        self,
        data: dict,
        *,
        fallback: tuple[Optional[float], Optional[float]] = (None, None),
    ) -> tuple[Optional[float], Optional[float], Optional[str]]:
        latitude = optional_number(data.get("latitude"), "latitude")
        longitude = optional_number(data.get("longitude"), "longitude")
        raw_location = optional_string(data.get("location"), "location")

        if raw_location and (latitude is None or longitude is None):
            latitude, longitude = parse_location(raw_location)
        if latitude is None or longitude is None:
            latitude = latitude if latitude is not None else fallback[0]
            longitude = longitude if longitude is not None else fallback[1]

        if latitude is not None and longitude is not None:
            return latitude, longitude, self._locations.resolve(latitude, longitude)
        return latitude, longitude, raw_location

    def _reload(self, activity_id: int, user_id: int) -> ActivityLogEntry:
        entry = self._activities.get_for_user(activity_id=activity_id, user_id=user_id)
        if entry is None:
            raise NotFoundError("Activity not found")
        return entry

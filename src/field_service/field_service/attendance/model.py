from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Union

from ..core.enums import AttendanceStatus, FlagSeverity, FlagType

RecordId = Union[int, str]


@dataclass(frozen=True)
class GeoPoint:
    latitude: Optional[float]
    longitude: Optional[float]
    address: Optional[str] = None

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude, "address": self.address}


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one physical check-in/check-out pair."""

    id: RecordId
    user_id: Optional[int]
    check_in_at: Optional[datetime]
    check_out_at: Optional[datetime] = None
    check_in_location: Optional[GeoPoint] = None
    check_out_location: Optional[GeoPoint] = None
    total_hours: Optional[float] = None
    status: AttendanceStatus = AttendanceStatus.CHECKED_IN
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def work_date(self) -> Optional[date]:
        return self.check_in_at.date() if self.check_in_at else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "check_in_at": _iso(self.check_in_at),
            "check_out_at": _iso(self.check_out_at),
            "check_in_location": self.check_in_location.to_dict() if self.check_in_location else None,
            "check_out_location": self.check_out_location.to_dict() if self.check_out_location else None,
            "total_hours": self.total_hours,
            "status": self.status.value,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class AttendanceFlag:
    type: FlagType
    message: str
    severity: FlagSeverity

    def to_dict(self) -> dict:
        return {"type": self.type.value, "message": self.message, "severity": self.severity.value}


@dataclass(frozen=True)
class ConsolidatedDayRecord:
    """Read-model: one user's attendance for one calendar date (never stored)."""

    id: RecordId
    user_id: int
    work_date: date
    earliest_check_in: Optional[datetime]
    latest_check_out: Optional[datetime]
    check_in_location: Optional[GeoPoint]
    check_out_location: Optional[GeoPoint]
    total_hours: float
    status: AttendanceStatus
    notes: Optional[str]
    sessions: tuple[AttendanceSession, ...] = ()
    flags: tuple[AttendanceFlag, ...] = ()
    activity_count: int = 0

    @property
    def is_absent(self) -> bool:
        return self.status == AttendanceStatus.ABSENT and not self.sessions

    def has_flag(self, flag_type: FlagType) -> bool:
        return any(f.type == flag_type for f in self.flags)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.work_date.isoformat(),
            "check_in_at": _iso(self.earliest_check_in),
            "check_out_at": _iso(self.latest_check_out),
            "check_in_location": self.check_in_location.to_dict() if self.check_in_location else None,
            "check_out_location": self.check_out_location.to_dict() if self.check_out_location else None,
            "total_hours": self.total_hours,
            "status": self.status.value,
            "notes": self.notes,
            "sessions": [s.to_dict() for s in self.sessions],
            "session_count": len(self.sessions),
            "flags": [f.to_dict() for f in self.flags],
            "activity_count": self.activity_count,
        }


@dataclass(frozen=True)
class GapRecord:
    """Idle stretch between two consecutive activity log entries."""

    start: datetime
    end: datetime
    duration_minutes: int

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat(), "duration": self.duration_minutes}


@dataclass
class DayAccumulator:
    """Mutable working state while sessions of one (user, date) are merged."""

    user_id: int
    work_date: date
    first: AttendanceSession
    earliest_check_in: Optional[datetime] = None
    latest_check_out: Optional[datetime] = None
    check_in_location: Optional[GeoPoint] = None
    check_out_location: Optional[GeoPoint] = None
    total_hours: float = 0.0
    status: AttendanceStatus = AttendanceStatus.CHECKED_IN
    notes: Optional[str] = None
    sessions: list[AttendanceSession] = field(default_factory=list)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceSession, GeoPoint


@dataclass(frozen=True)
class AttendanceFilter:
    """Query shape shared by the admin, zone and user-scoped views.

    start/end bound check_in_at inclusively. auto_checked_out narrows
    CHECKED_OUT rows to those closed by the end-of-day job.
    """

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    zone_id: Optional[int] = None
    user_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    auto_checked_out: bool = False
    search: Optional[str] = None


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def find_sessions(self, criteria: AttendanceFilter) -> Sequence[AttendanceSession]:
        """Newest check-in first."""

        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def count_for_user(self, *, user_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None) -> int:
        raise NotImplementedError

    def find_checked_in_between(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
        zone_id: Optional[int] = None,
    ) -> Sequence[AttendanceSession]:
        """Open (CHECKED_IN) sessions with check_in_at in [start, end)."""

        raise NotImplementedError

    def latest_between(self, *, user_id: int, start: datetime, end: datetime) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        check_in_at: datetime,
        location: GeoPoint,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

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
        raise NotImplementedError

    def reopen(self, *, attendance_id: int, notes: Optional[str], updated_at: datetime) -> bool:
        """Clear checkout fields and total hours; status back to CHECKED_IN."""

        raise NotImplementedError

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
        """Admin-only override."""

        raise NotImplementedError

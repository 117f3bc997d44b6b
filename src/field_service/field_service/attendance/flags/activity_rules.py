from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ...core.enums import AttendanceStatus, FlagSeverity, FlagType
from ..model import AttendanceFlag, ConsolidatedDayRecord
from .base import FlagRule


class AutoCheckoutRule(FlagRule):
    """Notes carry the marker written by the end-of-day checkout job."""

    def __init__(self, marker: str):
        self._marker = marker

    def evaluate(self, record: ConsolidatedDayRecord, *, activity_count: int, as_of: datetime) -> Optional[AttendanceFlag]:
        if record.notes and self._marker in record.notes:
            return AttendanceFlag(FlagType.AUTO_CHECKOUT, "Auto checked out", FlagSeverity.INFO)
        return None


class NoActivityRule(FlagRule):
    def evaluate(self, record: ConsolidatedDayRecord, *, activity_count: int, as_of: datetime) -> Optional[AttendanceFlag]:
        if activity_count:
            return None
        if record.status == AttendanceStatus.CHECKED_IN:
            return AttendanceFlag(FlagType.NO_ACTIVITY, "No work recorded", FlagSeverity.ERROR)
        if record.status == AttendanceStatus.CHECKED_OUT:
            return AttendanceFlag(FlagType.NO_ACTIVITY, "No activity after check-in", FlagSeverity.WARNING)
        return None


class MissingCheckoutRule(FlagRule):
    """Still checked in a full day or more after the first check-in."""

    def evaluate(self, record: ConsolidatedDayRecord, *, activity_count: int, as_of: datetime) -> Optional[AttendanceFlag]:
        if record.status != AttendanceStatus.CHECKED_IN or not record.earliest_check_in:
            return None
        if as_of - record.earliest_check_in >= timedelta(days=1):
            return AttendanceFlag(FlagType.MISSING_CHECKOUT, "Missing checkout from previous day", FlagSeverity.ERROR)
        return None


class MultipleSessionsRule(FlagRule):
    def evaluate(self, record: ConsolidatedDayRecord, *, activity_count: int, as_of: datetime) -> Optional[AttendanceFlag]:
        count = len(record.sessions)
        if count > 1:
            return AttendanceFlag(FlagType.MULTIPLE_SESSIONS, f"{count} check-in sessions", FlagSeverity.INFO)
        return None

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import FlagSeverity, FlagType
from ..model import AttendanceFlag, ConsolidatedDayRecord
from .base import FlagRule


class LateCheckInRule(FlagRule):
    """First check-in of the day at or after the late hour."""

    def __init__(self, hour: int):
        self._hour = int(hour)

    def evaluate(self, record: ConsolidatedDayRecord, *, activity_count: int, as_of: datetime) -> Optional[AttendanceFlag]:
        if record.earliest_check_in and record.earliest_check_in.hour >= self._hour:
            return AttendanceFlag(FlagType.LATE, "Late check-in", FlagSeverity.WARNING)
        return None


class EarlyCheckoutRule(FlagRule):
    """Last check-out of the day before the early-checkout hour."""

    def __init__(self, hour: int):
        self._hour = int(hour)

    def evaluate(self, record: ConsolidatedDayRecord, *, activity_count: int, as_of: datetime) -> Optional[AttendanceFlag]:
        if record.latest_check_out and record.latest_check_out.hour < self._hour:
            return AttendanceFlag(FlagType.EARLY_CHECKOUT, "Early checkout", FlagSeverity.WARNING)
        return None


class LongDayRule(FlagRule):
    def __init__(self, max_hours: float):
        self._max_hours = float(max_hours)

    def evaluate(self, record: ConsolidatedDayRecord, *, activity_count: int, as_of: datetime) -> Optional[AttendanceFlag]:
        if record.total_hours > self._max_hours:
            return AttendanceFlag(FlagType.LONG_DAY, "Unusually long day", FlagSeverity.WARNING)
        return None

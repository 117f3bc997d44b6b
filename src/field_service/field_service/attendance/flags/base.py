from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..model import AttendanceFlag, ConsolidatedDayRecord


class FlagRule(ABC):
    """Strategy Pattern: one diagnostic check over a consolidated day record."""

    @abstractmethod
    def evaluate(self, record: ConsolidatedDayRecord, *, activity_count: int, as_of: datetime) -> Optional[AttendanceFlag]:
        raise NotImplementedError

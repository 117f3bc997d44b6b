from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ..model import AttendanceSession


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class CheckoutStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide the status a session closes with."""

    @abstractmethod
    def decide_checkout(self, *, session: AttendanceSession, checkout_at: datetime) -> StatusDecision:
        raise NotImplementedError

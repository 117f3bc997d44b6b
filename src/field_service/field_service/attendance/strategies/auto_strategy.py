from __future__ import annotations

from datetime import datetime

from ...core.constants import AUTO_CHECKOUT_NOTE
from ...core.enums import AttendanceStatus
from ..model import AttendanceSession
from .base import CheckoutStrategy, StatusDecision


class AutoCheckoutStrategy(CheckoutStrategy):
    """End-of-day job closing sessions that were never checked out."""

    def __init__(self, note: str = AUTO_CHECKOUT_NOTE):
        self._note = note

    def decide_checkout(self, *, session: AttendanceSession, checkout_at: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.CHECKED_OUT, note=self._note)

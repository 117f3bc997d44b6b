from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import AttendanceSession
from .base import CheckoutStrategy, StatusDecision


class NormalCheckoutStrategy(CheckoutStrategy):
    """Checkout at or after the cutoff hour."""

    def decide_checkout(self, *, session: AttendanceSession, checkout_at: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.CHECKED_OUT)

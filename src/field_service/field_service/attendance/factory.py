from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import at_hour
from ..core.constants import EARLY_CHECKOUT_CUTOFF_HOUR
from .strategies.auto_strategy import AutoCheckoutStrategy
from .strategies.base import CheckoutStrategy
from .strategies.early_strategy import EarlyCheckoutStrategy
from .strategies.normal_strategy import NormalCheckoutStrategy


@dataclass
class CheckoutStrategyFactory:
    """Factory Pattern: choose appropriate checkout strategy based on rules."""

    cutoff_hour: int = EARLY_CHECKOUT_CUTOFF_HOUR

    def cutoff_for(self, now: datetime) -> datetime:
        return at_hour(now.date(), self.cutoff_hour)

    def is_early(self, now: datetime) -> bool:
        return now < self.cutoff_for(now)

    def for_checkout(self, *, now: datetime) -> CheckoutStrategy:
        if self.is_early(now):
            return EarlyCheckoutStrategy()
        return NormalCheckoutStrategy()

    def for_auto_checkout(self) -> CheckoutStrategy:
        return AutoCheckoutStrategy()

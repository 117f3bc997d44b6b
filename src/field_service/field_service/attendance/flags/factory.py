from __future__ import annotations

from dataclasses import dataclass

from ...core import constants
from .activity_rules import AutoCheckoutRule, MissingCheckoutRule, MultipleSessionsRule, NoActivityRule
from .base import FlagRule
from .timing_rules import EarlyCheckoutRule, LateCheckInRule, LongDayRule


@dataclass
class FlagRuleFactory:
    """Factory Pattern: assemble the ordered rule set used for flag derivation."""

    late_hour: int = constants.LATE_CHECKIN_HOUR
    early_checkout_hour: int = constants.EARLY_CHECKOUT_FLAG_HOUR
    long_day_hours: float = constants.LONG_DAY_HOURS
    auto_checkout_marker: str = constants.AUTO_CHECKOUT_MARKER

    def build(self) -> tuple[FlagRule, ...]:
        return (
            LateCheckInRule(self.late_hour),
            EarlyCheckoutRule(self.early_checkout_hour),
            LongDayRule(self.long_day_hours),
            AutoCheckoutRule(self.auto_checkout_marker),
            NoActivityRule(),
            MissingCheckoutRule(),
            MultipleSessionsRule(),
        )

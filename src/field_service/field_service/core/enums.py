from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for route scoping."""

    ADMIN = "ADMIN"
    ZONE_USER = "ZONE_USER"
    SERVICE_PERSON = "SERVICE_PERSON"


class AttendanceStatus(str, Enum):
    """Status of a single check-in/check-out session."""

    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    EARLY_CHECKOUT = "EARLY_CHECKOUT"
    LATE = "LATE"
    ABSENT = "ABSENT"


class ActivityType(str, Enum):
    TICKET_WORK = "TICKET_WORK"
    BD_VISIT = "BD_VISIT"
    PO_DISCUSSION = "PO_DISCUSSION"
    SPARE_REPLACEMENT = "SPARE_REPLACEMENT"
    TRAVEL = "TRAVEL"
    TRAINING = "TRAINING"
    MEETING = "MEETING"
    MAINTENANCE = "MAINTENANCE"
    DOCUMENTATION = "DOCUMENTATION"
    OTHER = "OTHER"


class FlagType(str, Enum):
    """Diagnostic tags attached to a consolidated day record."""

    ABSENT = "ABSENT"
    LATE = "LATE"
    EARLY_CHECKOUT = "EARLY_CHECKOUT"
    LONG_DAY = "LONG_DAY"
    AUTO_CHECKOUT = "AUTO_CHECKOUT"
    NO_ACTIVITY = "NO_ACTIVITY"
    MISSING_CHECKOUT = "MISSING_CHECKOUT"
    MULTIPLE_SESSIONS = "MULTIPLE_SESSIONS"


class FlagSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

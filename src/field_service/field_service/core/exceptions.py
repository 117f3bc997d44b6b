from __future__ import annotations

from datetime import datetime


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidInputError(ValidationError):
    """Raised when the consolidation engine receives a malformed session."""


class ConflictError(DomainError):
    """Raised when an action clashes with the current attendance state."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist or is not eligible."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class EarlyCheckoutConfirmationRequired(ValidationError):
    """Checkout before the cutoff hour needs an explicit confirmation."""

    def __init__(self, *, checkout_time: datetime, scheduled_time: datetime):
        super().__init__(
            f"You are checking out before {scheduled_time.strftime('%I %p').lstrip('0')}. "
            "Do you really want to checkout?"
        )
        self.checkout_time = checkout_time
        self.scheduled_time = scheduled_time

"""Helpers shared by the Flask controllers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    EarlyCheckoutConfirmationRequired,
    NotFoundError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    role: Role
    zone_id: Optional[int] = None


def current_user() -> Optional[CurrentUser]:
    """Identity placed in the session by the external login flow."""
    if "user_id" not in session:
        return None
    zone_id = session.get("zone_id")
    raw_role = session.get("role", Role.SERVICE_PERSON.value)
    try:
        role = Role(raw_role)
    except ValueError:
        raise AuthorizationError(f"Unknown role {raw_role!r}")
    return CurrentUser(
        user_id=int(session["user_id"]),
        role=role,
        zone_id=int(zone_id) if zone_id else None,
    )


def fail(message: str, status: int, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def ok(data=None, *, status: int = 200, **extra):
    body = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            user = current_user()
        except AuthorizationError as e:
            return fail(str(e), 403)
        if user is None:
            return fail("User not authenticated", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                user = current_user()
            except AuthorizationError as e:
                return fail(str(e), 403)
            if user is None:
                return fail("User not authenticated", 401)
            if user.role not in roles:
                return fail("Insufficient permissions", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def handle_errors(action: str):
    """Map domain exceptions to JSON responses; log anything unexpected."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except EarlyCheckoutConfirmationRequired as e:
                return fail(
                    str(e),
                    400,
                    requires_confirmation=True,
                    checkout_time=e.checkout_time.isoformat(),
                    scheduled_time=e.scheduled_time.isoformat(),
                )
            except (ValidationError, ConflictError) as e:
                return fail(str(e), 400)
            except NotFoundError as e:
                return fail(str(e), 404)
            except AuthorizationError as e:
                return fail(str(e), 403)
            except DomainError as e:
                return fail(str(e), 400)
            except Exception:
                logger.exception("%s failed", action)
                return fail(f"Failed to {action}", 500)

        return wrapper

    return decorator


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_int(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value in (None, "", "all"):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def query_date(name: str) -> Optional[date]:
    value = request.args.get(name)
    return parse_iso_date(value[:10]) if value else None

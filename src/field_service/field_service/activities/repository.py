from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import ActivityType
from .model import ActivityLogEntry, NewActivity


class ActivityRepository(Protocol):
    def get_for_user(self, *, activity_id: int, user_id: int) -> Optional[ActivityLogEntry]:
        raise NotImplementedError

    def create(self, activity: NewActivity) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        activity_id: int,
        end_time: Optional[datetime],
        duration: Optional[int],
        description: Optional[str],
        location: Optional[str],
        latitude: Optional[float],
        longitude: Optional[float],
        metadata: Optional[dict[str, Any]],
    ) -> bool:
        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        activity_type: Optional[ActivityType] = None,
        ticket_id: Optional[int] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[ActivityLogEntry]:
        """Newest first."""

        raise NotImplementedError

    def count_for_user(
        self,
        *,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        activity_type: Optional[ActivityType] = None,
        ticket_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def list_in_range(self, *, user_id: int, start: datetime, end: datetime) -> Sequence[ActivityLogEntry]:
        """Activities of one user with start_time in [start, end), oldest first."""

        raise NotImplementedError

    def count_by_user(
        self,
        *,
        start: Optional[datetime],
        end: Optional[datetime],
        activity_type: Optional[ActivityType] = None,
    ) -> dict[int, int]:
        raise NotImplementedError

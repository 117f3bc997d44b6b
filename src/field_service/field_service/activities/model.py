from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import ActivityType


@dataclass(frozen=True)
class ActivityLogEntry:
    """Domain entity: a logged unit of work, optionally tied to a ticket."""

    activity_id: int
    user_id: int
    activity_type: ActivityType
    title: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    description: Optional[str] = None
    ticket_id: Optional[int] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.activity_id,
            "user_id": self.user_id,
            "activity_type": self.activity_type.value,
            "title": self.title,
            "description": self.description,
            "ticket_id": self.ticket_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration": self.duration,
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class NewActivity:
    """Validated input for an insert."""

    user_id: int
    activity_type: ActivityType
    title: str
    start_time: datetime
    end_time: Optional[datetime]
    duration: Optional[int]
    description: Optional[str]
    ticket_id: Optional[int]
    location: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    metadata: dict[str, Any] = field(default_factory=dict)

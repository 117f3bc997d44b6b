from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class ServiceZone:
    zone_id: int
    name: str
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.zone_id, "name": self.name, "description": self.description}


@dataclass(frozen=True)
class User:
    """Domain entity: User, also used as a roster entry.

    Plain data object; no DB access.
    """

    user_id: int
    name: Optional[str]
    email: str
    role: Role
    is_active: bool = True
    zones: tuple[ServiceZone, ...] = ()

    @property
    def display_name(self) -> str:
        return self.name or self.email

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "zones": [{"id": z.zone_id, "name": z.name} for z in self.zones],
        }

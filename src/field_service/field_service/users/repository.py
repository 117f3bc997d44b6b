from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import ServiceZone, User


class UserRepository(Protocol):
    """Repository interface for users and service zones.

    Services depend on this protocol, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_many(self, user_ids: Iterable[int]) -> Sequence[User]:
        raise NotImplementedError

    def find_roster(
        self,
        *,
        zone_id: Optional[int] = None,
        user_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Sequence[User]:
        """Active SERVICE_PERSON users matching the filters, ordered by name."""

        raise NotImplementedError

    def list_zones(self, *, zone_id: Optional[int] = None) -> Sequence[ServiceZone]:
        raise NotImplementedError

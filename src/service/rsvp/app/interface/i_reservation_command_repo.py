from abc import ABC, abstractmethod
from typing import Optional

from src.service.rsvp.domain.entity.reservation_entity import ReservationEntity


class IReservationCommandRepo(ABC):
    @abstractmethod
    async def get_for_update(
        self, *, user_id: int, event_id: int
    ) -> Optional[ReservationEntity]:
        """Read the (user, event) record under a row lock"""
        pass

    @abstractmethod
    async def upsert(self, *, reservation: ReservationEntity) -> ReservationEntity:
        """
        Insert or update the single record for (user_id, event_id)

        Never creates a second row for the same pair.
        """
        pass

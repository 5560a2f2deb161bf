"""
Event Command Repository Interface

Write side of the event record. All methods run on the session of the
enclosing unit of work; none of them commit.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.service.rsvp.app.dto.slot_change import SlotChange
from src.service.rsvp.domain.entity.event_entity import EventEntity


class IEventCommandRepo(ABC):
    @abstractmethod
    async def get_by_id_for_update(self, *, event_id: int) -> Optional[EventEntity]:
        """
        Read the event holding an exclusive row lock until the transaction ends

        Returns:
            EventEntity or None if not found
        """
        pass

    @abstractmethod
    async def create(self, *, event: EventEntity) -> EventEntity:
        pass

    @abstractmethod
    async def update_details(self, *, event: EventEntity) -> EventEntity:
        """Persist non-capacity fields (title, description, category, location, time, duration)"""
        pass

    @abstractmethod
    async def delete(self, *, event_id: int) -> bool:
        pass

    @abstractmethod
    async def reserve_slot(self, *, event_id: int) -> Optional[SlotChange]:
        """
        Decrement available_slots by one only if it is above zero

        The predicate and the write are a single statement, so two racing
        callers can never both take the last slot.

        Returns:
            SlotChange, or None when no row matched (no slot left)
        """
        pass

    @abstractmethod
    async def release_slot(self, *, event_id: int) -> Optional[SlotChange]:
        """
        Increment available_slots by one, capped at total_slots

        Returns:
            SlotChange, or None if the event does not exist
        """
        pass

    @abstractmethod
    async def set_capacity(
        self, *, event_id: int, total_slots: int, available_slots: int
    ) -> Optional[SlotChange]:
        pass

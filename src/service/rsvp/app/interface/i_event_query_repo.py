from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.service.rsvp.domain.entity.event_entity import EventEntity


class IEventQueryRepo(ABC):
    """Lock-free reads used by the countdown broadcaster and lifecycle queries."""

    @abstractmethod
    async def get_by_id(self, *, event_id: int) -> Optional[EventEntity]:
        pass

    @abstractmethod
    async def list_ending_since(self, *, since: datetime, limit: int) -> List[EventEntity]:
        """
        Events with a positive duration whose end (time + duration) is after
        `since`, ordered by start time
        """
        pass

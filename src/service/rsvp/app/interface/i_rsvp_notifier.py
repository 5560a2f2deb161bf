"""
RSVP Notifier Interface

Fire-and-forget fan-out of state changes to subscribers. Clients that were
disconnected at publish time get nothing replayed; they re-fetch state.

Topics:
- event:{event_id}  updates for one event
- events            global feed (created/updated/deleted and capacity)
"""

from typing import Any, Protocol

from src.service.rsvp.app.dto.slot_change import SlotChange
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.lifecycle_clock import LifecycleSnapshot


GLOBAL_TOPIC = 'events'


def event_topic(event_id: int) -> str:
    return f'event:{event_id}'


class IRsvpNotifier(Protocol):
    async def on_capacity_changed(self, *, change: SlotChange) -> bool:
        """
        Publish committed capacity. Returns False if the change was dropped
        because a newer slot_version was already published for the event.
        """
        ...

    async def on_lifecycle_tick(self, *, lifecycle: LifecycleSnapshot) -> None: ...

    async def on_event_created(self, *, event: EventEntity) -> None: ...

    async def on_event_updated(self, *, event: EventEntity, updated_fields: dict[str, Any]) -> None: ...

    async def on_event_deleted(self, *, event_id: int) -> None: ...

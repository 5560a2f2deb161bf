"""
RSVP Notifier Implementation

Turns committed state changes into broadcast messages on the in-memory
broadcaster. Capacity messages for one event go out in commit order: each
carries the slot_version it committed, and anything not newer than the last
version published for that event is dropped.
"""

from typing import Any, Dict

from src.platform.event.i_in_memory_broadcaster import IInMemoryEventBroadcaster
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.rsvp_metrics import metrics
from src.service.rsvp.app.dto.event_payload import event_payload
from src.service.rsvp.app.dto.slot_change import SlotChange
from src.service.rsvp.app.interface.i_rsvp_notifier import GLOBAL_TOPIC, event_topic
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.enum.broadcast_event_type import BroadcastEventType
from src.service.rsvp.domain.lifecycle_clock import LifecycleSnapshot


class RsvpNotifierImpl:
    def __init__(self, *, broadcaster: IInMemoryEventBroadcaster) -> None:
        self.broadcaster = broadcaster
        # event_id -> last slot_version handed to the broadcaster
        self._published_versions: Dict[int, int] = {}

    async def _publish(self, *, topic: str, event_data: dict) -> None:
        try:
            await self.broadcaster.broadcast(topic=topic, event_data=event_data)
        except Exception as e:
            Logger.base.warning(f'⚠️ [NOTIFIER] Publish to {topic} failed: {e}')

    async def on_capacity_changed(self, *, change: SlotChange) -> bool:
        last = self._published_versions.get(change.event_id, -1)
        if change.slot_version <= last:
            metrics.broadcast_stale_dropped.inc()
            Logger.base.info(
                f'⏭️ [NOTIFIER] Dropping stale capacity for event {change.event_id}: '
                f'v{change.slot_version} <= v{last}'
            )
            return False
        self._published_versions[change.event_id] = change.slot_version

        metrics.update_available_slots(
            event_id=change.event_id, available_slots=change.available_slots
        )
        event_data = {
            'event_type': BroadcastEventType.CAPACITY_CHANGED.value,
            'event_id': change.event_id,
            'available_slots': change.available_slots,
            'total_slots': change.total_slots,
            'slot_version': change.slot_version,
        }
        await self._publish(topic=event_topic(change.event_id), event_data=event_data)
        await self._publish(topic=GLOBAL_TOPIC, event_data=event_data)
        return True

    async def on_lifecycle_tick(self, *, lifecycle: LifecycleSnapshot) -> None:
        await self._publish(
            topic=event_topic(lifecycle.event_id),
            event_data={
                'event_type': BroadcastEventType.LIFECYCLE_TICK.value,
                'event_id': lifecycle.event_id,
                'status': lifecycle.status.value,
                'time_remaining_ms': lifecycle.time_remaining_ms,
                'starts_at': lifecycle.starts_at,
                'ends_at': lifecycle.ends_at,
            },
        )
        if lifecycle.is_completed:
            # joins and cancels are closed; a later resize starts a new baseline
            self._published_versions.pop(lifecycle.event_id, None)

    async def on_event_created(self, *, event: EventEntity) -> None:
        assert event.id is not None
        self._published_versions[event.id] = event.slot_version
        await self._publish(
            topic=GLOBAL_TOPIC,
            event_data={'event_type': BroadcastEventType.EVENT_CREATED.value, **event_payload(event)},
        )

    async def on_event_updated(self, *, event: EventEntity, updated_fields: dict[str, Any]) -> None:
        assert event.id is not None
        event_data = {
            'event_type': BroadcastEventType.EVENT_UPDATED.value,
            'event_id': event.id,
            'updated_fields': updated_fields,
        }
        await self._publish(topic=event_topic(event.id), event_data=event_data)
        await self._publish(topic=GLOBAL_TOPIC, event_data=event_data)

    async def on_event_deleted(self, *, event_id: int) -> None:
        self._published_versions.pop(event_id, None)
        event_data = {'event_type': BroadcastEventType.EVENT_DELETED.value, 'event_id': event_id}
        await self._publish(topic=event_topic(event_id), event_data=event_data)
        await self._publish(topic=GLOBAL_TOPIC, event_data=event_data)

"""
Stream Event Updates Use Case

SSE streaming of RSVP notifications, per event or for the global feed.
The stream subscribes before reading the initial state, so nothing committed
after the snapshot can be missed; anything older than that is not replayed.
"""

from collections.abc import AsyncGenerator
from typing import Any, Callable, Self

import anyio
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.event.i_in_memory_broadcaster import IInMemoryEventBroadcaster
from src.platform.exception.exceptions import EventNotFoundError, InvalidDurationError
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.dto.event_payload import event_payload
from src.service.rsvp.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.rsvp.app.interface.i_rsvp_notifier import GLOBAL_TOPIC, event_topic
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.enum.broadcast_event_type import BroadcastEventType
from src.service.rsvp.domain.lifecycle_clock import snapshot, utc_now


class StreamEventUpdatesUseCase:
    def __init__(
        self,
        *,
        event_query_repo: IEventQueryRepo,
        broadcaster: IInMemoryEventBroadcaster,
        clock: Callable = utc_now,
    ) -> None:
        self.event_query_repo = event_query_repo
        self.broadcaster = broadcaster
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        event_query_repo: IEventQueryRepo = Depends(Provide[Container.event_query_repo]),
        broadcaster: IInMemoryEventBroadcaster = Depends(Provide[Container.event_broadcaster]),
    ) -> Self:
        return cls(event_query_repo=event_query_repo, broadcaster=broadcaster)

    async def ensure_event_exists(self, *, event_id: int) -> None:
        if await self.event_query_repo.get_by_id(event_id=event_id) is None:
            raise EventNotFoundError(event_id)

    def _initial_status(self, event: EventEntity) -> dict[str, Any]:
        data: dict[str, Any] = {
            'event_type': BroadcastEventType.INITIAL_STATUS.value,
            **event_payload(event),
        }
        try:
            lifecycle = snapshot(event, self.clock())
        except InvalidDurationError:
            data['status'] = None
            data['time_remaining_ms'] = None
        else:
            data['status'] = lifecycle.status.value
            data['time_remaining_ms'] = lifecycle.time_remaining_ms
        return data

    async def stream(self, *, event_id: int) -> AsyncGenerator[dict, None]:
        """
        Yields:
            initial_status first, then every notification on event:{event_id}
        """
        topic = event_topic(event_id)
        receive_stream = await self.broadcaster.subscribe(topic=topic)

        try:
            event = await self.event_query_repo.get_by_id(event_id=event_id)
            if event is None:
                yield {'event_type': BroadcastEventType.EVENT_DELETED.value, 'event_id': event_id}
                return

            yield self._initial_status(event)

            async for event_data in receive_stream:
                yield event_data
                if event_data.get('event_type') == BroadcastEventType.EVENT_DELETED:
                    return

        except anyio.get_cancelled_exc_class():
            Logger.base.info(f'[SSE] Client disconnected from event {event_id}')
            raise
        finally:
            await self.broadcaster.unsubscribe(topic=topic, stream=receive_stream)

    async def stream_global(self) -> AsyncGenerator[dict, None]:
        receive_stream = await self.broadcaster.subscribe(topic=GLOBAL_TOPIC)

        try:
            async for event_data in receive_stream:
                yield event_data
        except anyio.get_cancelled_exc_class():
            Logger.base.info('[SSE] Client disconnected from global feed')
            raise
        finally:
            await self.broadcaster.unsubscribe(topic=GLOBAL_TOPIC, stream=receive_stream)

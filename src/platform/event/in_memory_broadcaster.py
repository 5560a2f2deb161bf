"""
In-memory Event Broadcaster Implementation

Singleton broadcaster for distributing RSVP notifications
from use cases and countdown tasks to SSE endpoints.
"""

from typing import Dict, List

from anyio import BrokenResourceError, ClosedResourceError, WouldBlock, create_memory_object_stream
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.rsvp_metrics import metrics


class InMemoryEventBroadcasterImpl:
    """
    In-memory pub/sub keyed by topic

    Architecture:
    - Use Case / Countdown task -> broadcast() -> SSE Endpoint
    - Each topic has a list of subscriber stream tuples
    - Auto-cleanup empty subscriber lists

    Memory Management:
    - Stream max buffer: buffer_size events (default 10)
    - Drop policy: Silently drop if stream full (send_nowait raises WouldBlock)
    - Cleanup: Remove empty lists on unsubscribe and close streams
    """

    def __init__(self, *, buffer_size: int = 10):
        self.buffer_size = buffer_size
        # topic -> list of (send_stream, receive_stream) tuples
        self._subscribers: Dict[
            str, List[tuple[MemoryObjectSendStream[dict], MemoryObjectReceiveStream[dict]]]
        ] = {}

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))

    async def subscribe(self, *, topic: str) -> MemoryObjectReceiveStream[dict]:
        send_stream, receive_stream = create_memory_object_stream[dict](
            max_buffer_size=self.buffer_size
        )

        if topic not in self._subscribers:
            self._subscribers[topic] = []

        self._subscribers[topic].append((send_stream, receive_stream))

        Logger.base.debug(
            f'📡 [BROADCASTER] Subscribed to {topic} '
            f'(total subscribers: {len(self._subscribers[topic])})'
        )

        return receive_stream

    async def broadcast(self, *, topic: str, event_data: dict) -> int:
        if topic not in self._subscribers:
            Logger.base.debug(f'📡 [BROADCASTER] No subscribers for {topic}')
            return 0

        delivered = 0
        dropped = 0

        # Copy: a subscriber may unsubscribe while we iterate
        for send_stream, _ in list(self._subscribers[topic]):
            try:
                send_stream.send_nowait(event_data)
                delivered += 1
            except WouldBlock:
                # Slow consumer
                dropped += 1
                Logger.base.warning(
                    f'⚠️ [BROADCASTER] Stream full for {topic}, '
                    f'dropping event (type={event_data.get("event_type")})'
                )
            except (BrokenResourceError, ClosedResourceError):
                dropped += 1

        metrics.record_broadcast(topic=topic, delivered=delivered, dropped=dropped)
        Logger.base.info(
            f'📡 [BROADCASTER] Broadcast to {topic}: delivered={delivered}, dropped={dropped}'
        )
        return delivered

    async def unsubscribe(self, *, topic: str, stream: MemoryObjectReceiveStream[dict]) -> None:
        if topic not in self._subscribers:
            return

        subscribers = self._subscribers[topic]
        for i, (send_stream, receive_stream) in enumerate(subscribers):
            if receive_stream is stream:
                await send_stream.aclose()
                await receive_stream.aclose()
                subscribers.pop(i)
                Logger.base.debug(
                    f'📡 [BROADCASTER] Unsubscribed from {topic} (remaining: {len(subscribers)})'
                )
                break

        if not self._subscribers[topic]:
            del self._subscribers[topic]
            Logger.base.debug(f'📡 [BROADCASTER] Cleaned up empty list for {topic}')

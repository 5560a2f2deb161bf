"""
In-memory Event Broadcaster Interface

Provides pub/sub mechanism for distributing RSVP notifications
from use cases and countdown tasks to SSE endpoints within the same process.
"""

from typing import Protocol

from anyio.streams.memory import MemoryObjectReceiveStream


class IInMemoryEventBroadcaster(Protocol):
    """
    Interface for in-memory topic broadcasting

    Topics are plain strings (e.g. 'event:42', 'events').

    Uses anyio's MemoryObjectStream for better async support and type safety.
    """

    async def subscribe(self, *, topic: str) -> MemoryObjectReceiveStream[dict]:
        """
        Subscribe to a topic

        Args:
            topic: Topic name to subscribe to

        Returns:
            MemoryObjectReceiveStream that will receive event dictionaries
        """
        ...

    async def broadcast(self, *, topic: str, event_data: dict) -> int:
        """
        Broadcast event to all subscribers of this topic

        Args:
            topic: Topic name
            event_data: Event dictionary to broadcast

        Returns:
            Number of subscribers the event was delivered to

        Note:
            - Silently ignores if no subscribers exist
            - Drops event if subscriber stream is full (prevents blocking)
        """
        ...

    async def unsubscribe(self, *, topic: str, stream: MemoryObjectReceiveStream[dict]) -> None:
        """
        Unsubscribe and cleanup

        Note:
            - Removes empty subscriber lists to prevent memory leaks
            - Safe to call with non-existent stream, and safe to call twice
        """
        ...

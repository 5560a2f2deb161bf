"""
Broadcast Event Type Enum - Domain Value Object

Types of notifications pushed to subscribers over SSE.
"""

from enum import StrEnum


class BroadcastEventType(StrEnum):
    INITIAL_STATUS = 'initial_status'
    CAPACITY_CHANGED = 'capacity_changed'
    LIFECYCLE_TICK = 'lifecycle_tick'
    EVENT_CREATED = 'event_created'
    EVENT_UPDATED = 'event_updated'
    EVENT_DELETED = 'event_deleted'

"""
Lifecycle Status Enum - derived temporal classification of an event

Never persisted: always recomputed from (now, event.time, event.duration).
"""

from enum import StrEnum


class LifecycleStatus(StrEnum):
    UPCOMING = 'upcoming'
    ONGOING = 'ongoing'
    COMPLETED = 'completed'

from datetime import datetime
from typing import Any, Optional

import attrs

from src.platform.exception.exceptions import (
    CapacityBelowParticipantsError,
    DomainError,
    InvalidDurationError,
)
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.domain.enum.event_category import EventCategory
from src.service.rsvp.domain.lifecycle_clock import as_utc, is_valid_duration


EDITABLE_DETAIL_FIELDS = ('title', 'description', 'category', 'location', 'time', 'duration')


def _validate_total_slots(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if value < 1:
        raise DomainError('total_slots must be a positive integer')


def _validate_available_slots(instance: 'EventEntity', attribute: attrs.Attribute, value: int) -> None:
    if value < 0 or value > instance.total_slots:
        raise DomainError(
            f'available_slots must be between 0 and total_slots ({instance.total_slots})'
        )


def _validate_title(title: Any) -> str:
    if not isinstance(title, str) or not 3 <= len(title.strip()) <= 255:
        raise DomainError('Title must be between 3 and 255 characters')
    return title.strip()


def _validate_location(location: Any) -> str:
    if not isinstance(location, str) or not location.strip():
        raise DomainError('Location is required')
    return location.strip()


def _validate_category(category: Any) -> EventCategory:
    try:
        return EventCategory(category)
    except ValueError:
        raise DomainError('Category must be soccer, basketball, or running')


def _validate_duration(duration: Any) -> int:
    if not is_valid_duration(duration):
        raise InvalidDurationError()
    return duration


@attrs.define
class EventEntity:
    title: str
    category: EventCategory
    location: str
    time: datetime
    duration: Optional[int]  # minutes; records with a missing duration block every RSVP path
    total_slots: int = attrs.field(validator=_validate_total_slots)
    available_slots: int = attrs.field(validator=_validate_available_slots)
    created_by: int
    description: Optional[str] = None
    id: Optional[int] = None
    slot_version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        title: str,
        category: str,
        location: str,
        time: datetime,
        duration: int,
        total_slots: int,
        created_by: int,
        now: datetime,
        description: Optional[str] = None,
    ) -> 'EventEntity':
        if as_utc(time) <= as_utc(now):
            raise DomainError('Event time must be in the future')

        return cls(
            title=_validate_title(title),
            description=description,
            category=_validate_category(category),
            location=_validate_location(location),
            time=as_utc(time),
            duration=_validate_duration(duration),
            total_slots=total_slots,
            available_slots=total_slots,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

    @property
    def participant_count(self) -> int:
        return self.total_slots - self.available_slots

    def is_owned_by(self, user_id: int) -> bool:
        return self.created_by == user_id

    @Logger.io
    def reconcile_capacity(self, new_total: int) -> 'EventEntity':
        """
        Resize keeping current participants:
        new_available = new_total - (total_slots - available_slots)
        """
        if not isinstance(new_total, int) or isinstance(new_total, bool) or new_total < 1:
            raise DomainError('total_slots must be a positive integer')

        participants = self.participant_count
        if new_total < participants:
            raise CapacityBelowParticipantsError(current_participants=participants)

        return attrs.evolve(
            self,
            total_slots=new_total,
            available_slots=new_total - participants,
            slot_version=self.slot_version + 1,
        )

    @Logger.io
    def with_details(self, *, now: datetime, **changes: Any) -> 'EventEntity':
        """Apply owner edits to non-capacity fields."""
        unknown = set(changes) - set(EDITABLE_DETAIL_FIELDS)
        if unknown:
            raise DomainError(f'Fields cannot be edited: {", ".join(sorted(unknown))}')

        if 'title' in changes:
            changes['title'] = _validate_title(changes['title'])
        if 'category' in changes:
            changes['category'] = _validate_category(changes['category'])
        if 'location' in changes:
            changes['location'] = _validate_location(changes['location'])
        if 'duration' in changes:
            changes['duration'] = _validate_duration(changes['duration'])
        if 'time' in changes:
            if not isinstance(changes['time'], datetime):
                raise DomainError('Event time is required')
            changes['time'] = as_utc(changes['time'])

        return attrs.evolve(self, updated_at=now, **changes)

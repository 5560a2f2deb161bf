"""
Event Lifecycle Clock

Single source of truth for "where is this event in time". Join, cancel,
feedback gating, the countdown broadcaster and the lifecycle endpoint all
call into this module, so rounding and timezone handling never diverge.

    upcoming   now < start
    ongoing    start <= now < end
    completed  now >= end          (end = start + duration minutes)
"""

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

import attrs

from src.platform.exception.exceptions import (
    EventAlreadyFinishedError,
    EventNotFinishedError,
    InvalidDurationError,
)
from src.service.rsvp.domain.enum.lifecycle_status import LifecycleStatus


if TYPE_CHECKING:
    from src.service.rsvp.domain.entity.event_entity import EventEntity


_ONE_MS = timedelta(milliseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes coming from the store are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_valid_duration(duration_minutes: Optional[int]) -> bool:
    return (
        isinstance(duration_minutes, int)
        and not isinstance(duration_minutes, bool)
        and duration_minutes > 0
    )


def event_end(start: datetime, duration_minutes: Optional[int]) -> datetime:
    if not is_valid_duration(duration_minutes):
        raise InvalidDurationError()
    assert duration_minutes is not None
    return as_utc(start) + timedelta(minutes=duration_minutes)


def classify(
    now: datetime, start: datetime, duration_minutes: Optional[int]
) -> LifecycleStatus:
    end = event_end(start, duration_minutes)
    now, start = as_utc(now), as_utc(start)
    if now < start:
        return LifecycleStatus.UPCOMING
    if now < end:
        return LifecycleStatus.ONGOING
    return LifecycleStatus.COMPLETED


def time_remaining_ms(now: datetime, start: datetime, duration_minutes: Optional[int]) -> int:
    """Milliseconds until the next boundary: start if upcoming, end if ongoing, else 0."""
    end = event_end(start, duration_minutes)
    now, start = as_utc(now), as_utc(start)
    if now < start:
        return (start - now) // _ONE_MS
    if now < end:
        return (end - now) // _ONE_MS
    return 0


@attrs.frozen
class LifecycleSnapshot:
    event_id: int
    status: LifecycleStatus
    time_remaining_ms: int
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int

    @property
    def is_completed(self) -> bool:
        return self.status is LifecycleStatus.COMPLETED


def snapshot(event: 'EventEntity', now: datetime) -> LifecycleSnapshot:
    assert event.id is not None
    end = event_end(event.time, event.duration)
    return LifecycleSnapshot(
        event_id=event.id,
        status=classify(now, event.time, event.duration),
        time_remaining_ms=time_remaining_ms(now, event.time, event.duration),
        starts_at=as_utc(event.time),
        ends_at=end,
        duration_minutes=event.duration,  # type: ignore[arg-type]
    )


def ensure_not_finished(event: 'EventEntity', now: datetime) -> LifecycleStatus:
    """Gate for join/cancel: raises once the event is over (or its duration is invalid)."""
    status = classify(now, event.time, event.duration)
    if status is LifecycleStatus.COMPLETED:
        raise EventAlreadyFinishedError()
    return status


def ensure_finished(event: 'EventEntity', now: datetime) -> None:
    """Gate for feedback: only accepted after the event has ended."""
    if classify(now, event.time, event.duration) is not LifecycleStatus.COMPLETED:
        raise EventNotFinishedError()

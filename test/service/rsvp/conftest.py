"""
Shared fixtures for RSVP tests

Everything runs on the in-memory unit of work, which has the same locking
and commit semantics as the SQLAlchemy one.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.enum.event_category import EventCategory
from src.service.rsvp.driven_adapter.repo.in_memory_store import (
    InMemoryRsvpStore,
    InMemoryUnitOfWork,
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> InMemoryRsvpStore:
    return InMemoryRsvpStore()


@pytest.fixture
def uow_factory(store: InMemoryRsvpStore) -> Callable[[], InMemoryUnitOfWork]:
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def seed_event(store: InMemoryRsvpStore, clock: FakeClock) -> Callable[..., EventEntity]:
    """Put a committed event straight into the store (starts in one day by default)."""

    def _seed(
        *,
        start: Optional[datetime] = None,
        duration: Optional[int] = 90,
        total_slots: int = 10,
        available_slots: Optional[int] = None,
        created_by: int = 1,
    ) -> EventEntity:
        event_id = store.next_event_id()
        event = EventEntity(
            id=event_id,
            title='Sunday 5-a-side',
            category=EventCategory.SOCCER,
            location='Riverside Park',
            time=start if start is not None else clock.now + timedelta(days=1),
            duration=duration,
            total_slots=total_slots,
            available_slots=total_slots if available_slots is None else available_slots,
            created_by=created_by,
            created_at=clock.now,
            updated_at=clock.now,
        )
        store.events[event_id] = event
        return event

    return _seed


@pytest.fixture
def mock_notifier() -> AsyncMock:
    notifier = AsyncMock()
    notifier.on_capacity_changed = AsyncMock(return_value=True)
    notifier.on_lifecycle_tick = AsyncMock()
    notifier.on_event_created = AsyncMock()
    notifier.on_event_updated = AsyncMock()
    notifier.on_event_deleted = AsyncMock()
    return notifier


@pytest.fixture
def mock_countdown() -> MagicMock:
    countdown = MagicMock()
    countdown.start = MagicMock()
    countdown.stop = MagicMock(return_value=True)
    return countdown

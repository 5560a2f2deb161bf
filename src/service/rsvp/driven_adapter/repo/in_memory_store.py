"""
In-memory RSVP store

Process-local stand-in for PostgreSQL, selected with STORE_BACKEND=memory and
used by the test suite. Semantics mirror SqlAlchemyUnitOfWork:

- Locking an event takes a per-event asyncio.Lock held until commit/rollback,
  the same way FOR UPDATE holds a row lock until the transaction ends
- Writes are staged on the unit of work and only become visible on commit
- Every repo mutation takes the event lock first, so a slot check and its
  write cannot interleave with another unit of work
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import attrs

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.dto.slot_change import SlotChange
from src.service.rsvp.app.interface.i_event_command_repo import IEventCommandRepo
from src.service.rsvp.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.rsvp.app.interface.i_feedback_command_repo import IFeedbackCommandRepo
from src.service.rsvp.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.entity.feedback_entity import FeedbackEntity
from src.service.rsvp.domain.entity.reservation_entity import ReservationEntity
from src.service.rsvp.domain.lifecycle_clock import as_utc, event_end, is_valid_duration, utc_now


ReservationKey = Tuple[int, int]  # (user_id, event_id)

_DELETED = object()


class InMemoryRsvpStore:
    """Committed state shared by every unit of work of one process."""

    def __init__(self) -> None:
        self.events: Dict[int, EventEntity] = {}
        self.reservations: Dict[ReservationKey, ReservationEntity] = {}
        self.feedbacks: List[FeedbackEntity] = []
        self._locks: Dict[int, asyncio.Lock] = {}
        self._event_ids = itertools.count(1)
        self._reservation_ids = itertools.count(1)
        self._feedback_ids = itertools.count(1)

    def lock_for(self, event_id: int) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = self._locks[event_id] = asyncio.Lock()
        return lock

    def discard_lock(self, event_id: int) -> None:
        self._locks.pop(event_id, None)

    def next_event_id(self) -> int:
        return next(self._event_ids)

    def next_reservation_id(self) -> int:
        return next(self._reservation_ids)

    def next_feedback_id(self) -> int:
        return next(self._feedback_ids)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryRsvpStore) -> None:
        self.store = store
        self._held: Dict[int, asyncio.Lock] = {}
        self._staged_events: Dict[int, object] = {}
        self._staged_reservations: Dict[ReservationKey, ReservationEntity] = {}
        self._staged_feedbacks: List[FeedbackEntity] = []

    async def __aenter__(self) -> InMemoryUnitOfWork:
        self.event_command_repo = InMemoryEventCommandRepo(uow=self)
        self.reservation_command_repo = InMemoryReservationCommandRepo(uow=self)
        self.feedback_command_repo = InMemoryFeedbackCommandRepo(uow=self)
        await super().__aenter__()
        return self

    async def acquire(self, event_id: int) -> None:
        if event_id in self._held:
            return
        lock = self.store.lock_for(event_id)
        await lock.acquire()
        self._held[event_id] = lock

    def read_event(self, event_id: int) -> Optional[EventEntity]:
        if event_id in self._staged_events:
            staged = self._staged_events[event_id]
            return None if staged is _DELETED else staged  # type: ignore[return-value]
        return self.store.events.get(event_id)

    def stage_event(self, event: EventEntity) -> None:
        assert event.id is not None
        self._staged_events[event.id] = event

    def stage_event_delete(self, event_id: int) -> None:
        self._staged_events[event_id] = _DELETED

    def read_reservation(self, key: ReservationKey) -> Optional[ReservationEntity]:
        if key in self._staged_reservations:
            return self._staged_reservations[key]
        return self.store.reservations.get(key)

    def stage_reservation(self, reservation: ReservationEntity) -> None:
        self._staged_reservations[(reservation.user_id, reservation.event_id)] = reservation

    def stage_feedback(self, feedback: FeedbackEntity) -> None:
        self._staged_feedbacks.append(feedback)

    async def _lock_event(self, *, event_id: int) -> Optional[EventEntity]:
        return await self.event_command_repo.get_by_id_for_update(event_id=event_id)

    async def _commit(self) -> None:
        for event_id, staged in self._staged_events.items():
            if staged is _DELETED:
                self.store.events.pop(event_id, None)
                # ON DELETE CASCADE
                for key in [k for k in self.store.reservations if k[1] == event_id]:
                    del self.store.reservations[key]
                self.store.feedbacks = [f for f in self.store.feedbacks if f.event_id != event_id]
                self.store.discard_lock(event_id)
            else:
                self.store.events[event_id] = staged  # type: ignore[assignment]
        self.store.reservations.update(self._staged_reservations)
        self.store.feedbacks.extend(self._staged_feedbacks)
        self._reset()

    async def rollback(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._staged_events.clear()
        self._staged_reservations.clear()
        self._staged_feedbacks.clear()
        for lock in self._held.values():
            lock.release()
        self._held.clear()


class InMemoryEventCommandRepo(IEventCommandRepo):
    def __init__(self, *, uow: InMemoryUnitOfWork) -> None:
        self.uow = uow

    @staticmethod
    def _slot_change(event: EventEntity) -> SlotChange:
        assert event.id is not None
        return SlotChange(
            event_id=event.id,
            available_slots=event.available_slots,
            total_slots=event.total_slots,
            slot_version=event.slot_version,
        )

    async def get_by_id_for_update(self, *, event_id: int) -> Optional[EventEntity]:
        await self.uow.acquire(event_id)
        return self.uow.read_event(event_id)

    async def create(self, *, event: EventEntity) -> EventEntity:
        event_id = self.uow.store.next_event_id()
        await self.uow.acquire(event_id)
        now = utc_now()
        created = attrs.evolve(
            event,
            id=event_id,
            time=as_utc(event.time),
            created_at=event.created_at or now,
            updated_at=event.updated_at or now,
        )
        self.uow.stage_event(created)
        return created

    async def update_details(self, *, event: EventEntity) -> EventEntity:
        assert event.id is not None
        await self.uow.acquire(event.id)
        current = self.uow.read_event(event.id)
        assert current is not None
        updated = attrs.evolve(
            current,
            title=event.title,
            description=event.description,
            category=event.category,
            location=event.location,
            time=as_utc(event.time),
            duration=event.duration,
            updated_at=utc_now(),
        )
        self.uow.stage_event(updated)
        return updated

    async def delete(self, *, event_id: int) -> bool:
        await self.uow.acquire(event_id)
        if self.uow.read_event(event_id) is None:
            return False
        self.uow.stage_event_delete(event_id)
        return True

    async def reserve_slot(self, *, event_id: int) -> Optional[SlotChange]:
        await self.uow.acquire(event_id)
        current = self.uow.read_event(event_id)
        if current is None or current.available_slots <= 0:
            return None
        updated = attrs.evolve(
            current,
            available_slots=current.available_slots - 1,
            slot_version=current.slot_version + 1,
            updated_at=utc_now(),
        )
        self.uow.stage_event(updated)
        return self._slot_change(updated)

    async def release_slot(self, *, event_id: int) -> Optional[SlotChange]:
        await self.uow.acquire(event_id)
        current = self.uow.read_event(event_id)
        if current is None:
            return None
        updated = attrs.evolve(
            current,
            available_slots=min(current.total_slots, current.available_slots + 1),
            slot_version=current.slot_version + 1,
            updated_at=utc_now(),
        )
        self.uow.stage_event(updated)
        return self._slot_change(updated)

    async def set_capacity(
        self, *, event_id: int, total_slots: int, available_slots: int
    ) -> Optional[SlotChange]:
        await self.uow.acquire(event_id)
        current = self.uow.read_event(event_id)
        if current is None:
            return None
        updated = attrs.evolve(
            current,
            total_slots=total_slots,
            available_slots=available_slots,
            slot_version=current.slot_version + 1,
            updated_at=utc_now(),
        )
        self.uow.stage_event(updated)
        return self._slot_change(updated)


class InMemoryReservationCommandRepo(IReservationCommandRepo):
    def __init__(self, *, uow: InMemoryUnitOfWork) -> None:
        self.uow = uow

    async def get_for_update(
        self, *, user_id: int, event_id: int
    ) -> Optional[ReservationEntity]:
        await self.uow.acquire(event_id)
        return self.uow.read_reservation((user_id, event_id))

    async def upsert(self, *, reservation: ReservationEntity) -> ReservationEntity:
        await self.uow.acquire(reservation.event_id)
        existing = self.uow.read_reservation((reservation.user_id, reservation.event_id))
        now = utc_now()
        if existing is None:
            saved = attrs.evolve(
                reservation,
                id=self.uow.store.next_reservation_id(),
                created_at=reservation.created_at or now,
                updated_at=now,
            )
        else:
            saved = attrs.evolve(existing, status=reservation.status, updated_at=now)
        self.uow.stage_reservation(saved)
        return saved


class InMemoryFeedbackCommandRepo(IFeedbackCommandRepo):
    def __init__(self, *, uow: InMemoryUnitOfWork) -> None:
        self.uow = uow

    async def create(self, *, feedback: FeedbackEntity) -> FeedbackEntity:
        saved = attrs.evolve(
            feedback, id=self.uow.store.next_feedback_id(), created_at=utc_now()
        )
        self.uow.stage_feedback(saved)
        return saved


class InMemoryEventQueryRepo(IEventQueryRepo):
    """Reads committed state only, like a separate read-committed session."""

    def __init__(self, store: InMemoryRsvpStore) -> None:
        self.store = store

    @Logger.io
    async def get_by_id(self, *, event_id: int) -> Optional[EventEntity]:
        return self.store.events.get(event_id)

    @Logger.io
    async def list_ending_since(self, *, since: datetime, limit: int) -> List[EventEntity]:
        since = as_utc(since)
        events = [
            e
            for e in self.store.events.values()
            if is_valid_duration(e.duration) and event_end(e.time, e.duration) > since
        ]
        events.sort(key=lambda e: as_utc(e.time))
        return events[:limit]

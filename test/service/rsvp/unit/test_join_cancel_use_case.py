"""
Unit tests for JoinEventUseCase / CancelReservationUseCase

Reservation state machine: none -> joined -> cancelled -> joined -> ...
"""

import asyncio
from datetime import timedelta

import pytest

from src.platform.exception.exceptions import (
    AlreadyJoinedError,
    EventAlreadyFinishedError,
    EventNotFoundError,
    InvalidDurationError,
    NoSlotsAvailableError,
    NotJoinedError,
    SelfRsvpForbiddenError,
)
from src.service.rsvp.app.command.cancel_reservation_use_case import CancelReservationUseCase
from src.service.rsvp.app.command.join_event_use_case import JoinEventUseCase
from src.service.rsvp.domain.entity.reservation_entity import ReservationEntity
from src.service.rsvp.domain.enum.lifecycle_status import LifecycleStatus
from src.service.rsvp.domain.enum.reservation_status import ReservationStatus


CREATOR_ID = 1
USER_ID = 2
OTHER_USER_ID = 3


@pytest.fixture
def join_use_case(uow_factory, mock_notifier, clock) -> JoinEventUseCase:
    return JoinEventUseCase(uow_factory=uow_factory, notifier=mock_notifier, clock=clock)


@pytest.fixture
def cancel_use_case(uow_factory, mock_notifier, clock) -> CancelReservationUseCase:
    return CancelReservationUseCase(uow_factory=uow_factory, notifier=mock_notifier, clock=clock)


@pytest.mark.unit
class TestJoinEvent:
    @pytest.mark.asyncio
    async def test_join_takes_one_slot(self, join_use_case, seed_event, store, mock_notifier):
        event = seed_event(total_slots=10)

        result = await join_use_case.join(user_id=USER_ID, event_id=event.id)

        assert result.status is ReservationStatus.JOINED
        assert result.available_slots == 9
        assert result.total_slots == 10
        assert result.lifecycle_status is LifecycleStatus.UPCOMING
        assert store.events[event.id].available_slots == 9
        assert store.reservations[(USER_ID, event.id)].status is ReservationStatus.JOINED

        mock_notifier.on_capacity_changed.assert_awaited_once()
        change = mock_notifier.on_capacity_changed.await_args.kwargs['change']
        assert change.event_id == event.id
        assert change.available_slots == 9
        assert change.slot_version == 1

    @pytest.mark.asyncio
    async def test_join_ongoing_event_is_allowed(self, join_use_case, seed_event, clock):
        event = seed_event(start=clock.now - timedelta(minutes=10), duration=60)

        result = await join_use_case.join(user_id=USER_ID, event_id=event.id)

        assert result.lifecycle_status is LifecycleStatus.ONGOING

    @pytest.mark.asyncio
    async def test_join_twice_is_rejected(self, join_use_case, seed_event, store, mock_notifier):
        event = seed_event(total_slots=10)
        await join_use_case.join(user_id=USER_ID, event_id=event.id)

        with pytest.raises(AlreadyJoinedError):
            await join_use_case.join(user_id=USER_ID, event_id=event.id)

        assert store.events[event.id].available_slots == 9
        assert mock_notifier.on_capacity_changed.await_count == 1

    @pytest.mark.asyncio
    async def test_creator_cannot_join(self, join_use_case, seed_event, store):
        event = seed_event(created_by=CREATOR_ID)

        with pytest.raises(SelfRsvpForbiddenError):
            await join_use_case.join(user_id=CREATOR_ID, event_id=event.id)

        assert store.events[event.id].available_slots == event.total_slots

    @pytest.mark.asyncio
    async def test_event_ended_an_hour_ago(self, join_use_case, seed_event, clock, mock_notifier):
        event = seed_event(start=clock.now - timedelta(minutes=150), duration=90)

        with pytest.raises(EventAlreadyFinishedError):
            await join_use_case.join(user_id=USER_ID, event_id=event.id)

        mock_notifier.on_capacity_changed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_duration_blocks_join(self, join_use_case, seed_event, store):
        event = seed_event(duration=None)

        with pytest.raises(InvalidDurationError):
            await join_use_case.join(user_id=USER_ID, event_id=event.id)

        assert store.reservations == {}

    @pytest.mark.asyncio
    async def test_unknown_event(self, join_use_case):
        with pytest.raises(EventNotFoundError):
            await join_use_case.join(user_id=USER_ID, event_id=12345)

    @pytest.mark.asyncio
    async def test_full_event(self, join_use_case, seed_event, store):
        event = seed_event(total_slots=1, available_slots=0)

        with pytest.raises(NoSlotsAvailableError):
            await join_use_case.join(user_id=USER_ID, event_id=event.id)

        assert store.reservations == {}

    @pytest.mark.asyncio
    async def test_race_for_last_slot(self, join_use_case, seed_event, store):
        event = seed_event(total_slots=1)

        results = await asyncio.gather(
            join_use_case.join(user_id=USER_ID, event_id=event.id),
            join_use_case.join(user_id=OTHER_USER_ID, event_id=event.id),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], NoSlotsAvailableError)

        assert store.events[event.id].available_slots == 0
        joined = [r for r in store.reservations.values() if r.status is ReservationStatus.JOINED]
        assert len(joined) == 1

    @pytest.mark.asyncio
    async def test_many_concurrent_joins_never_oversell(self, join_use_case, seed_event, store):
        event = seed_event(total_slots=5)

        results = await asyncio.gather(
            *(join_use_case.join(user_id=user_id, event_id=event.id) for user_id in range(10, 30)),
            return_exceptions=True,
        )

        assert sum(1 for r in results if not isinstance(r, BaseException)) == 5
        assert all(
            isinstance(r, NoSlotsAvailableError) for r in results if isinstance(r, BaseException)
        )
        assert store.events[event.id].available_slots == 0


@pytest.mark.unit
class TestCancelReservation:
    @pytest.mark.asyncio
    async def test_join_then_cancel_restores_slots(
        self, join_use_case, cancel_use_case, seed_event, store
    ):
        event = seed_event(total_slots=4)

        await join_use_case.join(user_id=USER_ID, event_id=event.id)
        result = await cancel_use_case.cancel(user_id=USER_ID, event_id=event.id)

        assert result.status is ReservationStatus.CANCELLED
        assert result.available_slots == 4
        assert store.events[event.id].available_slots == 4
        assert store.reservations[(USER_ID, event.id)].status is ReservationStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_twice_is_rejected(
        self, join_use_case, cancel_use_case, seed_event, store, mock_notifier
    ):
        event = seed_event(total_slots=4)
        await join_use_case.join(user_id=USER_ID, event_id=event.id)
        await cancel_use_case.cancel(user_id=USER_ID, event_id=event.id)

        with pytest.raises(NotJoinedError):
            await cancel_use_case.cancel(user_id=USER_ID, event_id=event.id)

        assert store.events[event.id].available_slots == 4
        assert mock_notifier.on_capacity_changed.await_count == 2

    @pytest.mark.asyncio
    async def test_cancel_without_reservation(self, cancel_use_case, seed_event):
        event = seed_event()

        with pytest.raises(NotJoinedError):
            await cancel_use_case.cancel(user_id=USER_ID, event_id=event.id)

    @pytest.mark.asyncio
    async def test_rejoin_reuses_record(self, join_use_case, cancel_use_case, seed_event, store):
        event = seed_event(total_slots=4)

        await join_use_case.join(user_id=USER_ID, event_id=event.id)
        first_id = store.reservations[(USER_ID, event.id)].id
        await cancel_use_case.cancel(user_id=USER_ID, event_id=event.id)
        result = await join_use_case.join(user_id=USER_ID, event_id=event.id)

        assert result.status is ReservationStatus.JOINED
        assert len(store.reservations) == 1
        assert store.reservations[(USER_ID, event.id)].id == first_id
        assert store.events[event.id].available_slots == 3

    @pytest.mark.asyncio
    async def test_cancel_after_end_is_rejected(
        self, join_use_case, cancel_use_case, seed_event, store, clock
    ):
        event = seed_event(start=clock.now + timedelta(minutes=5), duration=30)
        await join_use_case.join(user_id=USER_ID, event_id=event.id)

        clock.advance(minutes=35)

        with pytest.raises(EventAlreadyFinishedError):
            await cancel_use_case.cancel(user_id=USER_ID, event_id=event.id)

        assert store.events[event.id].available_slots == event.total_slots - 1

    @pytest.mark.asyncio
    async def test_slot_versions_increase_in_commit_order(
        self, join_use_case, cancel_use_case, seed_event, mock_notifier
    ):
        event = seed_event(total_slots=4)

        await join_use_case.join(user_id=USER_ID, event_id=event.id)
        await join_use_case.join(user_id=OTHER_USER_ID, event_id=event.id)
        await cancel_use_case.cancel(user_id=USER_ID, event_id=event.id)

        versions = [
            call.kwargs['change'].slot_version
            for call in mock_notifier.on_capacity_changed.await_args_list
        ]
        assert versions == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_missing_duration_blocks_cancel(
        self, cancel_use_case, seed_event, store, clock, mock_notifier
    ):
        event = seed_event(duration=None, total_slots=4, available_slots=3)
        store.reservations[(USER_ID, event.id)] = ReservationEntity(
            user_id=USER_ID, event_id=event.id, id=1, created_at=clock.now, updated_at=clock.now
        )

        with pytest.raises(InvalidDurationError):
            await cancel_use_case.cancel(user_id=USER_ID, event_id=event.id)

        assert store.events[event.id].available_slots == 3
        assert store.events[event.id].slot_version == event.slot_version
        assert store.reservations[(USER_ID, event.id)].status is ReservationStatus.JOINED
        mock_notifier.on_capacity_changed.assert_not_awaited()

"""
Unit tests for event create / update / resize / delete use cases
"""

from datetime import timedelta

import pytest

from src.platform.exception.exceptions import (
    CapacityBelowParticipantsError,
    DomainError,
    EventNotFoundError,
    NotAuthorizedError,
)
from src.service.rsvp.app.command.create_event_use_case import CreateEventUseCase
from src.service.rsvp.app.command.delete_event_use_case import DeleteEventUseCase
from src.service.rsvp.app.command.resize_capacity_use_case import ResizeCapacityUseCase
from src.service.rsvp.app.command.update_event_use_case import UpdateEventUseCase
from src.service.rsvp.domain.enum.event_category import EventCategory


CREATOR_ID = 1
USER_ID = 2


@pytest.fixture
def create_use_case(uow_factory, mock_notifier, mock_countdown, clock) -> CreateEventUseCase:
    return CreateEventUseCase(
        uow_factory=uow_factory, notifier=mock_notifier, countdown=mock_countdown, clock=clock
    )


@pytest.fixture
def update_use_case(uow_factory, mock_notifier, mock_countdown, clock) -> UpdateEventUseCase:
    return UpdateEventUseCase(
        uow_factory=uow_factory, notifier=mock_notifier, countdown=mock_countdown, clock=clock
    )


@pytest.fixture
def resize_use_case(uow_factory, mock_notifier) -> ResizeCapacityUseCase:
    return ResizeCapacityUseCase(uow_factory=uow_factory, notifier=mock_notifier)


@pytest.fixture
def delete_use_case(uow_factory, mock_notifier, mock_countdown) -> DeleteEventUseCase:
    return DeleteEventUseCase(
        uow_factory=uow_factory, notifier=mock_notifier, countdown=mock_countdown
    )


@pytest.mark.unit
class TestCreateEvent:
    @pytest.mark.asyncio
    async def test_create_persists_and_starts_countdown(
        self, create_use_case, store, clock, mock_countdown, mock_notifier
    ):
        event = await create_use_case.create(
            created_by=CREATOR_ID,
            title='Pickup basketball',
            category='basketball',
            location='Court 3',
            time=clock.now + timedelta(days=2),
            duration=120,
            total_slots=10,
        )

        assert event.id is not None
        assert store.events[event.id].available_slots == 10
        assert store.events[event.id].category is EventCategory.BASKETBALL
        mock_countdown.start.assert_called_once_with(event_id=event.id)
        mock_notifier.on_event_created.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_event_is_not_persisted(self, create_use_case, store, clock, mock_countdown):
        with pytest.raises(DomainError):
            await create_use_case.create(
                created_by=CREATOR_ID,
                title='Pickup basketball',
                category='basketball',
                location='Court 3',
                time=clock.now + timedelta(days=2),
                duration=120,
                total_slots=0,
            )

        assert store.events == {}
        mock_countdown.start.assert_not_called()


@pytest.mark.unit
class TestUpdateEvent:
    @pytest.mark.asyncio
    async def test_owner_edits_details(self, update_use_case, seed_event, store, mock_countdown, mock_notifier):
        event = seed_event()

        updated = await update_use_case.update(
            event_id=event.id, user_id=CREATOR_ID, changes={'title': 'Renamed match', 'location': 'Pitch 4'}
        )

        assert updated.title == 'Renamed match'
        assert store.events[event.id].location == 'Pitch 4'
        mock_countdown.start.assert_not_called()
        mock_notifier.on_capacity_changed.assert_not_awaited()
        kwargs = mock_notifier.on_event_updated.await_args.kwargs
        assert kwargs['updated_fields'] == {'title': 'Renamed match', 'location': 'Pitch 4'}

    @pytest.mark.asyncio
    async def test_schedule_edit_restarts_countdown(self, update_use_case, seed_event, clock, mock_countdown):
        event = seed_event()

        await update_use_case.update(
            event_id=event.id,
            user_id=CREATOR_ID,
            changes={'time': clock.now + timedelta(days=5), 'duration': 45},
        )

        mock_countdown.start.assert_called_once_with(event_id=event.id)

    @pytest.mark.asyncio
    async def test_total_slots_goes_through_ledger(self, update_use_case, seed_event, store, mock_notifier):
        event = seed_event(total_slots=5, available_slots=2)

        updated = await update_use_case.update(
            event_id=event.id, user_id=CREATOR_ID, changes={'total_slots': 8}
        )

        assert (updated.total_slots, updated.available_slots) == (8, 5)
        assert store.events[event.id].available_slots == 5
        mock_notifier.on_capacity_changed.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_resize_rolls_back_detail_edit(self, update_use_case, seed_event, store):
        event = seed_event(total_slots=5, available_slots=2)

        with pytest.raises(CapacityBelowParticipantsError):
            await update_use_case.update(
                event_id=event.id,
                user_id=CREATOR_ID,
                changes={'title': 'Should not stick', 'total_slots': 2},
            )

        assert store.events[event.id].title == event.title
        assert store.events[event.id].total_slots == 5

    @pytest.mark.asyncio
    async def test_non_owner_is_rejected(self, update_use_case, seed_event, store):
        event = seed_event(created_by=CREATOR_ID)

        with pytest.raises(NotAuthorizedError):
            await update_use_case.update(event_id=event.id, user_id=USER_ID, changes={'title': 'Hijacked'})

        assert store.events[event.id].title == event.title


@pytest.mark.unit
class TestResizeCapacity:
    @pytest.mark.asyncio
    async def test_resize_below_participants(self, resize_use_case, seed_event, store, mock_notifier):
        event = seed_event(total_slots=5, available_slots=2)

        with pytest.raises(CapacityBelowParticipantsError):
            await resize_use_case.resize(event_id=event.id, user_id=CREATOR_ID, new_total=2)

        assert store.events[event.id].total_slots == 5
        assert store.events[event.id].available_slots == 2
        mock_notifier.on_capacity_changed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resize_up(self, resize_use_case, seed_event, mock_notifier):
        event = seed_event(total_slots=5, available_slots=2)

        change = await resize_use_case.resize(event_id=event.id, user_id=CREATOR_ID, new_total=6)

        assert (change.total_slots, change.available_slots) == (6, 3)
        mock_notifier.on_capacity_changed.assert_awaited_once_with(change=change)

    @pytest.mark.asyncio
    async def test_non_owner_cannot_resize(self, resize_use_case, seed_event):
        event = seed_event()

        with pytest.raises(NotAuthorizedError):
            await resize_use_case.resize(event_id=event.id, user_id=USER_ID, new_total=20)


@pytest.mark.unit
class TestDeleteEvent:
    @pytest.mark.asyncio
    async def test_owner_deletes(self, delete_use_case, seed_event, store, mock_countdown, mock_notifier):
        event = seed_event()

        await delete_use_case.delete(event_id=event.id, user_id=CREATOR_ID)

        assert event.id not in store.events
        mock_countdown.stop.assert_called_once_with(event_id=event.id)
        mock_notifier.on_event_deleted.assert_awaited_once_with(event_id=event.id)

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, delete_use_case, seed_event, store, mock_countdown):
        event = seed_event()

        with pytest.raises(NotAuthorizedError):
            await delete_use_case.delete(event_id=event.id, user_id=USER_ID)

        assert event.id in store.events
        mock_countdown.stop.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_unknown_event(self, delete_use_case):
        with pytest.raises(EventNotFoundError):
            await delete_use_case.delete(event_id=777, user_id=CREATOR_ID)

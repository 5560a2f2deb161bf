from datetime import timedelta

import pytest

from src.platform.exception.exceptions import (
    CapacityBelowParticipantsError,
    DomainError,
    InvalidDurationError,
)
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.enum.event_category import EventCategory


@pytest.fixture
def create_params(clock):
    return {
        'title': 'Morning 10k',
        'category': 'running',
        'location': 'Harbour Loop',
        'time': clock.now + timedelta(days=3),
        'duration': 60,
        'total_slots': 20,
        'created_by': 1,
        'now': clock.now,
    }


@pytest.mark.unit
class TestEventCreate:
    def test_available_starts_at_total(self, create_params):
        event = EventEntity.create(**create_params)

        assert event.total_slots == 20
        assert event.available_slots == 20
        assert event.category is EventCategory.RUNNING
        assert event.slot_version == 0

    @pytest.mark.parametrize('total_slots', [0, -1])
    def test_total_slots_must_be_positive(self, create_params, total_slots):
        with pytest.raises(DomainError):
            EventEntity.create(**{**create_params, 'total_slots': total_slots})

    @pytest.mark.parametrize('duration', [0, -30, None])
    def test_duration_must_be_positive(self, create_params, duration):
        with pytest.raises(InvalidDurationError):
            EventEntity.create(**{**create_params, 'duration': duration})

    def test_time_must_be_in_future(self, create_params, clock):
        with pytest.raises(DomainError, match='future'):
            EventEntity.create(**{**create_params, 'time': clock.now - timedelta(minutes=1)})

    def test_unknown_category_is_rejected(self, create_params):
        with pytest.raises(DomainError, match='Category'):
            EventEntity.create(**{**create_params, 'category': 'curling'})

    def test_short_title_is_rejected(self, create_params):
        with pytest.raises(DomainError, match='Title'):
            EventEntity.create(**{**create_params, 'title': 'ab'})


@pytest.mark.unit
class TestReconcileCapacity:
    def test_keeps_participants(self, seed_event):
        event = seed_event(total_slots=5, available_slots=2)  # 3 participants

        resized = event.reconcile_capacity(8)

        assert resized.total_slots == 8
        assert resized.available_slots == 5
        assert resized.slot_version == event.slot_version + 1

    def test_shrink_to_exactly_participants(self, seed_event):
        event = seed_event(total_slots=5, available_slots=2)

        resized = event.reconcile_capacity(3)

        assert resized.total_slots == 3
        assert resized.available_slots == 0

    def test_below_participants_is_rejected(self, seed_event):
        event = seed_event(total_slots=5, available_slots=2)

        with pytest.raises(CapacityBelowParticipantsError) as exc_info:
            event.reconcile_capacity(2)

        assert exc_info.value.current_participants == 3
        assert event.total_slots == 5
        assert event.available_slots == 2

    @pytest.mark.parametrize('new_total', [0, -3])
    def test_non_positive_total_is_validation_error(self, seed_event, new_total):
        event = seed_event()
        with pytest.raises(DomainError):
            event.reconcile_capacity(new_total)


@pytest.mark.unit
class TestSlotInvariant:
    def test_available_above_total_is_rejected(self, seed_event):
        with pytest.raises(DomainError):
            seed_event(total_slots=3, available_slots=4)

    def test_negative_available_is_rejected(self, seed_event):
        with pytest.raises(DomainError):
            seed_event(total_slots=3, available_slots=-1)


@pytest.mark.unit
class TestWithDetails:
    def test_applies_editable_fields(self, seed_event, clock):
        event = seed_event()

        updated = event.with_details(now=clock.now, title='  Evening 5-a-side ', category='basketball')

        assert updated.title == 'Evening 5-a-side'
        assert updated.category is EventCategory.BASKETBALL
        assert updated.total_slots == event.total_slots

    def test_rejects_capacity_fields(self, seed_event, clock):
        event = seed_event()
        with pytest.raises(DomainError, match='available_slots'):
            event.with_details(now=clock.now, available_slots=1)

    def test_rejects_invalid_duration(self, seed_event, clock):
        event = seed_event()
        with pytest.raises(InvalidDurationError):
            event.with_details(now=clock.now, duration=0)

"""
Unit tests for the countdown broadcaster and its task registry
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.service.rsvp.app.service.countdown_broadcaster import (
    CountdownBroadcaster,
    CountdownTaskRegistry,
    TickOutcome,
)
from src.service.rsvp.domain.enum.lifecycle_status import LifecycleStatus
from src.service.rsvp.driven_adapter.repo.in_memory_store import InMemoryEventQueryRepo


@pytest.fixture
def registry() -> CountdownTaskRegistry:
    return CountdownTaskRegistry()


@pytest.fixture
def broadcaster(registry, store, mock_notifier, clock) -> CountdownBroadcaster:
    return CountdownBroadcaster(
        registry=registry,
        event_query_repo=InMemoryEventQueryRepo(store=store),
        notifier=mock_notifier,
        interval_seconds=0.01,
        lookback_hours=24,
        bootstrap_limit=100,
        clock=clock,
    )


async def _forever() -> None:
    await asyncio.Event().wait()


@pytest.mark.unit
class TestCountdownTaskRegistry:
    @pytest.mark.asyncio
    async def test_start_replaces_running_task(self, registry):
        first = registry.start(event_id=1, coro_factory=_forever)
        second = registry.start(event_id=1, coro_factory=_forever)
        await asyncio.sleep(0)

        assert first.cancelled()
        assert registry.get(1) is second
        assert len(registry) == 1

        await registry.shutdown()

    @pytest.mark.asyncio
    async def test_stop(self, registry):
        task = registry.start(event_id=1, coro_factory=_forever)

        assert registry.stop(event_id=1) is True
        assert registry.stop(event_id=1) is False
        await asyncio.sleep(0)
        assert task.cancelled()
        assert 1 not in registry

    @pytest.mark.asyncio
    async def test_finished_task_removes_itself(self, registry):
        async def _done() -> None:
            return None

        task = registry.start(event_id=1, coro_factory=_done)
        await task
        await asyncio.sleep(0)

        assert 1 not in registry

    @pytest.mark.asyncio
    async def test_replaced_task_does_not_evict_successor(self, registry):
        first = registry.start(event_id=1, coro_factory=_forever)
        second = registry.start(event_id=1, coro_factory=_forever)
        # let first's done callback run
        await asyncio.gather(first, return_exceptions=True)
        await asyncio.sleep(0)

        assert registry.get(1) is second

        await registry.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_cancels_everything(self, registry):
        tasks = [registry.start(event_id=i, coro_factory=_forever) for i in range(3)]

        await registry.shutdown()

        assert len(registry) == 0
        assert all(task.cancelled() for task in tasks)


@pytest.mark.unit
class TestTick:
    @pytest.mark.asyncio
    async def test_upcoming_event_publishes(self, broadcaster, seed_event, mock_notifier):
        event = seed_event()

        result = await broadcaster.tick(event_id=event.id)

        assert result.outcome is TickOutcome.PUBLISHED
        assert result.should_continue
        assert result.lifecycle.status is LifecycleStatus.UPCOMING
        assert result.lifecycle.time_remaining_ms == 24 * 60 * 60 * 1000
        mock_notifier.on_lifecycle_tick.assert_awaited_once_with(lifecycle=result.lifecycle)

    @pytest.mark.asyncio
    async def test_completed_event_publishes_final_tick(self, broadcaster, seed_event, clock, mock_notifier):
        event = seed_event(start=clock.now - timedelta(hours=3), duration=60)

        result = await broadcaster.tick(event_id=event.id)

        assert result.outcome is TickOutcome.COMPLETED
        assert not result.should_continue
        assert result.lifecycle.time_remaining_ms == 0
        mock_notifier.on_lifecycle_tick.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_event(self, broadcaster, mock_notifier):
        result = await broadcaster.tick(event_id=404)

        assert result.outcome is TickOutcome.EVENT_MISSING
        mock_notifier.on_lifecycle_tick.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_duration(self, broadcaster, seed_event, mock_notifier):
        event = seed_event(duration=None)

        result = await broadcaster.tick(event_id=event.id)

        assert result.outcome is TickOutcome.INVALID_DURATION
        assert result.error
        mock_notifier.on_lifecycle_tick.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_read_failure(self, broadcaster, mock_notifier):
        broadcaster.event_query_repo = AsyncMock()
        broadcaster.event_query_repo.get_by_id.side_effect = ConnectionError('db down')

        result = await broadcaster.tick(event_id=1)

        assert result.outcome is TickOutcome.READ_FAILED
        assert result.error == 'db down'
        mock_notifier.on_lifecycle_tick.assert_not_awaited()


@pytest.mark.unit
class TestCountdownLoop:
    @pytest.mark.asyncio
    async def test_task_stops_when_event_deleted(self, broadcaster, registry, seed_event, store):
        event = seed_event()
        broadcaster.start(event_id=event.id)
        task = registry.get(event.id)

        await asyncio.sleep(0.05)
        assert event.id in registry

        del store.events[event.id]
        result = await asyncio.wait_for(task, timeout=1)

        assert result.outcome is TickOutcome.EVENT_MISSING
        await asyncio.sleep(0)
        assert event.id not in registry

    @pytest.mark.asyncio
    async def test_task_stops_after_completion(self, broadcaster, registry, seed_event, clock, mock_notifier):
        event = seed_event(start=clock.now - timedelta(minutes=30), duration=30)
        broadcaster.start(event_id=event.id)

        result = await asyncio.wait_for(registry.get(event.id), timeout=1)

        assert result.outcome is TickOutcome.COMPLETED
        mock_notifier.on_lifecycle_tick.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_cancels_task(self, broadcaster, registry, seed_event):
        event = seed_event()
        broadcaster.start(event_id=event.id)
        task = registry.get(event.id)

        assert broadcaster.stop(event_id=event.id) is True
        with pytest.raises(asyncio.CancelledError):
            await task
        assert broadcaster.stop(event_id=event.id) is False


@pytest.mark.unit
class TestBootstrap:
    @pytest.mark.asyncio
    async def test_restarts_only_live_events(self, broadcaster, registry, seed_event, clock):
        upcoming = seed_event()
        ongoing = seed_event(start=clock.now - timedelta(minutes=10), duration=60)
        seed_event(start=clock.now - timedelta(hours=5), duration=60)  # completed
        seed_event(start=clock.now + timedelta(hours=1), duration=None)  # invalid duration
        seed_event(start=clock.now - timedelta(days=3), duration=60)  # outside lookback

        started = await broadcaster.bootstrap()

        assert sorted(started) == sorted([upcoming.id, ongoing.id])
        assert sorted(registry.event_ids()) == sorted(started)

        await broadcaster.shutdown()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_long_event_started_before_lookback_is_restarted(
        self, broadcaster, registry, seed_event, clock
    ):
        broadcaster.lookback_hours = 2
        marathon = seed_event(start=clock.now - timedelta(hours=3), duration=240)

        started = await broadcaster.bootstrap()

        assert started == [marathon.id]
        assert marathon.id in registry

        await broadcaster.shutdown()

    @pytest.mark.asyncio
    async def test_events_ended_before_lookback_do_not_use_up_limit(
        self, broadcaster, seed_event, clock
    ):
        broadcaster.lookback_hours = 2
        broadcaster.bootstrap_limit = 1
        seed_event(start=clock.now - timedelta(hours=5), duration=60)  # ended 4h ago
        live = seed_event(start=clock.now + timedelta(hours=1))

        started = await broadcaster.bootstrap()

        assert started == [live.id]

        await broadcaster.shutdown()

    @pytest.mark.asyncio
    async def test_respects_limit(self, broadcaster, registry, seed_event, clock):
        for hours in range(1, 6):
            seed_event(start=clock.now + timedelta(hours=hours))
        broadcaster.bootstrap_limit = 2

        started = await broadcaster.bootstrap()

        assert len(started) == 2

        await broadcaster.shutdown()

"""
Countdown Broadcaster

One asyncio task per event recomputes the lifecycle every interval and pushes
it to the event's subscribers. A task stops itself on the first tick that is
not a plain publish (event gone, bad duration, read failure, or the final
"completed" tick), and removes itself from the registry when it does.

Tasks live in a CountdownTaskRegistry owned by the DI container rather than a
module-level dict, so tests and shutdown can see and cancel all of them.
"""

import asyncio
from datetime import timedelta
from enum import StrEnum
from functools import partial
from typing import Any, Callable, Coroutine, Dict, List, Optional

import attrs

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import InvalidDurationError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.rsvp_metrics import metrics
from src.service.rsvp.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.rsvp.app.interface.i_rsvp_notifier import IRsvpNotifier
from src.service.rsvp.domain.enum.lifecycle_status import LifecycleStatus
from src.service.rsvp.domain.lifecycle_clock import LifecycleSnapshot, classify, snapshot, utc_now


class TickOutcome(StrEnum):
    PUBLISHED = 'published'
    COMPLETED = 'completed'
    EVENT_MISSING = 'event_missing'
    INVALID_DURATION = 'invalid_duration'
    READ_FAILED = 'read_failed'


@attrs.frozen
class TickResult:
    event_id: int
    outcome: TickOutcome
    lifecycle: Optional[LifecycleSnapshot] = None
    error: Optional[str] = None

    @property
    def should_continue(self) -> bool:
        return self.outcome is TickOutcome.PUBLISHED


class CountdownTaskRegistry:
    """event_id -> running countdown task"""

    def __init__(self) -> None:
        self._tasks: Dict[int, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, event_id: int) -> bool:
        return event_id in self._tasks

    def get(self, event_id: int) -> Optional[asyncio.Task]:
        return self._tasks.get(event_id)

    def event_ids(self) -> List[int]:
        return list(self._tasks)

    def start(
        self, *, event_id: int, coro_factory: Callable[[], Coroutine[Any, Any, Any]]
    ) -> asyncio.Task:
        """Run a new task for the event, cancelling the one it replaces."""
        self.stop(event_id=event_id)

        task = asyncio.create_task(coro_factory(), name=f'countdown:{event_id}')
        self._tasks[event_id] = task
        task.add_done_callback(partial(self._discard, event_id))
        metrics.countdown_tasks_active.set(len(self._tasks))
        return task

    def stop(self, *, event_id: int) -> bool:
        task = self._tasks.pop(event_id, None)
        if task is None:
            return False
        task.cancel()
        metrics.countdown_tasks_active.set(len(self._tasks))
        return True

    def _discard(self, event_id: int, task: asyncio.Task) -> None:
        # A replaced task finishing late must not evict its successor
        if self._tasks.get(event_id) is task:
            del self._tasks[event_id]
            metrics.countdown_tasks_active.set(len(self._tasks))

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        metrics.countdown_tasks_active.set(0)
        Logger.base.info(f'🛑 [COUNTDOWN] Cancelled {len(tasks)} countdown task(s)')


class CountdownBroadcaster:
    def __init__(
        self,
        *,
        registry: CountdownTaskRegistry,
        event_query_repo: IEventQueryRepo,
        notifier: IRsvpNotifier,
        interval_seconds: float = settings.COUNTDOWN_INTERVAL_SECONDS,
        lookback_hours: float = settings.COUNTDOWN_LOOKBACK_HOURS,
        bootstrap_limit: int = settings.COUNTDOWN_BOOTSTRAP_LIMIT,
        clock: Callable = utc_now,
    ) -> None:
        self.registry = registry
        self.event_query_repo = event_query_repo
        self.notifier = notifier
        self.interval_seconds = interval_seconds
        self.lookback_hours = lookback_hours
        self.bootstrap_limit = bootstrap_limit
        self.clock = clock

    def start(self, *, event_id: int) -> None:
        self.registry.start(event_id=event_id, coro_factory=lambda: self._run(event_id=event_id))
        Logger.base.info(
            f'⏱️ [COUNTDOWN] Started countdown for event {event_id} '
            f'(every {self.interval_seconds}s)'
        )

    def stop(self, *, event_id: int) -> bool:
        stopped = self.registry.stop(event_id=event_id)
        if stopped:
            Logger.base.info(f'⏹️ [COUNTDOWN] Stopped countdown for event {event_id}')
        return stopped

    async def tick(self, *, event_id: int) -> TickResult:
        """Recompute and publish one lifecycle update."""
        try:
            event = await self.event_query_repo.get_by_id(event_id=event_id)
        except Exception as e:
            Logger.base.error(f'❌ [COUNTDOWN] Failed to read event {event_id}: {e}')
            return self._record(TickResult(event_id, TickOutcome.READ_FAILED, error=str(e)))

        if event is None:
            return self._record(TickResult(event_id, TickOutcome.EVENT_MISSING))

        try:
            lifecycle = snapshot(event, self.clock())
        except InvalidDurationError as e:
            return self._record(
                TickResult(event_id, TickOutcome.INVALID_DURATION, error=e.message)
            )

        await self.notifier.on_lifecycle_tick(lifecycle=lifecycle)

        outcome = TickOutcome.COMPLETED if lifecycle.is_completed else TickOutcome.PUBLISHED
        return self._record(TickResult(event_id, outcome, lifecycle=lifecycle))

    @staticmethod
    def _record(result: TickResult) -> TickResult:
        metrics.record_tick(outcome=result.outcome.value)
        return result

    async def _run(self, *, event_id: int) -> TickResult:
        try:
            while True:
                await asyncio.sleep(self.interval_seconds)
                result = await self.tick(event_id=event_id)
                if result.should_continue:
                    Logger.base.debug(
                        f'⏱️ [COUNTDOWN] Event {event_id}: {result.lifecycle.status} '  # type: ignore[union-attr]
                        f'({result.lifecycle.time_remaining_ms}ms left)'  # type: ignore[union-attr]
                    )
                    continue

                if result.outcome is TickOutcome.COMPLETED:
                    Logger.base.info(f'🏁 [COUNTDOWN] Event {event_id} completed, stopping')
                else:
                    Logger.base.warning(
                        f'⚠️ [COUNTDOWN] Stopping countdown for event {event_id}: '
                        f'{result.outcome}{f" ({result.error})" if result.error else ""}'
                    )
                return result
        except asyncio.CancelledError:
            Logger.base.debug(f'⏹️ [COUNTDOWN] Task for event {event_id} cancelled')
            raise

    @Logger.io
    async def bootstrap(self) -> List[int]:
        """
        Restart countdowns after a process restart.

        Picks up every event whose end is less than lookback_hours in the
        past, however long ago it started. Returns the ids that were started.
        """
        now = self.clock()
        events = await self.event_query_repo.list_ending_since(
            since=now - timedelta(hours=self.lookback_hours), limit=self.bootstrap_limit
        )

        started: List[int] = []
        for event in events:
            assert event.id is not None
            try:
                status = classify(now, event.time, event.duration)
            except InvalidDurationError:
                Logger.base.warning(
                    f'⚠️ [COUNTDOWN] Skipping event {event.id}: invalid duration {event.duration!r}'
                )
                continue

            if status is LifecycleStatus.COMPLETED:
                continue

            self.start(event_id=event.id)
            started.append(event.id)

        Logger.base.info(
            f'🔁 [COUNTDOWN] Bootstrap restarted {len(started)} of {len(events)} recent event(s)'
        )
        return started

    async def shutdown(self) -> None:
        await self.registry.shutdown()

import time
from typing import Callable, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import CustomBaseError, SelfRsvpForbiddenError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.rsvp_metrics import metrics
from src.service.rsvp.app.dto.rsvp_result import RsvpResult
from src.service.rsvp.app.interface.i_rsvp_notifier import IRsvpNotifier
from src.service.rsvp.app.service.slot_ledger import SlotLedger
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.entity.reservation_entity import ReservationEntity
from src.service.rsvp.domain.lifecycle_clock import ensure_not_finished, utc_now


class JoinEventUseCase:
    """
    Join an event - takes one slot for the caller

    Flow (one unit of work, event row locked throughout):
    1. Event must not be completed
    2. Creator cannot RSVP to their own event
    3. No joined reservation may exist for (user, event)
    4. Slot ledger reserve (conditional decrement)
    5. Upsert reservation to joined
    6. Commit, then publish capacity before returning

    Any failure before commit rolls back both the slot and the reservation.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        notifier: IRsvpNotifier,
        clock: Callable = utc_now,
    ) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
        notifier: IRsvpNotifier = Depends(Provide[Container.rsvp_notifier]),
    ) -> Self:
        return cls(uow_factory=uow_factory, notifier=notifier)

    @Logger.io
    async def join(self, *, user_id: int, event_id: int) -> RsvpResult:
        started_at = time.perf_counter()

        try:
            async with self.uow_factory() as uow:

                async def _join(event: EventEntity):
                    return await self._join_locked(uow=uow, event=event, user_id=user_id)

                reservation, change, lifecycle_status = await uow.with_exclusive_lock(
                    event_id=event_id, fn=_join
                )
                await uow.commit()
        except CustomBaseError as e:
            metrics.record_rsvp(
                operation='join', result=e.kind.value, duration=time.perf_counter() - started_at
            )
            raise

        metrics.record_rsvp(
            operation='join', result='success', duration=time.perf_counter() - started_at
        )
        Logger.base.info(
            f'✅ [JOIN] User {user_id} joined event {event_id} '
            f'({change.available_slots}/{change.total_slots} left)'
        )

        await self.notifier.on_capacity_changed(change=change)

        return RsvpResult(
            event_id=event_id,
            user_id=user_id,
            status=reservation.status,
            available_slots=change.available_slots,
            total_slots=change.total_slots,
            lifecycle_status=lifecycle_status,
        )

    async def _join_locked(self, *, uow: AbstractUnitOfWork, event: EventEntity, user_id: int):
        assert event.id is not None
        lifecycle_status = ensure_not_finished(event, self.clock())

        if event.is_owned_by(user_id):
            raise SelfRsvpForbiddenError()

        existing = await uow.reservation_command_repo.get_for_update(
            user_id=user_id, event_id=event.id
        )
        reservation = ReservationEntity.join(
            existing=existing, user_id=user_id, event_id=event.id, now=self.clock()
        )

        change = await SlotLedger(event_command_repo=uow.event_command_repo).reserve(
            event_id=event.id
        )
        saved = await uow.reservation_command_repo.upsert(reservation=reservation)
        return saved, change, lifecycle_status

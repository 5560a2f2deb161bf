import time
from typing import Callable, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import CustomBaseError, NotJoinedError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.rsvp_metrics import metrics
from src.service.rsvp.app.dto.rsvp_result import RsvpResult
from src.service.rsvp.app.interface.i_rsvp_notifier import IRsvpNotifier
from src.service.rsvp.app.service.slot_ledger import SlotLedger
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.lifecycle_clock import ensure_not_finished, utc_now


class CancelReservationUseCase:
    """
    Cancel a joined reservation and give the slot back

    Cancelling twice fails with NotJoined and leaves the ledger untouched.
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
    async def cancel(self, *, user_id: int, event_id: int) -> RsvpResult:
        started_at = time.perf_counter()

        try:
            async with self.uow_factory() as uow:

                async def _cancel(event: EventEntity):
                    return await self._cancel_locked(uow=uow, event=event, user_id=user_id)

                reservation, change, lifecycle_status = await uow.with_exclusive_lock(
                    event_id=event_id, fn=_cancel
                )
                await uow.commit()
        except CustomBaseError as e:
            metrics.record_rsvp(
                operation='cancel', result=e.kind.value, duration=time.perf_counter() - started_at
            )
            raise

        metrics.record_rsvp(
            operation='cancel', result='success', duration=time.perf_counter() - started_at
        )
        Logger.base.info(
            f'↩️ [CANCEL] User {user_id} cancelled on event {event_id} '
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

    async def _cancel_locked(self, *, uow: AbstractUnitOfWork, event: EventEntity, user_id: int):
        assert event.id is not None
        lifecycle_status = ensure_not_finished(event, self.clock())

        existing = await uow.reservation_command_repo.get_for_update(
            user_id=user_id, event_id=event.id
        )
        if existing is None:
            raise NotJoinedError()
        cancelled = existing.cancel(now=self.clock())

        change = await SlotLedger(event_command_repo=uow.event_command_repo).release(
            event_id=event.id
        )
        saved = await uow.reservation_command_repo.upsert(reservation=cancelled)
        return saved, change, lifecycle_status

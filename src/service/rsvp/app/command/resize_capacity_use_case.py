import time
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import CustomBaseError, NotAuthorizedError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.rsvp_metrics import metrics
from src.service.rsvp.app.dto.slot_change import SlotChange
from src.service.rsvp.app.interface.i_rsvp_notifier import IRsvpNotifier
from src.service.rsvp.app.service.slot_ledger import SlotLedger
from src.service.rsvp.domain.entity.event_entity import EventEntity


class ResizeCapacityUseCase:
    """Owner change of total_slots alone (new_available = new_total - participants)."""

    def __init__(self, *, uow_factory: UnitOfWorkFactory, notifier: IRsvpNotifier) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
        notifier: IRsvpNotifier = Depends(Provide[Container.rsvp_notifier]),
    ) -> Self:
        return cls(uow_factory=uow_factory, notifier=notifier)

    @Logger.io
    async def resize(self, *, event_id: int, user_id: int, new_total: int) -> SlotChange:
        started_at = time.perf_counter()

        try:
            async with self.uow_factory() as uow:

                async def _resize(event: EventEntity) -> SlotChange:
                    if not event.is_owned_by(user_id):
                        raise NotAuthorizedError('Not authorized to update this event')
                    return await SlotLedger(
                        event_command_repo=uow.event_command_repo
                    ).reconcile_on_resize(event_id=event_id, new_total=new_total)

                change = await uow.with_exclusive_lock(event_id=event_id, fn=_resize)
                await uow.commit()
        except CustomBaseError as e:
            metrics.record_rsvp(
                operation='resize', result=e.kind.value, duration=time.perf_counter() - started_at
            )
            raise

        metrics.record_rsvp(
            operation='resize', result='success', duration=time.perf_counter() - started_at
        )
        await self.notifier.on_capacity_changed(change=change)
        return change

from typing import Any, Callable, Optional, Self

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import NotAuthorizedError
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.dto.slot_change import SlotChange
from src.service.rsvp.app.interface.i_countdown_scheduler import ICountdownScheduler
from src.service.rsvp.app.interface.i_rsvp_notifier import IRsvpNotifier
from src.service.rsvp.app.service.slot_ledger import SlotLedger
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.lifecycle_clock import utc_now


SCHEDULE_FIELDS = frozenset({'time', 'duration'})


class UpdateEventUseCase:
    """
    Owner edit of an event

    Detail fields are written directly; total_slots goes through the slot
    ledger so participants are preserved. Editing time or duration restarts
    the countdown so it ticks against the new schedule.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        notifier: IRsvpNotifier,
        countdown: ICountdownScheduler,
        clock: Callable = utc_now,
    ) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.countdown = countdown
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
        notifier: IRsvpNotifier = Depends(Provide[Container.rsvp_notifier]),
        countdown: ICountdownScheduler = Depends(Provide[Container.countdown_broadcaster]),
    ) -> Self:
        return cls(uow_factory=uow_factory, notifier=notifier, countdown=countdown)

    @Logger.io
    async def update(self, *, event_id: int, user_id: int, changes: dict[str, Any]) -> EventEntity:
        changes = dict(changes)
        new_total: Optional[int] = changes.pop('total_slots', None)

        async with self.uow_factory() as uow:

            async def _update(event: EventEntity):
                return await self._update_locked(
                    uow=uow, event=event, user_id=user_id, changes=changes, new_total=new_total
                )

            updated, change = await uow.with_exclusive_lock(event_id=event_id, fn=_update)
            await uow.commit()

        Logger.base.info(
            f'✏️ [UPDATE-EVENT] Event {event_id} updated by user {user_id}: '
            f'{sorted([*changes, *(["total_slots"] if new_total is not None else [])])}'
        )

        if SCHEDULE_FIELDS & changes.keys():
            self.countdown.start(event_id=event_id)

        if change is not None:
            await self.notifier.on_capacity_changed(change=change)

        updated_fields = {name: getattr(updated, name) for name in changes}
        if new_total is not None:
            updated_fields['total_slots'] = updated.total_slots
            updated_fields['available_slots'] = updated.available_slots
        await self.notifier.on_event_updated(event=updated, updated_fields=updated_fields)

        return updated

    async def _update_locked(
        self,
        *,
        uow: AbstractUnitOfWork,
        event: EventEntity,
        user_id: int,
        changes: dict[str, Any],
        new_total: Optional[int],
    ) -> tuple[EventEntity, Optional[SlotChange]]:
        assert event.id is not None
        if not event.is_owned_by(user_id):
            raise NotAuthorizedError('Not authorized to update this event')

        updated = event
        if changes:
            updated = event.with_details(now=self.clock(), **changes)
            updated = await uow.event_command_repo.update_details(event=updated)

        change = None
        if new_total is not None:
            change = await SlotLedger(event_command_repo=uow.event_command_repo).reconcile_on_resize(
                event_id=event.id, new_total=new_total
            )
            updated = attrs.evolve(
                updated,
                total_slots=change.total_slots,
                available_slots=change.available_slots,
                slot_version=change.slot_version,
            )

        return updated, change

from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import NotAuthorizedError
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.interface.i_countdown_scheduler import ICountdownScheduler
from src.service.rsvp.app.interface.i_rsvp_notifier import IRsvpNotifier
from src.service.rsvp.domain.entity.event_entity import EventEntity


class DeleteEventUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        notifier: IRsvpNotifier,
        countdown: ICountdownScheduler,
    ) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.countdown = countdown

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
    async def delete(self, *, event_id: int, user_id: int) -> None:
        async with self.uow_factory() as uow:

            async def _delete(event: EventEntity) -> bool:
                if not event.is_owned_by(user_id):
                    raise NotAuthorizedError('Not authorized to delete this event')
                return await uow.event_command_repo.delete(event_id=event_id)

            await uow.with_exclusive_lock(event_id=event_id, fn=_delete)
            await uow.commit()

        Logger.base.info(f'🗑️ [DELETE-EVENT] Event {event_id} deleted by user {user_id}')

        self.countdown.stop(event_id=event_id)
        await self.notifier.on_event_deleted(event_id=event_id)

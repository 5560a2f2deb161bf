from datetime import datetime
from typing import Callable, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.interface.i_countdown_scheduler import ICountdownScheduler
from src.service.rsvp.app.interface.i_rsvp_notifier import IRsvpNotifier
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.lifecycle_clock import utc_now


class CreateEventUseCase:
    """
    Create an event with available_slots = total_slots, start its countdown
    and announce it on the global feed.
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
    async def create(
        self,
        *,
        created_by: int,
        title: str,
        category: str,
        location: str,
        time: datetime,
        duration: int,
        total_slots: int,
        description: Optional[str] = None,
    ) -> EventEntity:
        event = EventEntity.create(
            title=title,
            description=description,
            category=category,
            location=location,
            time=time,
            duration=duration,
            total_slots=total_slots,
            created_by=created_by,
            now=self.clock(),
        )

        async with self.uow_factory() as uow:
            created = await uow.event_command_repo.create(event=event)
            await uow.commit()

        assert created.id is not None
        Logger.base.info(
            f'🆕 [CREATE-EVENT] Event {created.id} "{created.title}" by user {created_by} '
            f'({created.total_slots} slots)'
        )

        self.countdown.start(event_id=created.id)
        await self.notifier.on_event_created(event=created)
        return created

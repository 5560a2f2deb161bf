from typing import Callable, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import EventNotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.rsvp.domain.lifecycle_clock import LifecycleSnapshot, snapshot, utc_now


class GetEventLifecycleUseCase:
    def __init__(self, *, event_query_repo: IEventQueryRepo, clock: Callable = utc_now) -> None:
        self.event_query_repo = event_query_repo
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        event_query_repo: IEventQueryRepo = Depends(Provide[Container.event_query_repo]),
    ) -> Self:
        return cls(event_query_repo=event_query_repo)

    @Logger.io
    async def classify_lifecycle(self, *, event_id: int) -> LifecycleSnapshot:
        """
        Raises:
            EventNotFoundError: no such event
            InvalidDurationError: the stored duration is missing or not positive
        """
        event = await self.event_query_repo.get_by_id(event_id=event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return snapshot(event, self.clock())

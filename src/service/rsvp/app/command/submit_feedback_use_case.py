import time
from typing import Callable, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import CustomBaseError, FeedbackNotAllowedError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.rsvp_metrics import metrics
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.entity.feedback_entity import FeedbackEntity
from src.service.rsvp.domain.lifecycle_clock import ensure_finished, utc_now


class SubmitFeedbackUseCase:
    """
    Rate a finished event

    Accepted only once the event is completed, and only from a user whose
    reservation is still joined.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory, clock: Callable = utc_now) -> None:
        self.uow_factory = uow_factory
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def submit(
        self, *, user_id: int, event_id: int, rating: int, comment: Optional[str] = None
    ) -> FeedbackEntity:
        started_at = time.perf_counter()
        feedback = FeedbackEntity(user_id=user_id, event_id=event_id, rating=rating, comment=comment)

        try:
            async with self.uow_factory() as uow:

                async def _submit(event: EventEntity) -> FeedbackEntity:
                    ensure_finished(event, self.clock())

                    reservation = await uow.reservation_command_repo.get_for_update(
                        user_id=user_id, event_id=event_id
                    )
                    if reservation is None or not reservation.is_joined:
                        raise FeedbackNotAllowedError()

                    return await uow.feedback_command_repo.create(feedback=feedback)

                saved = await uow.with_exclusive_lock(event_id=event_id, fn=_submit)
                await uow.commit()
        except CustomBaseError as e:
            metrics.record_rsvp(
                operation='feedback', result=e.kind.value, duration=time.perf_counter() - started_at
            )
            raise

        metrics.record_rsvp(
            operation='feedback', result='success', duration=time.perf_counter() - started_at
        )
        Logger.base.info(f'⭐ [FEEDBACK] User {user_id} rated event {event_id}: {rating}')
        return saved

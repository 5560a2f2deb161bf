from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.interface.i_feedback_command_repo import IFeedbackCommandRepo
from src.service.rsvp.domain.entity.feedback_entity import FeedbackEntity
from src.service.rsvp.driven_adapter.model.feedback_model import FeedbackModel


class FeedbackCommandRepoImpl(IFeedbackCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def create(self, *, feedback: FeedbackEntity) -> FeedbackEntity:
        model = FeedbackModel(
            user_id=feedback.user_id,
            event_id=feedback.event_id,
            rating=feedback.rating,
            comment=feedback.comment,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return FeedbackEntity(
            id=model.id,
            user_id=model.user_id,
            event_id=model.event_id,
            rating=model.rating,
            comment=model.comment,
            created_at=model.created_at,
        )

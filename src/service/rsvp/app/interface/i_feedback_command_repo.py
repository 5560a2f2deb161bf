from abc import ABC, abstractmethod

from src.service.rsvp.domain.entity.feedback_entity import FeedbackEntity


class IFeedbackCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, feedback: FeedbackEntity) -> FeedbackEntity:
        pass

"""
Event Query Repository Implementation - read side, no locks
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncContextManager, AsyncIterator, Callable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.driven_adapter.model.event_model import EventModel
from src.service.rsvp.driven_adapter.repo.event_command_repo_impl import model_to_event_entity


class EventQueryRepoImpl(IEventQueryRepo):
    def __init__(
        self, session_factory: Callable[..., AsyncContextManager[AsyncSession]] | None = None
    ) -> None:
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    @asynccontextmanager
    async def _get_session(self) -> AsyncIterator[AsyncSession]:
        if self.session is not None:
            yield self.session
        elif self.session_factory is not None:
            async with self.session_factory() as session:
                yield session
        else:
            raise RuntimeError('No session or session_factory available')

    @Logger.io
    async def get_by_id(self, *, event_id: int) -> Optional[EventEntity]:
        async with self._get_session() as session:
            result = await session.execute(select(EventModel).where(EventModel.id == event_id))
            model = result.scalar_one_or_none()
            return model_to_event_entity(model) if model else None

    @Logger.io
    async def list_ending_since(self, *, since: datetime, limit: int) -> List[EventEntity]:
        ends_at = EventModel.time + func.make_interval(0, 0, 0, 0, 0, EventModel.duration)
        async with self._get_session() as session:
            result = await session.execute(
                select(EventModel)
                .where(
                    EventModel.duration.is_not(None),
                    EventModel.duration > 0,
                    ends_at > since,
                )
                .order_by(EventModel.time)
                .limit(limit)
            )
            return [model_to_event_entity(model) for model in result.scalars().all()]

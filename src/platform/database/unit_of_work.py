"""
Unit of Work Pattern - one transaction boundary for the RSVP write path

Architecture:
- UoW owns the transaction lifecycle (commit/rollback)
- Repositories obtained from the UoW share its transaction
- with_exclusive_lock() serializes writers of one event for the rest of
  the transaction, so ledger and reservation changes commit together
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.platform.exception.exceptions import EventNotFoundError, StoreUnavailableError
from src.platform.logging.loguru_io import Logger


if TYPE_CHECKING:
    from src.service.rsvp.app.interface.i_event_command_repo import IEventCommandRepo
    from src.service.rsvp.app.interface.i_feedback_command_repo import IFeedbackCommandRepo
    from src.service.rsvp.app.interface.i_reservation_command_repo import (
        IReservationCommandRepo,
    )
    from src.service.rsvp.domain.entity.event_entity import EventEntity


T = TypeVar('T')


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            result = await uow.with_exclusive_lock(event_id=event_id, fn=do_join)
            await uow.commit()

    Leaving the block without commit() rolls everything back.
    """

    event_command_repo: IEventCommandRepo
    reservation_command_repo: IReservationCommandRepo
    feedback_command_repo: IFeedbackCommandRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    async def with_exclusive_lock(
        self, *, event_id: int, fn: Callable[[EventEntity], Awaitable[T]]
    ) -> T:
        """
        Lock the event row for the rest of the transaction and run fn on it.

        Raises:
            EventNotFoundError: no event with this id
        """
        event = await self._lock_event(event_id=event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return await fn(event)

    @abc.abstractmethod
    async def _lock_event(self, *, event_id: int) -> Optional[EventEntity]:
        raise NotImplementedError

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation: one AsyncSession per unit of work.

    Row locks come from SELECT ... FOR UPDATE and are held by the database
    until commit/rollback, which makes this safe across server instances.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker
        self.session: AsyncSession | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        from src.service.rsvp.driven_adapter.repo.event_command_repo_impl import (
            EventCommandRepoImpl,
        )
        from src.service.rsvp.driven_adapter.repo.feedback_command_repo_impl import (
            FeedbackCommandRepoImpl,
        )
        from src.service.rsvp.driven_adapter.repo.reservation_command_repo_impl import (
            ReservationCommandRepoImpl,
        )

        self.session = self._session_maker()

        # Create repositories with shared session
        self.event_command_repo = EventCommandRepoImpl(session=self.session)
        self.reservation_command_repo = ReservationCommandRepoImpl(session=self.session)
        self.feedback_command_repo = FeedbackCommandRepoImpl(session=self.session)

        await super().__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            try:
                await super().__aexit__(exc_type, exc, tb)
            finally:
                if self.session is not None:
                    session, self.session = self.session, None
                    await session.close()
        except DBAPIError as e:
            Logger.base.error(f'❌ [UoW] Rollback failed: {e}')
            raise StoreUnavailableError() from e

        if isinstance(exc, DBAPIError):
            Logger.base.error(f'❌ [UoW] Transaction rolled back after store failure: {exc}')
            raise StoreUnavailableError() from exc

    async def _lock_event(self, *, event_id: int) -> Optional[EventEntity]:
        return await self.event_command_repo.get_by_id_for_update(event_id=event_id)

    async def _commit(self) -> None:
        assert self.session is not None
        try:
            await self.session.commit()
        except DBAPIError as e:
            await self.session.rollback()
            Logger.base.error(f'❌ [UoW] Commit failed: {e}')
            raise StoreUnavailableError() from e

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()

"""
Integration fixtures: the SQLAlchemy unit of work against a real Postgres.

Connection settings come from POSTGRES_* (see .env.example). Every test gets
freshly truncated tables, and is skipped when the server cannot
be reached.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.platform.config.core_setting import settings
from src.platform.database.orm_db_setting import Base
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.enum.event_category import EventCategory


@pytest_asyncio.fixture
async def pg_engine() -> AsyncGenerator[AsyncEngine, None]:
    # Register models on Base.metadata
    import src.service.rsvp.driven_adapter.model  # noqa: F401

    engine = create_async_engine(settings.DATABASE_URL_ASYNC, pool_size=20, max_overflow=0)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
            await conn.execute(text('TRUNCATE feedback, reservation, event RESTART IDENTITY CASCADE'))
    except (OSError, DBAPIError) as e:
        await engine.dispose()
        pytest.skip(f'Postgres not reachable at {settings.POSTGRES_SERVER}: {e}')

    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(pg_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(pg_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def pg_uow_factory(session_maker) -> Callable[[], SqlAlchemyUnitOfWork]:
    return lambda: SqlAlchemyUnitOfWork(session_maker=session_maker)


@pytest.fixture
def wall_clock() -> Callable[[], datetime]:
    return lambda: datetime.now(timezone.utc)


@pytest.fixture
def create_pg_event(pg_uow_factory, wall_clock):
    """Insert an event through the command repo (starts in one day by default)."""

    async def _create(
        *, start: datetime | None = None, duration: int | None = 90, total_slots: int = 10
    ) -> EventEntity:
        now = wall_clock()
        event = EventEntity(
            title='Thursday pickup basketball',
            category=EventCategory.BASKETBALL,
            location='Eastside Gym',
            time=start if start is not None else now + timedelta(days=1),
            duration=duration,
            total_slots=total_slots,
            available_slots=total_slots,
            created_by=1,
        )
        async with pg_uow_factory() as uow:
            created = await uow.event_command_repo.create(event=event)
            await uow.commit()
        return created

    return _create

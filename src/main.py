"""
Production FastAPI Application

RSVP API plus the countdown broadcaster running in the same process.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import create_db_and_tables, dispose_engine
from src.platform.logging.loguru_io import Logger
from src.platform.logging.loguru_io_config import intercept_std_logging
from src.service.rsvp.app.service.countdown_broadcaster import CountdownBroadcaster


async def bootstrap_countdowns(countdown: CountdownBroadcaster, delay: float) -> None:
    """Restart countdowns once the server is accepting connections."""
    await anyio.sleep(delay)
    try:
        await countdown.bootstrap()
    except Exception as e:
        Logger.base.error(f'❌ [Countdown] Bootstrap failed, no countdowns restored: {e}')


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [RSVP Service] Starting up...')

    intercept_std_logging()

    # Wire dependency injection for all modules
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [RSVP Service] Dependency injection wired')

    if settings.STORE_BACKEND == 'postgres':
        await create_db_and_tables()
        Logger.base.info('🗄️  [RSVP Service] Database tables ready')
    else:
        Logger.base.warning('🧪 [RSVP Service] Using in-memory store, data is not persisted')

    countdown = container.countdown_broadcaster()

    async with anyio.create_task_group() as tg:
        tg.start_soon(
            bootstrap_countdowns, countdown, settings.COUNTDOWN_BOOTSTRAP_DELAY_SECONDS
        )
        Logger.base.info('✅ [RSVP Service] Ready to serve requests')

        yield

        Logger.base.info('🛑 [RSVP Service] Shutting down...')
        tg.cancel_scope.cancel()

    await countdown.shutdown()

    await dispose_engine()
    Logger.base.info('🗄️  [RSVP Service] Database engine disposed')

    # Unwire DI
    container.unwire()

    Logger.base.info('👋 [RSVP Service] Shutdown complete')


# Create FastAPI app using shared factory
app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')

"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.platform.event.in_memory_broadcaster import InMemoryEventBroadcasterImpl
from src.service.rsvp.app.service.countdown_broadcaster import (
    CountdownBroadcaster,
    CountdownTaskRegistry,
)
from src.service.rsvp.driven_adapter.broadcaster.rsvp_notifier_impl import RsvpNotifierImpl
from src.service.rsvp.driven_adapter.repo.event_query_repo_impl import EventQueryRepoImpl
from src.service.rsvp.driven_adapter.repo.in_memory_store import (
    InMemoryEventQueryRepo,
    InMemoryRsvpStore,
    InMemoryUnitOfWork,
)
from src.service.rsvp.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (uses AsyncEngineManager with settings from config_service)
    database = providers.Singleton(Database)

    # Process-local store, only used when STORE_BACKEND=memory
    in_memory_store = providers.Singleton(InMemoryRsvpStore)

    # Unit of work: a new instance per call, inject with `unit_of_work.provider`
    unit_of_work = providers.Selector(
        config_service.provided.STORE_BACKEND,
        postgres=providers.Factory(
            SqlAlchemyUnitOfWork, session_maker=database.provided.session_maker.call()
        ),
        memory=providers.Factory(InMemoryUnitOfWork, store=in_memory_store),
    )

    # Repositories (stateless - use session_factory per-request)
    event_query_repo = providers.Selector(
        config_service.provided.STORE_BACKEND,
        postgres=providers.Singleton(EventQueryRepoImpl, session_factory=database.provided.session),
        memory=providers.Singleton(InMemoryEventQueryRepo, store=in_memory_store),
    )

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)

    # In-process pub/sub for SSE
    event_broadcaster = providers.Singleton(
        InMemoryEventBroadcasterImpl,
        buffer_size=config_service.provided.BROADCAST_BUFFER_SIZE,
    )
    rsvp_notifier = providers.Singleton(RsvpNotifierImpl, broadcaster=event_broadcaster)

    # Countdown
    countdown_task_registry = providers.Singleton(CountdownTaskRegistry)
    countdown_broadcaster = providers.Singleton(
        CountdownBroadcaster,
        registry=countdown_task_registry,
        event_query_repo=event_query_repo,
        notifier=rsvp_notifier,
        interval_seconds=config_service.provided.COUNTDOWN_INTERVAL_SECONDS,
        lookback_hours=config_service.provided.COUNTDOWN_LOOKBACK_HOURS,
        bootstrap_limit=config_service.provided.COUNTDOWN_BOOTSTRAP_LIMIT,
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()

"""
API test fixtures

The app runs with its real lifespan (DI wiring, countdown bootstrap) on the
in-memory store, so seeded events are visible to the HTTP layer.
"""

from collections.abc import Callable, Generator
from types import SimpleNamespace
from typing import Any

from fastapi.testclient import TestClient
import pytest

from src.platform.config.di import container
from src.service.rsvp.domain.lifecycle_clock import utc_now
from src.service.rsvp.driven_adapter.repo.in_memory_store import InMemoryRsvpStore




@pytest.fixture(scope='session')
def client() -> Generator[TestClient, None, None]:
    from src.main import app

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def store(client: TestClient) -> InMemoryRsvpStore:
    return container.in_memory_store()


@pytest.fixture
def clock() -> Any:
    # seed_event only reads .now; the app itself runs on the wall clock
    return SimpleNamespace(now=utc_now())


@pytest.fixture
def auth_headers(client: TestClient) -> Callable[[int], dict[str, str]]:
    jwt_auth = container.jwt_auth()

    def _headers(user_id: int) -> dict[str, str]:
        return {'Authorization': f'Bearer {jwt_auth.create_jwt_token(user_id=user_id)}'}

    return _headers

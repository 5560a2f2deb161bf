"""
Test Configuration

Environment setup MUST happen before any application import: settings are
read once at import time (src.platform.config.core_setting.settings).

Architecture:
- Unit tests (test/**/unit/): in-memory unit of work, mocked notifier/countdown
- API tests (test/**/api/): FastAPI TestClient over the in-memory store
- Integration tests (test/**/integration/): SQLAlchemy unit of work on a real Postgres
"""

import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    os.environ['STORE_BACKEND'] = 'memory'
    os.environ.setdefault('SECRET_KEY', 'rsvp-test-secret-key-at-least-32-bytes')

    # Create test log directory
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)


# Call immediately to set env vars before any imports
_early_setup_test_environment()

"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.rsvp.app.command import (
    cancel_reservation_use_case,
    create_event_use_case,
    delete_event_use_case,
    join_event_use_case,
    resize_capacity_use_case,
    submit_feedback_use_case,
    update_event_use_case,
)
from src.service.rsvp.app.query import (
    get_event_lifecycle_use_case,
    stream_event_updates_use_case,
)
from src.service.rsvp.driving_adapter.http_controller.auth import current_user


WIRE_MODULES: list[ModuleType] = [
    create_event_use_case,
    update_event_use_case,
    resize_capacity_use_case,
    delete_event_use_case,
    join_event_use_case,
    cancel_reservation_use_case,
    submit_feedback_use_case,
    get_event_lifecycle_use_case,
    stream_event_updates_use_case,
    current_user,
]

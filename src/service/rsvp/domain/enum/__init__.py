"""RSVP Domain Enums"""

from src.service.rsvp.domain.enum.broadcast_event_type import BroadcastEventType
from src.service.rsvp.domain.enum.event_category import EventCategory
from src.service.rsvp.domain.enum.lifecycle_status import LifecycleStatus
from src.service.rsvp.domain.enum.reservation_status import ReservationStatus

__all__ = ['BroadcastEventType', 'EventCategory', 'LifecycleStatus', 'ReservationStatus']

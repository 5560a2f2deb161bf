import attrs

from src.service.rsvp.domain.enum.lifecycle_status import LifecycleStatus
from src.service.rsvp.domain.enum.reservation_status import ReservationStatus


@attrs.frozen
class RsvpResult:
    event_id: int
    user_id: int
    status: ReservationStatus
    available_slots: int
    total_slots: int
    lifecycle_status: LifecycleStatus

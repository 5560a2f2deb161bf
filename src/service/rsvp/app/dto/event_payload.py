from typing import Any

from src.service.rsvp.domain.entity.event_entity import EventEntity


def event_payload(event: EventEntity) -> dict[str, Any]:
    """Wire shape of an event in broadcast messages."""
    return {
        'event_id': event.id,
        'title': event.title,
        'description': event.description,
        'category': event.category.value,
        'location': event.location,
        'time': event.time,
        'duration': event.duration,
        'total_slots': event.total_slots,
        'available_slots': event.available_slots,
        'slot_version': event.slot_version,
        'created_by': event.created_by,
    }

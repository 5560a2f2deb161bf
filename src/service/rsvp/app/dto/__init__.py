from src.service.rsvp.app.dto.event_payload import event_payload
from src.service.rsvp.app.dto.rsvp_result import RsvpResult
from src.service.rsvp.app.dto.slot_change import SlotChange

__all__ = ['RsvpResult', 'SlotChange', 'event_payload']

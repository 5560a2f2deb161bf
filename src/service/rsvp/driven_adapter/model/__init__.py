"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.rsvp.driven_adapter.model.event_model import EventModel
from src.service.rsvp.driven_adapter.model.feedback_model import FeedbackModel
from src.service.rsvp.driven_adapter.model.reservation_model import ReservationModel

__all__ = [
    'EventModel',
    'FeedbackModel',
    'ReservationModel',
]

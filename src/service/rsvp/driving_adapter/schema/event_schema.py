from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.service.rsvp.domain.enum.event_category import EventCategory


class EventCreateRequest(BaseModel):
    title: str
    description: Optional[str] = None
    category: EventCategory
    location: str
    time: datetime
    duration: int  # minutes
    total_slots: int

    class Config:
        json_schema_extra = {
            'example': {
                'title': 'Sunday 5-a-side',
                'description': 'Friendly match, all levels welcome',
                'category': 'soccer',
                'location': 'Riverside Park Pitch 2',
                'time': '2026-11-01T09:00:00Z',
                'duration': 90,
                'total_slots': 10,
            }
        }


class EventUpdateRequest(BaseModel):
    """Only the fields present in the body are changed."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[EventCategory] = None
    location: Optional[str] = None
    time: Optional[datetime] = None
    duration: Optional[int] = None
    total_slots: Optional[int] = None


class CapacityUpdateRequest(BaseModel):
    total_slots: int


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    category: str
    location: str
    time: datetime
    duration: Optional[int]
    total_slots: int
    available_slots: int
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CapacityResponse(BaseModel):
    event_id: int
    total_slots: int
    available_slots: int


class LifecycleResponse(BaseModel):
    event_id: int
    status: str
    time_remaining_ms: int
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int

    class Config:
        json_schema_extra = {
            'example': {
                'event_id': 1,
                'status': 'ongoing',
                'time_remaining_ms': 2700000,
                'starts_at': '2026-11-01T09:00:00Z',
                'ends_at': '2026-11-01T10:30:00Z',
                'duration_minutes': 90,
            }
        }

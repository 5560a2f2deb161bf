from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class RsvpResponse(BaseModel):
    event_id: int
    user_id: int
    status: str
    available_slots: int
    total_slots: int
    lifecycle_status: str

    class Config:
        json_schema_extra = {
            'example': {
                'event_id': 1,
                'user_id': 7,
                'status': 'joined',
                'available_slots': 9,
                'total_slots': 10,
                'lifecycle_status': 'upcoming',
            }
        }


class FeedbackRequest(BaseModel):
    rating: int
    comment: Optional[str] = None


class FeedbackResponse(BaseModel):
    id: int
    event_id: int
    user_id: int
    rating: int
    comment: Optional[str]
    created_at: Optional[datetime] = None

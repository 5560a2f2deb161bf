from datetime import datetime
from typing import Optional

import attrs

from src.platform.exception.exceptions import DomainError


def _validate_rating(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
        raise DomainError('Rating must be between 1 and 5')


@attrs.define
class FeedbackEntity:
    user_id: int
    event_id: int
    rating: int = attrs.field(validator=_validate_rating)
    comment: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

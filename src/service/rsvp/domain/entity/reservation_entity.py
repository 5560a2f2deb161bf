from datetime import datetime
from typing import Optional

import attrs

from src.platform.exception.exceptions import AlreadyJoinedError, NotJoinedError
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.domain.enum.reservation_status import ReservationStatus


@attrs.define
class ReservationEntity:
    """
    A user's claim on one slot of an event.

    Identity is the (user_id, event_id) pair. Re-joining after a cancel
    reuses the same record, so there is never more than one row per pair.

        none -> joined -> cancelled -> joined -> ...
    """

    user_id: int
    event_id: int
    status: ReservationStatus = ReservationStatus.JOINED
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_joined(self) -> bool:
        return self.status is ReservationStatus.JOINED

    @classmethod
    @Logger.io
    def join(
        cls,
        *,
        existing: Optional['ReservationEntity'],
        user_id: int,
        event_id: int,
        now: datetime,
    ) -> 'ReservationEntity':
        if existing is None:
            return cls(
                user_id=user_id,
                event_id=event_id,
                status=ReservationStatus.JOINED,
                created_at=now,
                updated_at=now,
            )

        if existing.is_joined:
            raise AlreadyJoinedError()

        return attrs.evolve(existing, status=ReservationStatus.JOINED, updated_at=now)

    @Logger.io
    def cancel(self, *, now: datetime) -> 'ReservationEntity':
        if not self.is_joined:
            raise NotJoinedError()

        return attrs.evolve(self, status=ReservationStatus.CANCELLED, updated_at=now)

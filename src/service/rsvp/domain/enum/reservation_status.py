from enum import StrEnum


class ReservationStatus(StrEnum):
    JOINED = 'joined'
    CANCELLED = 'cancelled'

from enum import StrEnum


class EventCategory(StrEnum):
    SOCCER = 'soccer'
    BASKETBALL = 'basketball'
    RUNNING = 'running'

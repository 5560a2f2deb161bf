from enum import StrEnum


class ErrorKind(StrEnum):
    VALIDATION = 'Validation'
    EVENT_NOT_FOUND = 'EventNotFound'
    EVENT_ALREADY_FINISHED = 'EventAlreadyFinished'
    EVENT_NOT_FINISHED = 'EventNotFinished'
    INVALID_DURATION = 'InvalidDuration'
    ALREADY_JOINED = 'AlreadyJoined'
    NOT_JOINED = 'NotJoined'
    NO_SLOTS_AVAILABLE = 'NoSlotsAvailable'
    CAPACITY_BELOW_PARTICIPANTS = 'CapacityBelowParticipants'
    SELF_RSVP_FORBIDDEN = 'SelfRsvpForbidden'
    NOT_AUTHORIZED = 'NotAuthorized'
    FEEDBACK_NOT_ALLOWED = 'FeedbackNotAllowed'
    UNAUTHENTICATED = 'Unauthenticated'
    INVALID_TOKEN = 'InvalidToken'
    STORE_UNAVAILABLE = 'StoreUnavailable'
    INTERNAL = 'Internal'


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ForbiddenError(CustomBaseError):
    kind = ErrorKind.NOT_AUTHORIZED

    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class TemporalError(CustomBaseError):
    """The event's time window does not allow the operation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 422)


class AuthenticationError(CustomBaseError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class StoreUnavailableError(CustomBaseError):
    kind = ErrorKind.STORE_UNAVAILABLE

    def __init__(self, message: str = 'Storage temporarily unavailable') -> None:
        super().__init__(message, 503)


# RSVP business errors


class EventNotFoundError(NotFoundError):
    kind = ErrorKind.EVENT_NOT_FOUND

    def __init__(self, event_id: int) -> None:
        self.event_id = event_id
        super().__init__(f'Event not found: {event_id}')


class EventAlreadyFinishedError(TemporalError):
    kind = ErrorKind.EVENT_ALREADY_FINISHED

    def __init__(self, message: str = 'Event has already finished') -> None:
        super().__init__(message)


class EventNotFinishedError(TemporalError):
    kind = ErrorKind.EVENT_NOT_FINISHED

    def __init__(self, message: str = 'Event has not finished yet') -> None:
        super().__init__(message)


class InvalidDurationError(TemporalError):
    kind = ErrorKind.INVALID_DURATION

    def __init__(self, message: str = 'Event duration must be a positive number of minutes') -> None:
        super().__init__(message)


class AlreadyJoinedError(ConflictError):
    kind = ErrorKind.ALREADY_JOINED

    def __init__(self, message: str = 'Already joined this event') -> None:
        super().__init__(message)


class NotJoinedError(ConflictError):
    kind = ErrorKind.NOT_JOINED

    def __init__(self, message: str = 'You have not joined this event') -> None:
        super().__init__(message)


class NoSlotsAvailableError(ConflictError):
    kind = ErrorKind.NO_SLOTS_AVAILABLE

    def __init__(self, message: str = 'No available slots') -> None:
        super().__init__(message)


class CapacityBelowParticipantsError(ConflictError):
    kind = ErrorKind.CAPACITY_BELOW_PARTICIPANTS

    def __init__(self, *, current_participants: int) -> None:
        self.current_participants = current_participants
        super().__init__(
            f'total_slots cannot be less than current participants ({current_participants})'
        )


class NotAuthorizedError(ForbiddenError):
    kind = ErrorKind.NOT_AUTHORIZED


class SelfRsvpForbiddenError(ForbiddenError):
    kind = ErrorKind.SELF_RSVP_FORBIDDEN

    def __init__(self, message: str = 'Event creators cannot RSVP to their own event') -> None:
        super().__init__(message)


class FeedbackNotAllowedError(ForbiddenError):
    kind = ErrorKind.FEEDBACK_NOT_ALLOWED

    def __init__(self, message: str = 'Only participants can leave feedback') -> None:
        super().__init__(message)


class UnauthenticatedError(AuthenticationError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = 'Not authenticated') -> None:
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    kind = ErrorKind.INVALID_TOKEN

    def __init__(self, message: str = 'Invalid token') -> None:
        super().__init__(message)

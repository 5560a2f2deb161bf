from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.command.cancel_reservation_use_case import CancelReservationUseCase
from src.service.rsvp.app.command.join_event_use_case import JoinEventUseCase
from src.service.rsvp.app.command.submit_feedback_use_case import SubmitFeedbackUseCase
from src.service.rsvp.app.dto.rsvp_result import RsvpResult
from src.service.rsvp.driving_adapter.http_controller.auth.current_user import (
    get_current_user_id,
)
from src.service.rsvp.driving_adapter.schema.rsvp_schema import (
    FeedbackRequest,
    FeedbackResponse,
    RsvpResponse,
)


router = APIRouter()


def _to_response(result: RsvpResult) -> RsvpResponse:
    return RsvpResponse(
        event_id=result.event_id,
        user_id=result.user_id,
        status=result.status.value,
        available_slots=result.available_slots,
        total_slots=result.total_slots,
        lifecycle_status=result.lifecycle_status.value,
    )


@router.post('/{event_id}/rsvp', status_code=status.HTTP_200_OK)
@Logger.io
async def join_event(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    use_case: JoinEventUseCase = Depends(JoinEventUseCase.depends),
) -> RsvpResponse:
    result = await use_case.join(user_id=user_id, event_id=event_id)
    return _to_response(result)


@router.delete('/{event_id}/rsvp', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_reservation(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    use_case: CancelReservationUseCase = Depends(CancelReservationUseCase.depends),
) -> RsvpResponse:
    result = await use_case.cancel(user_id=user_id, event_id=event_id)
    return _to_response(result)


@router.post('/{event_id}/feedback', status_code=status.HTTP_201_CREATED)
@Logger.io
async def submit_feedback(
    event_id: int,
    request: FeedbackRequest,
    user_id: int = Depends(get_current_user_id),
    use_case: SubmitFeedbackUseCase = Depends(SubmitFeedbackUseCase.depends),
) -> FeedbackResponse:
    feedback = await use_case.submit(
        user_id=user_id, event_id=event_id, rating=request.rating, comment=request.comment
    )
    if feedback.id is None:
        raise ValueError('Feedback ID should not be None after creation.')

    return FeedbackResponse(
        id=feedback.id,
        event_id=feedback.event_id,
        user_id=feedback.user_id,
        rating=feedback.rating,
        comment=feedback.comment,
        created_at=feedback.created_at,
    )

from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, status
import orjson
from sse_starlette.sse import EventSourceResponse

from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.command.create_event_use_case import CreateEventUseCase
from src.service.rsvp.app.command.delete_event_use_case import DeleteEventUseCase
from src.service.rsvp.app.command.resize_capacity_use_case import ResizeCapacityUseCase
from src.service.rsvp.app.command.update_event_use_case import UpdateEventUseCase
from src.service.rsvp.app.query.get_event_lifecycle_use_case import GetEventLifecycleUseCase
from src.service.rsvp.app.query.stream_event_updates_use_case import StreamEventUpdatesUseCase
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.driving_adapter.http_controller.auth.current_user import (
    get_current_user_id,
)
from src.service.rsvp.driving_adapter.schema.event_schema import (
    CapacityResponse,
    CapacityUpdateRequest,
    EventCreateRequest,
    EventResponse,
    EventUpdateRequest,
    LifecycleResponse,
)


router = APIRouter()


def _to_response(event: EventEntity) -> EventResponse:
    if event.id is None:
        raise ValueError('Event ID should not be None after persistence.')

    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        category=event.category.value,
        location=event.location,
        time=event.time,
        duration=event.duration,
        total_slots=event.total_slots,
        available_slots=event.available_slots,
        created_by=event.created_by,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_event(
    request: EventCreateRequest,
    user_id: int = Depends(get_current_user_id),
    use_case: CreateEventUseCase = Depends(CreateEventUseCase.depends),
) -> EventResponse:
    event = await use_case.create(
        created_by=user_id,
        title=request.title,
        description=request.description,
        category=request.category,
        location=request.location,
        time=request.time,
        duration=request.duration,
        total_slots=request.total_slots,
    )
    return _to_response(event)


@router.patch('/{event_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def update_event(
    event_id: int,
    request: EventUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    use_case: UpdateEventUseCase = Depends(UpdateEventUseCase.depends),
) -> EventResponse:
    event = await use_case.update(
        event_id=event_id, user_id=user_id, changes=request.model_dump(exclude_unset=True)
    )
    return _to_response(event)


@router.put('/{event_id}/capacity', status_code=status.HTTP_200_OK)
@Logger.io
async def resize_capacity(
    event_id: int,
    request: CapacityUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    use_case: ResizeCapacityUseCase = Depends(ResizeCapacityUseCase.depends),
) -> CapacityResponse:
    change = await use_case.resize(event_id=event_id, user_id=user_id, new_total=request.total_slots)
    return CapacityResponse(
        event_id=change.event_id,
        total_slots=change.total_slots,
        available_slots=change.available_slots,
    )


@router.delete('/{event_id}', status_code=status.HTTP_204_NO_CONTENT)
@Logger.io
async def delete_event(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    use_case: DeleteEventUseCase = Depends(DeleteEventUseCase.depends),
) -> None:
    await use_case.delete(event_id=event_id, user_id=user_id)


@router.get('/{event_id}/lifecycle', status_code=status.HTTP_200_OK)
@Logger.io
async def get_event_lifecycle(
    event_id: int,
    use_case: GetEventLifecycleUseCase = Depends(GetEventLifecycleUseCase.depends),
) -> LifecycleResponse:
    lifecycle = await use_case.classify_lifecycle(event_id=event_id)
    return LifecycleResponse(
        event_id=lifecycle.event_id,
        status=lifecycle.status.value,
        time_remaining_ms=lifecycle.time_remaining_ms,
        starts_at=lifecycle.starts_at,
        ends_at=lifecycle.ends_at,
        duration_minutes=lifecycle.duration_minutes,
    )


# ============================ SSE Endpoints (in-process pub/sub) ============================


async def _to_sse(source: AsyncGenerator[dict, None]) -> AsyncGenerator[dict, None]:
    async for data in source:
        yield {
            'event': str(data['event_type']),
            'data': orjson.dumps(data).decode(),
        }


@router.get('/sse', status_code=status.HTTP_200_OK)
@Logger.io
async def stream_all_events(
    use_case: StreamEventUpdatesUseCase = Depends(StreamEventUpdatesUseCase.depends),
) -> EventSourceResponse:
    """SSE feed of created/updated/deleted events and capacity changes."""
    return EventSourceResponse(_to_sse(use_case.stream_global()))


@router.get('/{event_id}/sse', status_code=status.HTTP_200_OK)
@Logger.io
async def stream_event_updates(
    event_id: int,
    use_case: StreamEventUpdatesUseCase = Depends(StreamEventUpdatesUseCase.depends),
) -> EventSourceResponse:
    """SSE real-time push of one event's capacity and countdown."""
    await use_case.ensure_event_exists(event_id=event_id)
    return EventSourceResponse(_to_sse(use_case.stream(event_id=event_id)))

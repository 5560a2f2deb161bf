"""
Event Command Repository Implementation

Slot ledger statements are conditional UPDATE ... RETURNING so the check and
the write are one atomic statement; get_by_id_for_update adds FOR UPDATE for
the read-modify-write paths (join/cancel/resize).
"""

from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.dto.slot_change import SlotChange
from src.service.rsvp.app.interface.i_event_command_repo import IEventCommandRepo
from src.service.rsvp.domain.entity.event_entity import EventEntity
from src.service.rsvp.domain.enum.event_category import EventCategory
from src.service.rsvp.driven_adapter.model.event_model import EventModel


_SLOT_COLUMNS = (
    EventModel.id,
    EventModel.available_slots,
    EventModel.total_slots,
    EventModel.slot_version,
)


def model_to_event_entity(model: EventModel) -> EventEntity:
    return EventEntity(
        id=model.id,
        title=model.title,
        description=model.description,
        category=EventCategory(model.category),
        location=model.location,
        time=model.time,
        duration=model.duration,
        total_slots=model.total_slots,
        available_slots=model.available_slots,
        slot_version=model.slot_version,
        created_by=model.created_by,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class EventCommandRepoImpl(IEventCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _row_to_slot_change(row) -> SlotChange:
        return SlotChange(
            event_id=row.id,
            available_slots=row.available_slots,
            total_slots=row.total_slots,
            slot_version=row.slot_version,
        )

    @Logger.io
    async def get_by_id_for_update(self, *, event_id: int) -> Optional[EventEntity]:
        result = await self.session.execute(
            select(EventModel)
            .where(EventModel.id == event_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return model_to_event_entity(model) if model else None

    @Logger.io
    async def create(self, *, event: EventEntity) -> EventEntity:
        model = EventModel(
            title=event.title,
            description=event.description,
            category=event.category.value,
            location=event.location,
            time=event.time,
            duration=event.duration,
            total_slots=event.total_slots,
            available_slots=event.available_slots,
            slot_version=event.slot_version,
            created_by=event.created_by,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return model_to_event_entity(model)

    @Logger.io
    async def update_details(self, *, event: EventEntity) -> EventEntity:
        result = await self.session.execute(
            update(EventModel)
            .where(EventModel.id == event.id)
            .values(
                title=event.title,
                description=event.description,
                category=event.category.value,
                location=event.location,
                time=event.time,
                duration=event.duration,
                updated_at=func.now(),
            )
            .returning(EventModel)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        return model_to_event_entity(result.scalar_one())

    @Logger.io
    async def delete(self, *, event_id: int) -> bool:
        result = await self.session.execute(delete(EventModel).where(EventModel.id == event_id))
        return bool(result.rowcount)

    @Logger.io
    async def reserve_slot(self, *, event_id: int) -> Optional[SlotChange]:
        result = await self.session.execute(
            update(EventModel)
            .where(EventModel.id == event_id, EventModel.available_slots > 0)
            .values(
                available_slots=EventModel.available_slots - 1,
                slot_version=EventModel.slot_version + 1,
                updated_at=func.now(),
            )
            .returning(*_SLOT_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        return self._row_to_slot_change(row) if row else None

    @Logger.io
    async def release_slot(self, *, event_id: int) -> Optional[SlotChange]:
        result = await self.session.execute(
            update(EventModel)
            .where(EventModel.id == event_id)
            .values(
                available_slots=func.least(EventModel.total_slots, EventModel.available_slots + 1),
                slot_version=EventModel.slot_version + 1,
                updated_at=func.now(),
            )
            .returning(*_SLOT_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        return self._row_to_slot_change(row) if row else None

    @Logger.io
    async def set_capacity(
        self, *, event_id: int, total_slots: int, available_slots: int
    ) -> Optional[SlotChange]:
        result = await self.session.execute(
            update(EventModel)
            .where(EventModel.id == event_id)
            .values(
                total_slots=total_slots,
                available_slots=available_slots,
                slot_version=EventModel.slot_version + 1,
                updated_at=func.now(),
            )
            .returning(*_SLOT_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        return self._row_to_slot_change(row) if row else None

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.rsvp.domain.entity.reservation_entity import ReservationEntity
from src.service.rsvp.domain.enum.reservation_status import ReservationStatus
from src.service.rsvp.driven_adapter.model.reservation_model import ReservationModel


class ReservationCommandRepoImpl(IReservationCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _model_to_entity(model: ReservationModel) -> ReservationEntity:
        return ReservationEntity(
            id=model.id,
            user_id=model.user_id,
            event_id=model.event_id,
            status=ReservationStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @Logger.io
    async def get_for_update(
        self, *, user_id: int, event_id: int
    ) -> Optional[ReservationEntity]:
        result = await self.session.execute(
            select(ReservationModel)
            .where(ReservationModel.user_id == user_id, ReservationModel.event_id == event_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    @Logger.io
    async def upsert(self, *, reservation: ReservationEntity) -> ReservationEntity:
        stmt = insert(ReservationModel).values(
            user_id=reservation.user_id,
            event_id=reservation.event_id,
            status=reservation.status.value,
        )
        stmt = stmt.on_conflict_do_update(
            constraint='uq_reservation_user_event',
            set_={'status': stmt.excluded.status, 'updated_at': func.now()},
        ).returning(ReservationModel)

        result = await self.session.execute(
            stmt, execution_options={'populate_existing': True}
        )
        return self._model_to_entity(result.scalar_one())

"""
Slot Ledger

Sole writer of available_slots / total_slots. Runs on the event command repo
of the caller's unit of work, so ledger writes commit or roll back together
with the reservation change that caused them.

Invariant: 0 <= available_slots <= total_slots, and every mutation bumps
slot_version in the same statement.
"""

from src.platform.exception.exceptions import EventNotFoundError, NoSlotsAvailableError
from src.platform.logging.loguru_io import Logger
from src.service.rsvp.app.dto.slot_change import SlotChange
from src.service.rsvp.app.interface.i_event_command_repo import IEventCommandRepo


class SlotLedger:
    def __init__(self, *, event_command_repo: IEventCommandRepo) -> None:
        self.event_command_repo = event_command_repo

    @Logger.io
    async def reserve(self, *, event_id: int) -> SlotChange:
        """
        Take one slot.

        Raises:
            NoSlotsAvailableError: available_slots was already zero
        """
        change = await self.event_command_repo.reserve_slot(event_id=event_id)
        if change is None:
            raise NoSlotsAvailableError()

        Logger.base.info(
            f'🎟️ [LEDGER] Reserved slot on event {event_id}: '
            f'{change.available_slots}/{change.total_slots} left (v{change.slot_version})'
        )
        return change

    @Logger.io
    async def release(self, *, event_id: int) -> SlotChange:
        """Give one slot back, never above total_slots."""
        change = await self.event_command_repo.release_slot(event_id=event_id)
        if change is None:
            raise EventNotFoundError(event_id)

        Logger.base.info(
            f'🔓 [LEDGER] Released slot on event {event_id}: '
            f'{change.available_slots}/{change.total_slots} left (v{change.slot_version})'
        )
        return change

    @Logger.io
    async def reconcile_on_resize(self, *, event_id: int, new_total: int) -> SlotChange:
        """
        Change total_slots keeping current participants.

        Raises:
            DomainError: new_total < 1
            CapacityBelowParticipantsError: new_total < current participants
        """
        event = await self.event_command_repo.get_by_id_for_update(event_id=event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        resized = event.reconcile_capacity(new_total)
        change = await self.event_command_repo.set_capacity(
            event_id=event_id,
            total_slots=resized.total_slots,
            available_slots=resized.available_slots,
        )
        if change is None:
            raise EventNotFoundError(event_id)

        Logger.base.info(
            f'📏 [LEDGER] Resized event {event_id}: '
            f'total {event.total_slots} -> {change.total_slots}, '
            f'available {event.available_slots} -> {change.available_slots}'
        )
        return change

import attrs


@attrs.frozen
class SlotChange:
    """Committed capacity of an event after a ledger mutation."""

    event_id: int
    available_slots: int
    total_slots: int
    slot_version: int

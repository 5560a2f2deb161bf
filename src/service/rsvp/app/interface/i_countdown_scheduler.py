from typing import Protocol


class ICountdownScheduler(Protocol):
    def start(self, *, event_id: int) -> None:
        """Start (or restart) the countdown task of an event"""
        ...

    def stop(self, *, event_id: int) -> bool:
        """Stop the countdown task of an event, returns False if none was running"""
        ...

from __future__ import annotations

from defi_lifecycle.core.events.event_bus import EventBus
from defi_lifecycle.core.events.events import DomainEvent


class NullEventBus(EventBus):
    """EventBus without sinks.

    Events are still type-checked and counted, then dropped.
    """

    def __init__(self) -> None:
        super().__init__(sinks=())

    def _dispatch(self, event: DomainEvent) -> None:
        return

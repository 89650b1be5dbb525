"""
Event sink interface.

Sinks consume the domain events emitted by the lifecycle pipeline.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from defi_lifecycle.core.events.events import DomainEvent


class EventSink(Protocol):
    def on_event(self, event: DomainEvent) -> None:
        """Consume one classification or transition event."""

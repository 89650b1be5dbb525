"""
Synchronous bus for the lifecycle pipeline's domain events.

Only the pipeline's own event classes are accepted; anything else is a
programming error and raises TypeError before any sink sees it.
"""
from __future__ import annotations

from collections import Counter
from typing import Iterable

from defi_lifecycle.core.events.event_sink import EventSink
from defi_lifecycle.core.events.events import DOMAIN_EVENT_TYPES, DomainEvent


class EventBus:
    """Dispatches domain events to registered sinks on the calling thread."""

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._emitted: Counter[str] = Counter()
        self._closed = False

    def register(self, sink: EventSink) -> None:
        if self._closed:
            raise RuntimeError("cannot register a sink on a closed EventBus")
        self._sinks.append(sink)

    def emit(self, event: DomainEvent) -> None:
        """Emit ``event`` to all sinks, in registration order."""
        if not isinstance(event, DOMAIN_EVENT_TYPES):
            raise TypeError(f"not a lifecycle domain event: {type(event).__name__}")
        if self._closed:
            raise RuntimeError("cannot emit on a closed EventBus")

        self._emitted[type(event).__name__] += 1
        self._dispatch(event)

    def _dispatch(self, event: DomainEvent) -> None:
        for sink in self._sinks:
            sink.on_event(event)

    def emitted_counts(self) -> dict[str, int]:
        """Number of events emitted so far, by event class name."""
        return dict(self._emitted)

    def close(self) -> None:
        """
        Finalize all sinks that expose a close() method. Idempotent.
        """
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True

    def __enter__(self) -> EventBus:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

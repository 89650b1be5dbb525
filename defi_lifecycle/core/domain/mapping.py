"""Canonical mapping from event taxonomy to lifecycle transitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from defi_lifecycle.core.domain.correlation import DcaClosed, KaminoDisplay, NotRequired
from defi_lifecycle.core.domain.order_state_machine import (
    CREATE,
    FILL_DELTA,
    METADATA_ONLY,
    CloseTransition,
    CreateTransition,
    FillDeltaTransition,
    LifecycleTransition,
    TerminalStatus,
)
from defi_lifecycle.core.domain.taxonomy import EventType

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.correlation import EventPayload, ResolvedEvent


_METADATA_EVENT_TYPES: frozenset[EventType] = frozenset(
    {
        EventType.FEE_COLLECTED,
        EventType.WITHDRAWN,
        EventType.DEPOSITED,
    }
)


def event_type_to_transition(
    event_type: EventType,
    closed_status: TerminalStatus | None = None,
) -> LifecycleTransition:
    """Map an event type to the transition it requests.

    ``closed_status`` is only consulted for ``EventType.CLOSED``. It is derived
    by the protocol adapter (e.g. from DCA's ``user_closed`` and
    ``unfilled_amount``) and is not re-derived here. A ``Closed`` event without
    a status is treated as metadata.
    """
    if event_type is EventType.CREATED:
        return CREATE
    if event_type in (EventType.FILL_INITIATED, EventType.FILL_COMPLETED):
        return FILL_DELTA
    if event_type is EventType.CANCELLED:
        return CloseTransition(status=TerminalStatus.CANCELLED)
    if event_type is EventType.EXPIRED:
        return CloseTransition(status=TerminalStatus.EXPIRED)
    if event_type is EventType.CLOSED:
        if closed_status is None:
            return METADATA_ONLY
        return CloseTransition(status=closed_status)
    if event_type in _METADATA_EVENT_TYPES:
        return METADATA_ONLY
    raise ValueError(f"unmapped event type: {event_type!r}")


def closed_status_hint(payload: EventPayload) -> TerminalStatus | None:
    """Return the terminal status carried by a resolved payload, if any."""
    if isinstance(payload, DcaClosed):
        return payload.status
    if isinstance(payload, KaminoDisplay):
        return payload.terminal_status
    return None


def resolved_event_to_transition(resolved: ResolvedEvent) -> LifecycleTransition:
    """Map a resolved event to its transition.

    Events whose correlation is ``NotRequired`` never touch order state and
    always map to metadata, whatever their nominal event type.
    """
    if isinstance(resolved.correlation, NotRequired):
        return METADATA_ONLY
    return event_type_to_transition(resolved.event_type, closed_status_hint(resolved.payload))


def transition_to_display(transition: LifecycleTransition) -> str:
    """Human-readable label, e.g. ``Close(Completed)``."""
    if isinstance(transition, CreateTransition):
        return "Create"
    if isinstance(transition, FillDeltaTransition):
        return "FillDelta"
    if isinstance(transition, CloseTransition):
        return f"Close({transition.status.value.capitalize()})"
    return "MetadataOnly"


def transition_target(transition: LifecycleTransition) -> str | None:
    """Return the order status a transition moves to, or None if it keeps the status."""
    if isinstance(transition, CreateTransition):
        return "active"
    if isinstance(transition, CloseTransition):
        return transition.status.value
    return None

"""
Semantic test: canonical event type to transition mapping.

Invariant:
Every EventType maps to exactly one transition. Closed uses the adapter's
status hint and falls back to MetadataOnly without one.
"""

from __future__ import annotations

import pytest

from defi_lifecycle.core.domain.mapping import event_type_to_transition
from defi_lifecycle.core.domain.order_state_machine import (
    CREATE,
    FILL_DELTA,
    METADATA_ONLY,
    CloseTransition,
    TerminalStatus,
)
from defi_lifecycle.core.domain.taxonomy import EventType


@pytest.mark.parametrize(
    ("event_type", "expected"),
    [
        (EventType.CREATED, CREATE),
        (EventType.FILL_INITIATED, FILL_DELTA),
        (EventType.FILL_COMPLETED, FILL_DELTA),
        (EventType.CANCELLED, CloseTransition(status=TerminalStatus.CANCELLED)),
        (EventType.EXPIRED, CloseTransition(status=TerminalStatus.EXPIRED)),
        (EventType.FEE_COLLECTED, METADATA_ONLY),
        (EventType.WITHDRAWN, METADATA_ONLY),
        (EventType.DEPOSITED, METADATA_ONLY),
    ],
)
def test_fixed_mappings(event_type: EventType, expected) -> None:
    assert event_type_to_transition(event_type) == expected


@pytest.mark.parametrize("status", list(TerminalStatus))
def test_closed_uses_hint(status: TerminalStatus) -> None:
    assert event_type_to_transition(EventType.CLOSED, status) == CloseTransition(status=status)


def test_closed_without_hint_is_metadata() -> None:
    assert event_type_to_transition(EventType.CLOSED) == METADATA_ONLY


def test_hint_is_ignored_for_other_event_types() -> None:
    transition = event_type_to_transition(EventType.CANCELLED, TerminalStatus.COMPLETED)
    assert transition == CloseTransition(status=TerminalStatus.CANCELLED)


def test_every_event_type_is_mapped() -> None:
    for event_type in EventType:
        event_type_to_transition(event_type)

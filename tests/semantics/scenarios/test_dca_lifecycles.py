"""
Semantic test: DCA order lifecycles end to end.

Invariant:
Feeding a DCA order's events through adapter, mapping and engine in chain
order yields Create, FillDelta, FillDelta, Close(derived status). Once
closed, further fills are ignored while metadata still applies.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

from typing import Any

from defi_lifecycle.core.domain.mapping import resolved_event_to_transition, transition_to_display
from defi_lifecycle.core.domain.order_state_machine import (
    TerminalStatus,
    TransitionDecision,
    decide_transition,
    next_status,
)
from defi_lifecycle.core.domain.taxonomy import EventType
from defi_lifecycle.core.domain.types import RawEvent, ResolveContext
from defi_lifecycle.protocols.dca import DCA_ADAPTER

DCA_KEY = "DcaPda1111111111111111111111111111111111111"


def dca_event(variant: str, **fields: Any) -> RawEvent:
    return RawEvent(event_name=variant, fields={variant: {"dca_key": DCA_KEY, **fields}})


def run(events: list[RawEvent], current: TerminalStatus | None = None):
    """Fold events through the engine; return (steps, final status)."""
    steps = []
    for ev in events:
        resolved = DCA_ADAPTER.classify_and_resolve_event(ev, ResolveContext.empty())
        assert resolved is not None
        assert resolved.order_pda == DCA_KEY
        transition = resolved_event_to_transition(resolved)
        decision = decide_transition(current, transition)
        steps.append((resolved.event_type, transition_to_display(transition), decision))
        current = next_status(current, transition)
    return steps, current


def test_happy_path_completes() -> None:
    steps, final = run(
        [
            dca_event("OpenedEvent"),
            dca_event("FilledEvent", in_amount=100, out_amount=95),
            dca_event("FilledEvent", in_amount=100, out_amount=97),
            dca_event("ClosedEvent", user_closed=False, unfilled_amount=0),
            dca_event("FilledEvent", in_amount=100, out_amount=99),
        ]
    )

    assert steps == [
        (EventType.CREATED, "Create", TransitionDecision.APPLY),
        (EventType.FILL_COMPLETED, "FillDelta", TransitionDecision.APPLY),
        (EventType.FILL_COMPLETED, "FillDelta", TransitionDecision.APPLY),
        (EventType.CLOSED, "Close(Completed)", TransitionDecision.APPLY),
        (EventType.FILL_COMPLETED, "FillDelta", TransitionDecision.IGNORE_TERMINAL_VIOLATION),
    ]
    assert final is TerminalStatus.COMPLETED


def test_user_cancel_wins_over_unfilled_amount() -> None:
    for unfilled in (0, 117):
        steps, final = run(
            [
                dca_event("OpenedEvent"),
                dca_event("ClosedEvent", user_closed=True, unfilled_amount=unfilled),
            ]
        )
        assert steps[-1] == (EventType.CLOSED, "Close(Cancelled)", TransitionDecision.APPLY)
        assert final is TerminalStatus.CANCELLED


def test_unfilled_amount_means_expired() -> None:
    steps, final = run(
        [
            dca_event("OpenedEvent"),
            dca_event("FilledEvent", in_amount=100, out_amount=95),
            dca_event("ClosedEvent", user_closed=False, unfilled_amount=117),
        ]
    )

    assert steps[-1] == (EventType.CLOSED, "Close(Expired)", TransitionDecision.APPLY)
    assert final is TerminalStatus.EXPIRED


def test_metadata_after_cancel_still_applies() -> None:
    steps, final = run(
        [
            dca_event("CollectedFeeEvent"),
            dca_event("WithdrawEvent"),
            dca_event("DepositEvent"),
            dca_event("ClosedEvent", user_closed=False, unfilled_amount=0),
        ],
        current=TerminalStatus.CANCELLED,
    )

    assert [decision for _, _, decision in steps] == [
        TransitionDecision.APPLY,
        TransitionDecision.APPLY,
        TransitionDecision.APPLY,
        TransitionDecision.IGNORE_TERMINAL_VIOLATION,
    ]
    assert [label for _, label, _ in steps[:3]] == ["MetadataOnly"] * 3
    assert final is TerminalStatus.CANCELLED

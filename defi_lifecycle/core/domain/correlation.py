"""Correlation outcomes and resolved event payloads.

These models are the output of event resolution. They are not part of the
raw record schemas: the Lifecycle Engine never reads payloads, they are
handed to the caller's own order-state updater.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.order_state_machine import TerminalStatus
    from defi_lifecycle.core.domain.taxonomy import EventType


# ---------------------------------------------------------------------------
# Correlation outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Correlated:
    """The record belongs to the order identified by ``order_pda``."""

    order_pda: str


@dataclass(frozen=True, slots=True)
class Uncorrelated:
    """An order identity is required but was not available."""

    reason: str


@dataclass(frozen=True, slots=True)
class NotRequired:
    """The record carries no per-order semantics (e.g. diagnostics)."""


CorrelationOutcome = Correlated | Uncorrelated | NotRequired


# ---------------------------------------------------------------------------
# Event payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NoPayload:
    pass


@dataclass(frozen=True, slots=True)
class DcaFill:
    in_amount: int
    out_amount: int


@dataclass(frozen=True, slots=True)
class DcaClosed:
    status: TerminalStatus


@dataclass(frozen=True, slots=True)
class LimitFill:
    in_amount: int
    out_amount: int
    remaining_in_amount: int
    counterparty: str


@dataclass(frozen=True, slots=True)
class KaminoDisplay:
    remaining_input_amount: int
    filled_output_amount: int
    # None while the order is still open.
    terminal_status: TerminalStatus | None


EventPayload = NoPayload | DcaFill | DcaClosed | LimitFill | KaminoDisplay

NO_PAYLOAD = NoPayload()


@dataclass(frozen=True, slots=True)
class ResolvedEvent:
    """Classification result of a recognized, well-formed event.

    Unpacks as ``event_type, correlation, payload``.
    """

    event_type: EventType
    correlation: CorrelationOutcome
    payload: EventPayload = NO_PAYLOAD

    def __iter__(self) -> Iterator[Any]:
        return iter((self.event_type, self.correlation, self.payload))

    @property
    def order_pda(self) -> str | None:
        if isinstance(self.correlation, Correlated):
            return self.correlation.order_pda
        return None

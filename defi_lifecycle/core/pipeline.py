"""Lifecycle pipeline facade.

Runs one raw record through the whole decision path:

    adapter -> event type (+ correlation, payload) -> transition -> decision

The pipeline stores no order state. The caller passes the order's current
terminal status with every record, applies accepted outcomes to its own
store, and feeds ``outcome.next_status`` back in with the next record.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from defi_lifecycle.core.domain.correlation import (
    NO_PAYLOAD,
    Correlated,
    ResolvedEvent,
    Uncorrelated,
)
from defi_lifecycle.core.domain.errors import ClassificationError, ProtocolError
from defi_lifecycle.core.domain.mapping import (
    event_type_to_transition,
    resolved_event_to_transition,
    transition_to_display,
)
from defi_lifecycle.core.domain.order_state_machine import (
    TerminalStatus,
    TransitionDecision,
    decide_transition,
    next_status,
)
from defi_lifecycle.core.domain.taxonomy import Protocol
from defi_lifecycle.core.events.events import (
    ClassificationFailedEvent,
    RecordClassifiedEvent,
    TransitionDecidedEvent,
)
from defi_lifecycle.protocols.envelope import parse_accounts
from defi_lifecycle.protocols.registry import AdapterRegistry, extract_order_pda

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.correlation import CorrelationOutcome, EventPayload
    from defi_lifecycle.core.domain.order_state_machine import LifecycleTransition
    from defi_lifecycle.core.domain.taxonomy import EventType
    from defi_lifecycle.core.domain.types import RawEvent, RawInstruction, ResolveContext
    from defi_lifecycle.core.events.event_bus import EventBus

LOGGER = logging.getLogger(__name__)

RecordSource = Literal["instruction", "event"]


@dataclass(slots=True)
class PipelineOutcome:
    """Result of running one recognized record through the pipeline.

    - transition: what the record asks the order to do
    - decision: whether the order, in its current status, accepts it
    - next_status: the order's terminal status once the outcome is applied
    """

    protocol: Protocol
    source: RecordSource
    variant_name: str
    event_type: EventType
    correlation: CorrelationOutcome
    payload: EventPayload
    transition: LifecycleTransition
    decision: TransitionDecision
    current_status: TerminalStatus | None
    next_status: TerminalStatus | None

    @property
    def applied(self) -> bool:
        return self.decision is TransitionDecision.APPLY

    @property
    def order_pda(self) -> str | None:
        if isinstance(self.correlation, Correlated):
            return self.correlation.order_pda
        return None


def _coerce_status(current: TerminalStatus | str | None) -> TerminalStatus | None:
    return TerminalStatus(current) if current is not None else None


def _correlation_kind(correlation: CorrelationOutcome) -> str:
    if isinstance(correlation, Correlated):
        return "correlated"
    if isinstance(correlation, Uncorrelated):
        return "uncorrelated"
    return "not_required"


def _event_variant_name(ev: RawEvent) -> str:
    fields = ev.fields
    if isinstance(fields, Mapping) and len(fields) == 1:
        return str(next(iter(fields)))
    return ev.event_name


class LifecyclePipeline:
    """Classifies raw records and decides their lifecycle transitions."""

    def __init__(self, event_bus: EventBus, registry: AdapterRegistry | None = None) -> None:
        self._event_bus = event_bus
        self._registry = registry if registry is not None else AdapterRegistry()

    @property
    def registry(self) -> AdapterRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Instructions
    # ------------------------------------------------------------------

    def process_instruction(
        self,
        protocol: Protocol,
        ix: RawInstruction,
        current: TerminalStatus | None,
    ) -> PipelineOutcome | None:
        """Classify an instruction and decide its transition.

        Returns None for unrecognized and deliberately ignored instructions.
        Instruction-level ``Closed`` carries no terminal status and is
        decided as metadata.
        """
        protocol = Protocol(protocol)
        current = _coerce_status(current)
        adapter = self._registry.adapter_for(protocol)
        event_type = adapter.classify_instruction(ix)
        if event_type is None:
            LOGGER.debug(
                "unrecognized %s instruction %s (signature=%s)",
                protocol.value,
                ix.instruction_name,
                ix.signature,
            )
            return None

        correlation = self._instruction_correlation(protocol, ix)
        transition = event_type_to_transition(event_type)
        return self._decide(
            protocol=protocol,
            source="instruction",
            variant_name=ix.instruction_name,
            signature=ix.signature,
            resolved=ResolvedEvent(event_type, correlation, NO_PAYLOAD),
            transition=transition,
            current=current,
        )

    def _instruction_correlation(
        self, protocol: Protocol, ix: RawInstruction
    ) -> CorrelationOutcome:
        if ix.accounts is None:
            return Uncorrelated(f"{ix.instruction_name} carries no accounts")
        try:
            accounts = parse_accounts(ix.accounts)
            return Correlated(extract_order_pda(protocol, accounts, ix.instruction_name))
        except ProtocolError as exc:
            return Uncorrelated(exc.reason)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def process_event(
        self,
        protocol: Protocol,
        ev: RawEvent,
        ctx: ResolveContext,
        current: TerminalStatus | None,
    ) -> PipelineOutcome | None:
        """Classify and resolve an event, then decide its transition.

        Returns None for unrecognized events. A malformed payload of a known
        variant emits ``ClassificationFailedEvent`` and re-raises the
        ClassificationError.
        """
        protocol = Protocol(protocol)
        current = _coerce_status(current)
        adapter = self._registry.adapter_for(protocol)
        try:
            resolved = adapter.classify_and_resolve_event(ev, ctx)
        except ClassificationError as exc:
            self._event_bus.emit(
                ClassificationFailedEvent(
                    protocol=protocol.value,
                    variant_name=exc.variant,
                    field=exc.field,
                    reason=exc.reason,
                    signature=ev.signature,
                )
            )
            raise

        if resolved is None:
            LOGGER.debug(
                "unrecognized %s event %s (signature=%s)",
                protocol.value,
                ev.event_name,
                ev.signature,
            )
            return None

        if isinstance(resolved.correlation, Uncorrelated):
            LOGGER.info("uncorrelated %s event: %s", protocol.value, resolved.correlation.reason)

        return self._decide(
            protocol=protocol,
            source="event",
            variant_name=_event_variant_name(ev),
            signature=ev.signature,
            resolved=resolved,
            transition=resolved_event_to_transition(resolved),
            current=current,
        )

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def _decide(
        self,
        *,
        protocol: Protocol,
        source: RecordSource,
        variant_name: str,
        signature: str,
        resolved: ResolvedEvent,
        transition: LifecycleTransition,
        current: TerminalStatus | None,
    ) -> PipelineOutcome:
        # pylint: disable=too-many-arguments
        decision = decide_transition(current, transition)
        status_after = next_status(current, transition)

        outcome = PipelineOutcome(
            protocol=protocol,
            source=source,
            variant_name=variant_name,
            event_type=resolved.event_type,
            correlation=resolved.correlation,
            payload=resolved.payload,
            transition=transition,
            decision=decision,
            current_status=current,
            next_status=status_after,
        )

        if decision is TransitionDecision.IGNORE_TERMINAL_VIOLATION:
            LOGGER.warning(
                "ignoring %s on terminal order %s (status=%s, %s %s)",
                transition_to_display(transition),
                outcome.order_pda,
                current.value if current is not None else None,
                protocol.value,
                variant_name,
            )

        self._event_bus.emit(
            RecordClassifiedEvent(
                protocol=protocol.value,
                source=source,
                variant_name=variant_name,
                event_type=resolved.event_type.value,
                correlation=_correlation_kind(resolved.correlation),
                order_pda=outcome.order_pda,
                signature=signature,
            )
        )
        self._event_bus.emit(
            TransitionDecidedEvent(
                protocol=protocol.value,
                variant_name=variant_name,
                order_pda=outcome.order_pda,
                transition=transition_to_display(transition),
                current_status=current.value if current is not None else None,
                next_status=status_after.value if status_after is not None else None,
                decision=decision.value,
            )
        )
        return outcome

"""
Domain event models.

These events represent immutable facts observed while classifying records
and deciding lifecycle transitions. They are consumed by loggers and
recorders; all fields are JSON-compatible scalars.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class RecordClassifiedEvent:
    protocol: str
    source: str
    variant_name: str
    event_type: str

    # "correlated" | "uncorrelated" | "not_required"
    correlation: str
    order_pda: str | None
    signature: str


@dataclass(slots=True)
class TransitionDecidedEvent:
    protocol: str
    variant_name: str
    order_pda: str | None

    transition: str
    current_status: str | None
    next_status: str | None
    decision: str


@dataclass(slots=True)
class ClassificationFailedEvent:
    protocol: str
    variant_name: str | None
    field: str | None
    reason: str
    signature: str


DomainEvent = RecordClassifiedEvent | TransitionDecidedEvent | ClassificationFailedEvent

DOMAIN_EVENT_TYPES: tuple[type, ...] = (
    RecordClassifiedEvent,
    TransitionDecidedEvent,
    ClassificationFailedEvent,
)

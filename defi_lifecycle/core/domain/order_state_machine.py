"""
Order lifecycle state machine definitions.

This module defines the lifecycle transition vocabulary and the rules that
decide whether a transition may be applied to an order. It is intentionally
passive: the engine stores nothing, the caller passes the order's current
terminal status on every call and receives a decision back.

The machine has two effective states. An open order (``None``) accepts every
transition. A terminal order (``completed``, ``cancelled`` or ``expired``)
accepts only metadata updates. The three terminal statuses are presentation
level distinctions; for acceptance they behave identically.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class TerminalStatus(StrEnum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# Terminal statuses: once reached, only metadata-only updates are accepted.
ORDER_TERMINAL_STATUSES: frozenset[TerminalStatus] = frozenset(TerminalStatus)


class TransitionDecision(StrEnum):
    APPLY = "apply"
    IGNORE_TERMINAL_VIOLATION = "ignore_terminal_violation"


# ---------------------------------------------------------------------------
# Transition vocabulary (discriminated union)
# ---------------------------------------------------------------------------


class CreateTransition(BaseModel):
    kind: Literal["create"] = "create"

    model_config = ConfigDict(extra="forbid", frozen=True)


class FillDeltaTransition(BaseModel):
    kind: Literal["fill_delta"] = "fill_delta"

    model_config = ConfigDict(extra="forbid", frozen=True)


class CloseTransition(BaseModel):
    """Move the order into ``status``."""

    kind: Literal["close"] = "close"
    status: TerminalStatus

    model_config = ConfigDict(extra="forbid", frozen=True)


class MetadataOnlyTransition(BaseModel):
    kind: Literal["metadata_only"] = "metadata_only"

    model_config = ConfigDict(extra="forbid", frozen=True)


# Discriminated union: Pydantic will select the correct model based on kind.
LifecycleTransition = Annotated[
    CreateTransition | FillDeltaTransition | CloseTransition | MetadataOnlyTransition,
    Field(discriminator="kind"),
]

CREATE = CreateTransition()
FILL_DELTA = FillDeltaTransition()
METADATA_ONLY = MetadataOnlyTransition()


@dataclass(frozen=True, slots=True)
class SnapshotDelta:
    """Fill progress derived from a cumulative on-chain snapshot.

    ``delta`` is never negative. A snapshot below the stored total is
    reported through ``regression`` only.
    """

    delta: int
    regression: bool


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def is_terminal(current: TerminalStatus | None) -> bool:
    """Return True if an order with this status is closed."""
    return current in ORDER_TERMINAL_STATUSES


def decide_transition(
    current: TerminalStatus | None,
    transition: LifecycleTransition,
) -> TransitionDecision:
    """Return whether ``transition`` may be applied to an order in ``current``.

    Closing an already-closed order is rejected, not idempotently accepted,
    even when the target status matches.
    """
    if current is None:
        return TransitionDecision.APPLY
    if isinstance(transition, MetadataOnlyTransition):
        return TransitionDecision.APPLY
    return TransitionDecision.IGNORE_TERMINAL_VIOLATION


def next_status(
    current: TerminalStatus | None,
    transition: LifecycleTransition,
) -> TerminalStatus | None:
    """Return the order's terminal status after offering it ``transition``.

    Rejected transitions leave the status unchanged.
    """
    if decide_transition(current, transition) is TransitionDecision.IGNORE_TERMINAL_VIOLATION:
        return current
    if isinstance(transition, CloseTransition):
        return transition.status
    return current


def normalize_snapshot_to_delta(stored_total: int, snapshot_total: int) -> SnapshotDelta:
    """Reconcile a stored cumulative fill amount against a fresh snapshot."""
    return SnapshotDelta(
        delta=max(0, snapshot_total - stored_total),
        regression=snapshot_total < stored_total,
    )

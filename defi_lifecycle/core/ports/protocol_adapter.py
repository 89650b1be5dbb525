"""Protocol adapter boundary.

This module defines the contract every supported order program implements.
Concrete adapters live in ``defi_lifecycle.protocols`` and are stateless
singletons, safe to share process-wide.
"""

from __future__ import annotations

import typing
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.correlation import ResolvedEvent
    from defi_lifecycle.core.domain.taxonomy import EventType, Protocol
    from defi_lifecycle.core.domain.types import RawEvent, RawInstruction, ResolveContext


class ProtocolAdapter(typing.Protocol):
    """Classifies one protocol's raw records into the canonical taxonomy.

    Unrecognized variant names are not errors: both classifiers return None
    for them. The only failure mode is a recognized event whose payload is
    malformed, reported by raising ClassificationError.
    """

    @property
    def protocol(self) -> Protocol:
        """Return the protocol this adapter handles."""

    def classify_instruction(self, ix: RawInstruction) -> EventType | None:
        """Return the event type of an instruction, or None if it is not lifecycle-relevant."""

    def classify_and_resolve_event(
        self,
        ev: RawEvent,
        ctx: ResolveContext,
    ) -> ResolvedEvent | None:
        """Classify an event and resolve its correlation and payload in one pass."""

"""Table-driven base for protocol adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from defi_lifecycle.core.domain.errors import ClassificationError
from defi_lifecycle.protocols.envelope import tagged

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.correlation import ResolvedEvent
    from defi_lifecycle.core.domain.taxonomy import EventType, Protocol
    from defi_lifecycle.core.domain.types import RawEvent, RawInstruction, ResolveContext
    from defi_lifecycle.protocols.envelope import TaggedVariants


class TaggedProtocolAdapter(ABC):
    """Adapter whose instruction and event name spaces are variant tables.

    Subclasses declare the two tables and implement ``_resolve`` for the
    typed payload of each event variant. The tables are the only place a
    variant name is spelled out.
    """

    protocol: ClassVar[Protocol]
    instruction_variants: ClassVar[TaggedVariants]
    event_variants: ClassVar[TaggedVariants]

    def classify_instruction(self, ix: RawInstruction) -> EventType | None:
        decoded = self.instruction_variants.decode(tagged(ix.instruction_name, ix.args))
        if decoded is None:
            return None
        name, _ = decoded
        return self.instruction_variants.event_type_of(name)

    def classify_and_resolve_event(
        self,
        ev: RawEvent,
        ctx: ResolveContext,
    ) -> ResolvedEvent | None:
        if ev.fields is None:
            return None
        decoded = self.event_variants.decode(ev.fields)
        if decoded is None:
            return None

        name, fields = decoded
        event_type = self.event_variants.event_type_of(name)
        if event_type is None:
            return None
        try:
            return self._resolve(name, event_type, fields, ev, ctx)
        except ClassificationError as exc:
            if exc.variant is not None:
                raise
            raise exc.with_origin(self.protocol.value, name) from exc

    @abstractmethod
    def _resolve(
        self,
        name: str,
        event_type: EventType,
        fields: Any,
        ev: RawEvent,
        ctx: ResolveContext,
    ) -> ResolvedEvent:
        """Build the resolved event for a decoded variant."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

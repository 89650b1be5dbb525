"""Adapter registry.

Maps a protocol tag to its stateless adapter singleton, and an on-chain
program id to a protocol tag.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from defi_lifecycle.core.domain.taxonomy import Protocol
from defi_lifecycle.protocols import dca, kamino, limit_v1, limit_v2
from defi_lifecycle.protocols.dca import DCA_ADAPTER
from defi_lifecycle.protocols.kamino import KAMINO_ADAPTER
from defi_lifecycle.protocols.limit_v1 import LIMIT_V1_ADAPTER
from defi_lifecycle.protocols.limit_v2 import LIMIT_V2_ADAPTER
from defi_lifecycle.protocols.registry_config import RegistryConfig

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.taxonomy import EventType
    from defi_lifecycle.core.domain.types import AccountInfo
    from defi_lifecycle.core.ports.protocol_adapter import ProtocolAdapter
    from defi_lifecycle.protocols.base import TaggedProtocolAdapter

LOGGER = logging.getLogger(__name__)

_TAGGED_ADAPTERS: dict[Protocol, TaggedProtocolAdapter] = {
    Protocol.DCA: DCA_ADAPTER,
    Protocol.LIMIT_V1: LIMIT_V1_ADAPTER,
    Protocol.LIMIT_V2: LIMIT_V2_ADAPTER,
    Protocol.KAMINO: KAMINO_ADAPTER,
}

ADAPTERS: dict[Protocol, ProtocolAdapter] = dict(_TAGGED_ADAPTERS)


def adapter_for(protocol: Protocol) -> ProtocolAdapter:
    """Return the shared adapter for ``protocol``."""
    return ADAPTERS[Protocol(protocol)]


def variant_catalog(protocol: Protocol) -> dict[str, dict[str, EventType | None]]:
    """Return every instruction and event variant a protocol recognizes.

    Ignored variants map to None. The catalog is read from the adapter's own
    variant tables.
    """
    adapter = _TAGGED_ADAPTERS[Protocol(protocol)]
    return {
        "instructions": adapter.instruction_variants.catalog(),
        "events": adapter.event_variants.catalog(),
    }


class AdapterRegistry:
    """Resolves program ids to protocols and adapters."""

    def __init__(self, config: RegistryConfig | None = None) -> None:
        self._config = config if config is not None else RegistryConfig()

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def protocol_for_program_id(self, program_id: str) -> Protocol | None:
        protocol = self._config.program_ids.get(program_id)
        if protocol is None:
            LOGGER.debug("unknown program id %s", program_id)
        return protocol

    def adapter_for_program_id(self, program_id: str) -> ProtocolAdapter | None:
        protocol = self.protocol_for_program_id(program_id)
        if protocol is None:
            return None
        return adapter_for(protocol)

    def adapter_for(self, protocol: Protocol) -> ProtocolAdapter:
        return adapter_for(protocol)

    def program_ids(self) -> dict[str, Protocol]:
        return dict(self._config.program_ids)


_ORDER_PDA_EXTRACTORS: dict[Protocol, Callable[[list[AccountInfo], str], str]] = {
    Protocol.DCA: dca.extract_order_pda,
    Protocol.LIMIT_V1: limit_v1.extract_order_pda,
    Protocol.LIMIT_V2: limit_v2.extract_order_pda,
    Protocol.KAMINO: kamino.extract_order_pda,
}


def extract_order_pda(
    protocol: Protocol, accounts: list[AccountInfo], instruction_name: str
) -> str:
    """Dispatch to the protocol's own order PDA extraction."""
    return _ORDER_PDA_EXTRACTORS[Protocol(protocol)](accounts, instruction_name)

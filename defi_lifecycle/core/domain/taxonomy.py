"""Canonical event taxonomy and supported order protocols.

Every protocol-specific instruction or event variant is mapped into exactly one
``EventType``. The set is closed: adapters must never produce anything else.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Known mainnet program ids
# ---------------------------------------------------------------------------

JUPITER_DCA_PROGRAM_ID: str = "DCA265Vj8a9CEuX1eb1LWRnDT7uK6q1xMipnNyatn23M"
JUPITER_LIMIT_ORDER_PROGRAM_ID: str = "jupoNjAxXgZ4rjzxzPMP4oxduvQsQtZzyknqvzYNrNu"
JUPITER_LIMIT_ORDER_2_PROGRAM_ID: str = "j1o2qRpjcyUwEvwtcfhEQefh773ZgjxcVRry7LDqg5X"
KAMINO_LIMIT_ORDER_PROGRAM_ID: str = "LiMoM9rMhrdYrfzUCxQppvxCSG1FcrUK9G8uLq4A1GF"


class Protocol(StrEnum):
    """Supported on-chain order programs."""

    DCA = "dca"
    LIMIT_V1 = "limit_v1"
    LIMIT_V2 = "limit_v2"
    KAMINO = "kamino"


MAINNET_PROGRAM_IDS: dict[str, Protocol] = {
    JUPITER_DCA_PROGRAM_ID: Protocol.DCA,
    JUPITER_LIMIT_ORDER_PROGRAM_ID: Protocol.LIMIT_V1,
    JUPITER_LIMIT_ORDER_2_PROGRAM_ID: Protocol.LIMIT_V2,
    KAMINO_LIMIT_ORDER_PROGRAM_ID: Protocol.KAMINO,
}


class EventType(StrEnum):
    """Canonical event kinds shared by all protocols."""

    CREATED = "created"
    FILL_INITIATED = "fill_initiated"
    FILL_COMPLETED = "fill_completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    CLOSED = "closed"
    FEE_COLLECTED = "fee_collected"
    WITHDRAWN = "withdrawn"
    DEPOSITED = "deposited"

    @property
    def label(self) -> str:
        """PascalCase name, e.g. ``FillCompleted``."""
        return "".join(part.capitalize() for part in self.value.split("_"))

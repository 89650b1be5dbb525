"""Raw record models consumed by protocol adapters.

These models describe the records produced by the upstream instruction and
event decoder. The core consumes them read-only; the JSON Schemas under
``defi_lifecycle/core/schemas`` are the source of truth for their shape.
"""

# pylint: disable=line-too-long,missing-class-docstring,missing-function-docstring
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Account descriptors
# ---------------------------------------------------------------------------


class AccountInfo(BaseModel):
    pubkey: str = Field(..., min_length=1)
    is_signer: bool = False
    is_writable: bool = False
    name: str | None = None

    model_config = ConfigDict(extra="ignore", frozen=True)


# ---------------------------------------------------------------------------
# Decoded instruction / event records
# ---------------------------------------------------------------------------


class RawInstruction(BaseModel):
    """
    A decoded program instruction.

    Notes:
    - Only instruction_name carries classification meaning; args may be any shape or absent.
    - accounts keeps the decoder's raw account descriptors; use parse_accounts() to type them.
    """

    instruction_name: str = Field(..., min_length=1)
    args: Any | None = None
    accounts: list[Any] | None = None

    id: int | None = None
    signature: str = ""
    instruction_index: int | None = Field(default=None, ge=0)
    program_id: str | None = None
    inner_program_id: str | None = None
    slot: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class RawEvent(BaseModel):
    """
    A decoded program event.

    fields is shaped by the decoder as a single-key tagged object:
    {"<VariantName>": {...}}.
    """

    event_name: str = Field(..., min_length=1)
    fields: Any | None = None

    id: int | None = None
    signature: str = ""
    event_index: int | None = Field(default=None, ge=0)
    program_id: str | None = None
    inner_program_id: str | None = None
    slot: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------------
# Per-call resolution context
# ---------------------------------------------------------------------------


class ResolveContext(BaseModel):
    """
    Information an adapter cannot derive from the record alone.

    pre_fetched_order_pdas maps a transaction signature to the order PDA found
    in that transaction's triggering instruction. Only Kamino consults it.
    """

    pre_fetched_order_pdas: dict[str, str] | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def empty(cls) -> ResolveContext:
        return cls()

    def order_pda_for(self, key: str) -> str | None:
        pdas: Mapping[str, str] = self.pre_fetched_order_pdas or {}
        return pdas.get(key)

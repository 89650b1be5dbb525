"""Jupiter Limit Order v2 adapter.

v2 has no expiry-specific cancel instruction. ``InitializeOrder`` args arrive
either nested under ``params`` or flat, depending on the decoder version.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from defi_lifecycle.core.domain.correlation import (
    NO_PAYLOAD,
    Correlated,
    LimitFill,
    ResolvedEvent,
)
from defi_lifecycle.core.domain.errors import ProtocolError
from defi_lifecycle.core.domain.taxonomy import EventType, Protocol
from defi_lifecycle.protocols.base import TaggedProtocolAdapter
from defi_lifecycle.protocols.envelope import (
    U16,
    U64,
    UNKNOWN_COUNTERPARTY,
    CreateMints,
    TaggedFields,
    TaggedVariants,
    Variant,
    account_at,
    checked_u16_to_i16,
    checked_u64_to_i64,
    find_account_by_name,
    named_create_mints,
)

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.types import AccountInfo, RawEvent, ResolveContext


class OrderKeyHolder(TaggedFields):
    order_key: str


class TradeEventFields(OrderKeyHolder):
    taker: str = UNKNOWN_COUNTERPARTY
    making_amount: U64
    taking_amount: U64
    remaining_making_amount: U64
    remaining_taking_amount: U64


class InitializeOrderParamsFields(TaggedFields):
    unique_id: U64 | None = None
    making_amount: U64
    taking_amount: U64
    expired_at: int | None = None
    fee_bps: U16 | None = None


INSTRUCTION_VARIANTS = TaggedVariants(
    Protocol.LIMIT_V2,
    [
        Variant("InitializeOrder", EventType.CREATED),
        Variant("PreFlashFillOrder", EventType.FILL_INITIATED),
        Variant("FlashFillOrder", EventType.FILL_COMPLETED),
        Variant("CancelOrder", EventType.CANCELLED),
        # Fee administration.
        Variant("UpdateFee", None),
        Variant("WithdrawFee", None),
    ],
)

EVENT_VARIANTS = TaggedVariants(
    Protocol.LIMIT_V2,
    [
        Variant("CreateOrderEvent", EventType.CREATED, OrderKeyHolder),
        Variant("CancelOrderEvent", EventType.CANCELLED, OrderKeyHolder),
        Variant("TradeEvent", EventType.FILL_COMPLETED, TradeEventFields),
    ],
)

_ORDER_PDA_INDEX: dict[str, int] = {
    "InitializeOrder": 2,
    "PreFlashFillOrder": 1,
    "FlashFillOrder": 2,
    "CancelOrder": 2,
}

_INPUT_MINT_INDEX = 7
_OUTPUT_MINT_INDEX = 8


class LimitV2Adapter(TaggedProtocolAdapter):
    """Jupiter Limit Order v2 adapter (stateless, shared as ``LIMIT_V2_ADAPTER``)."""

    protocol = Protocol.LIMIT_V2
    instruction_variants = INSTRUCTION_VARIANTS
    event_variants = EVENT_VARIANTS

    def _resolve(
        self,
        name: str,
        event_type: EventType,
        fields: Any,
        ev: RawEvent,
        ctx: ResolveContext,
    ) -> ResolvedEvent:
        correlation = Correlated(fields.order_key)
        if not isinstance(fields, TradeEventFields):
            return ResolvedEvent(event_type, correlation, NO_PAYLOAD)

        payload = LimitFill(
            in_amount=checked_u64_to_i64(fields.making_amount, "making_amount"),
            out_amount=checked_u64_to_i64(fields.taking_amount, "taking_amount"),
            remaining_in_amount=checked_u64_to_i64(
                fields.remaining_making_amount, "remaining_making_amount"
            ),
            counterparty=fields.taker,
        )
        return ResolvedEvent(event_type, correlation, payload)


LIMIT_V2_ADAPTER = LimitV2Adapter()


@dataclass(frozen=True, slots=True)
class LimitV2CreateArgs:
    unique_id: int | None
    making_amount: int
    taking_amount: int
    expired_at: int | None
    fee_bps: int | None


def extract_order_pda(accounts: list[AccountInfo], instruction_name: str) -> str:
    """Return the order PDA, preferring the named ``order`` account."""
    named = find_account_by_name(accounts, "order")
    if named is not None:
        return named.pubkey

    if instruction_name not in INSTRUCTION_VARIANTS:
        raise ProtocolError(f"unknown Limit v2 instruction: {instruction_name}")
    idx = _ORDER_PDA_INDEX.get(instruction_name)
    if idx is None:
        raise ProtocolError(f"Limit v2 instruction {instruction_name} has no order PDA")
    return account_at(
        accounts, idx, f"Limit v2 account index {idx} out of bounds for {instruction_name}"
    )


def extract_create_mints(accounts: list[AccountInfo]) -> CreateMints:
    named = named_create_mints(accounts)
    if named is not None:
        return named
    return CreateMints(
        input_mint=account_at(
            accounts,
            _INPUT_MINT_INDEX,
            f"Limit v2 input_mint index {_INPUT_MINT_INDEX} out of bounds",
        ),
        output_mint=account_at(
            accounts,
            _OUTPUT_MINT_INDEX,
            f"Limit v2 output_mint index {_OUTPUT_MINT_INDEX} out of bounds",
        ),
    )


def _parse_params(args: Any) -> InitializeOrderParamsFields:
    """Prefer the nested ``{"params": {...}}`` form, fall back to the flat form."""
    if isinstance(args, Mapping) and "params" in args:
        try:
            return InitializeOrderParamsFields.model_validate(args["params"])
        except ValidationError:
            pass
    try:
        return InitializeOrderParamsFields.model_validate(args)
    except ValidationError as exc:
        raise ProtocolError(f"failed to parse Limit v2 create args: {exc}") from exc


def parse_create_args(args: Any) -> LimitV2CreateArgs:
    """Parse ``InitializeOrder`` args into range-checked values."""
    params = _parse_params(args)
    return LimitV2CreateArgs(
        unique_id=(
            checked_u64_to_i64(params.unique_id, "unique_id")
            if params.unique_id is not None
            else None
        ),
        making_amount=checked_u64_to_i64(params.making_amount, "making_amount"),
        taking_amount=checked_u64_to_i64(params.taking_amount, "taking_amount"),
        expired_at=params.expired_at,
        fee_bps=(
            checked_u16_to_i16(params.fee_bps, "fee_bps") if params.fee_bps is not None else None
        ),
    )

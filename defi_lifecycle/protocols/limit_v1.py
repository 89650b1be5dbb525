"""Jupiter Limit Order v1 adapter.

v1 has a dedicated ``CancelExpiredOrder`` instruction, which classifies as
``Expired`` rather than ``Cancelled``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import AliasChoices, Field, ValidationError

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
    U64,
    UNKNOWN_COUNTERPARTY,
    CreateMints,
    TaggedFields,
    TaggedVariants,
    Variant,
    account_at,
    checked_u64_to_i64,
    find_account_by_name,
    named_create_mints,
)

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.types import AccountInfo, RawEvent, ResolveContext


class OrderKeyHolder(TaggedFields):
    order_key: str


class TradeEventFields(OrderKeyHolder):
    """v1 trade fill; accepts the v2 field names as aliases."""

    taker: str = UNKNOWN_COUNTERPARTY
    in_amount: U64 = Field(0, validation_alias=AliasChoices("in_amount", "making_amount"))
    out_amount: U64 = Field(0, validation_alias=AliasChoices("out_amount", "taking_amount"))
    remaining_in_amount: U64 = Field(
        0, validation_alias=AliasChoices("remaining_in_amount", "remaining_making_amount")
    )
    remaining_out_amount: U64 = Field(
        0, validation_alias=AliasChoices("remaining_out_amount", "remaining_taking_amount")
    )


class InitializeOrderFields(TaggedFields):
    making_amount: U64
    taking_amount: U64
    expired_at: int | None = None


INSTRUCTION_VARIANTS = TaggedVariants(
    Protocol.LIMIT_V1,
    [
        Variant("InitializeOrder", EventType.CREATED),
        Variant("PreFlashFillOrder", EventType.FILL_INITIATED),
        Variant("FillOrder", EventType.FILL_COMPLETED),
        Variant("FlashFillOrder", EventType.FILL_COMPLETED),
        Variant("CancelOrder", EventType.CANCELLED),
        Variant("CancelExpiredOrder", EventType.EXPIRED),
        # Fee administration.
        Variant("WithdrawFee", None),
        Variant("InitFee", None),
        Variant("UpdateFee", None),
    ],
)

EVENT_VARIANTS = TaggedVariants(
    Protocol.LIMIT_V1,
    [
        Variant("CreateOrderEvent", EventType.CREATED, OrderKeyHolder),
        Variant("CancelOrderEvent", EventType.CANCELLED, OrderKeyHolder),
        Variant("TradeEvent", EventType.FILL_COMPLETED, TradeEventFields),
    ],
)

_ORDER_PDA_INDEX: dict[str, int] = {
    "InitializeOrder": 2,
    "PreFlashFillOrder": 0,
    "FillOrder": 0,
    "FlashFillOrder": 0,
    "CancelOrder": 0,
    "CancelExpiredOrder": 0,
}

_INPUT_MINT_INDEX = 5
_OUTPUT_MINT_INDEX = 8


class LimitV1Adapter(TaggedProtocolAdapter):
    """Jupiter Limit Order v1 adapter (stateless, shared as ``LIMIT_V1_ADAPTER``)."""

    protocol = Protocol.LIMIT_V1
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
            in_amount=checked_u64_to_i64(fields.in_amount, "in_amount"),
            out_amount=checked_u64_to_i64(fields.out_amount, "out_amount"),
            remaining_in_amount=checked_u64_to_i64(
                fields.remaining_in_amount, "remaining_in_amount"
            ),
            counterparty=fields.taker,
        )
        return ResolvedEvent(event_type, correlation, payload)


LIMIT_V1_ADAPTER = LimitV1Adapter()


@dataclass(frozen=True, slots=True)
class LimitV1CreateArgs:
    making_amount: int
    taking_amount: int
    expired_at: int | None


def extract_order_pda(accounts: list[AccountInfo], instruction_name: str) -> str:
    """Return the order PDA, preferring the named ``order`` account."""
    named = find_account_by_name(accounts, "order")
    if named is not None:
        return named.pubkey

    if instruction_name not in INSTRUCTION_VARIANTS:
        raise ProtocolError(f"unknown Limit v1 instruction: {instruction_name}")
    idx = _ORDER_PDA_INDEX.get(instruction_name)
    if idx is None:
        raise ProtocolError(f"Limit v1 instruction {instruction_name} has no order PDA")
    return account_at(
        accounts, idx, f"Limit v1 account index {idx} out of bounds for {instruction_name}"
    )


def extract_create_mints(accounts: list[AccountInfo]) -> CreateMints:
    named = named_create_mints(accounts)
    if named is not None:
        return named
    return CreateMints(
        input_mint=account_at(
            accounts,
            _INPUT_MINT_INDEX,
            f"Limit v1 input_mint index {_INPUT_MINT_INDEX} out of bounds",
        ),
        output_mint=account_at(
            accounts,
            _OUTPUT_MINT_INDEX,
            f"Limit v1 output_mint index {_OUTPUT_MINT_INDEX} out of bounds",
        ),
    )


def parse_create_args(args: Any) -> LimitV1CreateArgs:
    """Parse ``InitializeOrder`` args into range-checked values."""
    try:
        fields = InitializeOrderFields.model_validate(args)
    except ValidationError as exc:
        raise ProtocolError(f"failed to parse Limit v1 create args: {exc}") from exc

    return LimitV1CreateArgs(
        making_amount=checked_u64_to_i64(fields.making_amount, "making_amount"),
        taking_amount=checked_u64_to_i64(fields.taking_amount, "taking_amount"),
        expired_at=fields.expired_at,
    )

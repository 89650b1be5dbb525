"""Kamino limit order adapter.

Kamino's ``OrderDisplayEvent`` does not name its order. The caller has to
resolve the order PDA from the transaction's triggering instruction ahead of
time and pass it in through ``ResolveContext`` (see ``prefetch_order_pdas``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from defi_lifecycle.core.domain.correlation import (
    NO_PAYLOAD,
    Correlated,
    KaminoDisplay,
    NotRequired,
    ResolvedEvent,
    Uncorrelated,
)
from defi_lifecycle.core.domain.errors import ClassificationError, ProtocolError
from defi_lifecycle.core.domain.order_state_machine import TerminalStatus
from defi_lifecycle.core.domain.taxonomy import EventType, Protocol
from defi_lifecycle.core.domain.types import ResolveContext
from defi_lifecycle.protocols.base import TaggedProtocolAdapter
from defi_lifecycle.protocols.envelope import (
    U8,
    U64,
    CreateMints,
    TaggedFields,
    TaggedVariants,
    Variant,
    account_at,
    checked_u64_to_i64,
    find_account_by_name,
    named_create_mints,
    parse_accounts,
)

if TYPE_CHECKING:
    from defi_lifecycle.core.domain.types import AccountInfo, RawEvent, RawInstruction

LOGGER = logging.getLogger(__name__)


class OrderDisplayEventFields(TaggedFields):
    remaining_input_amount: U64 = 0
    filled_output_amount: U64 = 0
    number_of_fills: U64 = 0
    status: U8 = 0


class CreateOrderFields(TaggedFields):
    input_amount: U64
    output_amount: U64
    order_type: U8 = 0


INSTRUCTION_VARIANTS = TaggedVariants(
    Protocol.KAMINO,
    [
        Variant("CreateOrder", EventType.CREATED),
        Variant("TakeOrder", EventType.FILL_COMPLETED),
        Variant("FlashTakeOrderStart", EventType.FILL_INITIATED),
        Variant("FlashTakeOrderEnd", EventType.FILL_COMPLETED),
        Variant("CloseOrderAndClaimTip", EventType.CLOSED),
        # Program administration and diagnostics.
        Variant("InitializeGlobalConfig", None),
        Variant("InitializeVault", None),
        Variant("UpdateGlobalConfig", None),
        Variant("UpdateGlobalConfigAdmin", None),
        Variant("WithdrawHostTip", None),
        Variant("LogUserSwapBalances", None),
    ],
)

EVENT_VARIANTS = TaggedVariants(
    Protocol.KAMINO,
    [
        Variant("OrderDisplayEvent", EventType.FILL_COMPLETED, OrderDisplayEventFields),
        Variant("UserSwapBalancesEvent", EventType.FILL_COMPLETED),
    ],
)

_ORDER_PDA_INDEX: dict[str, int] = {
    "CreateOrder": 3,
    "TakeOrder": 4,
    "FlashTakeOrderStart": 4,
    "FlashTakeOrderEnd": 4,
    "CloseOrderAndClaimTip": 1,
}

_INPUT_MINT_INDEX = 4
_OUTPUT_MINT_INDEX = 5


class KaminoDisplayStatus(IntEnum):
    OPEN = 0
    FILLED = 1
    CANCELLED = 2
    EXPIRED = 3


_DISPLAY_TERMINAL_STATUS: dict[KaminoDisplayStatus, TerminalStatus | None] = {
    KaminoDisplayStatus.OPEN: None,
    KaminoDisplayStatus.FILLED: TerminalStatus.COMPLETED,
    KaminoDisplayStatus.CANCELLED: TerminalStatus.CANCELLED,
    KaminoDisplayStatus.EXPIRED: TerminalStatus.EXPIRED,
}


def parse_display_status(status: int) -> KaminoDisplayStatus:
    try:
        return KaminoDisplayStatus(status)
    except ValueError as exc:
        raise ClassificationError(
            f"unknown Kamino display status code: {status}", field="status"
        ) from exc


def kamino_display_terminal_status(status: int) -> TerminalStatus | None:
    """Map an ``OrderDisplayEvent`` status code to a terminal status.

    Open orders map to None.
    """
    return _DISPLAY_TERMINAL_STATUS[parse_display_status(status)]


class KaminoAdapter(TaggedProtocolAdapter):
    """Kamino limit order adapter (stateless, shared as ``KAMINO_ADAPTER``)."""

    protocol = Protocol.KAMINO
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
        if not isinstance(fields, OrderDisplayEventFields):
            # Swap balance diagnostics carry no per-order state.
            return ResolvedEvent(event_type, NotRequired(), NO_PAYLOAD)

        order_pda = ctx.order_pda_for(ev.signature)
        if order_pda is None:
            correlation = Uncorrelated(
                f"cannot correlate Kamino OrderDisplayEvent for signature {ev.signature}"
            )
            return ResolvedEvent(event_type, correlation, NO_PAYLOAD)

        payload = KaminoDisplay(
            remaining_input_amount=checked_u64_to_i64(
                fields.remaining_input_amount, "remaining_input_amount"
            ),
            filled_output_amount=checked_u64_to_i64(
                fields.filled_output_amount, "filled_output_amount"
            ),
            terminal_status=kamino_display_terminal_status(fields.status),
        )
        return ResolvedEvent(event_type, Correlated(order_pda), payload)


KAMINO_ADAPTER = KaminoAdapter()


# ---------------------------------------------------------------------------
# Instruction helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class KaminoCreateArgs:
    input_amount: int
    output_amount: int
    order_type: int


def extract_order_pda(accounts: list[AccountInfo], instruction_name: str) -> str:
    """Return the order PDA, preferring the named ``order`` account."""
    named = find_account_by_name(accounts, "order")
    if named is not None:
        return named.pubkey

    if instruction_name not in INSTRUCTION_VARIANTS:
        raise ProtocolError(f"unknown Kamino instruction: {instruction_name}")
    idx = _ORDER_PDA_INDEX.get(instruction_name)
    if idx is None:
        raise ProtocolError(f"Kamino instruction {instruction_name} has no order PDA")
    return account_at(
        accounts, idx, f"Kamino account index {idx} out of bounds for {instruction_name}"
    )


def extract_create_mints(accounts: list[AccountInfo]) -> CreateMints:
    named = named_create_mints(accounts)
    if named is not None:
        return named
    return CreateMints(
        input_mint=account_at(
            accounts,
            _INPUT_MINT_INDEX,
            f"Kamino input_mint index {_INPUT_MINT_INDEX} out of bounds",
        ),
        output_mint=account_at(
            accounts,
            _OUTPUT_MINT_INDEX,
            f"Kamino output_mint index {_OUTPUT_MINT_INDEX} out of bounds",
        ),
    )


def parse_create_args(args: Any) -> KaminoCreateArgs:
    """Parse ``CreateOrder`` args into range-checked values."""
    try:
        fields = CreateOrderFields.model_validate(args)
    except ValidationError as exc:
        raise ProtocolError(f"failed to parse Kamino create args: {exc}") from exc

    return KaminoCreateArgs(
        input_amount=checked_u64_to_i64(fields.input_amount, "input_amount"),
        output_amount=checked_u64_to_i64(fields.output_amount, "output_amount"),
        order_type=fields.order_type,
    )


def prefetch_order_pdas(instructions: Iterable[RawInstruction]) -> ResolveContext:
    """Build the resolution context for a batch of Kamino instructions.

    Each order-bearing instruction contributes ``signature -> order PDA``.
    Instructions without accounts, whose variant names no order, or whose
    accounts cannot be read are skipped, so their events stay uncorrelated.
    When a signature carries several order-bearing instructions the first
    one wins.
    """
    pdas: dict[str, str] = {}
    for ix in instructions:
        if ix.accounts is None or ix.instruction_name not in _ORDER_PDA_INDEX:
            continue
        if ix.signature in pdas:
            continue
        try:
            accounts = parse_accounts(ix.accounts)
            pdas[ix.signature] = extract_order_pda(accounts, ix.instruction_name)
        except ProtocolError as exc:
            LOGGER.debug(
                "skipping %s (signature=%s): %s", ix.instruction_name, ix.signature, exc.reason
            )
    return ResolveContext(pre_fetched_order_pdas=pdas)

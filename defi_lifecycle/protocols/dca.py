"""Jupiter DCA adapter.

Variant names mirror the upstream decoder exactly. A DCA ``ClosedEvent``
does not carry its terminal status; it is derived from ``user_closed`` and
``unfilled_amount`` (see ``dca_closed_terminal_status``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from defi_lifecycle.core.domain.correlation import (
    NO_PAYLOAD,
    Correlated,
    DcaClosed,
    DcaFill,
    ResolvedEvent,
)
from defi_lifecycle.core.domain.errors import ProtocolError
from defi_lifecycle.core.domain.order_state_machine import TerminalStatus
from defi_lifecycle.core.domain.taxonomy import EventType, Protocol
from defi_lifecycle.protocols.base import TaggedProtocolAdapter
from defi_lifecycle.protocols.envelope import (
    U64,
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


# ---------------------------------------------------------------------------
# Typed event payloads
# ---------------------------------------------------------------------------


class DcaKeyHolder(TaggedFields):
    dca_key: str


class FilledEventFields(DcaKeyHolder):
    in_amount: U64
    out_amount: U64


class ClosedEventFields(DcaKeyHolder):
    user_closed: bool
    unfilled_amount: U64


class OpenDcaFields(TaggedFields):
    in_amount: U64
    in_amount_per_cycle: U64
    cycle_frequency: int
    min_out_amount: U64 | None = None
    max_out_amount: U64 | None = None
    start_at: int | None = None


# ---------------------------------------------------------------------------
# Variant tables
# ---------------------------------------------------------------------------

INSTRUCTION_VARIANTS = TaggedVariants(
    Protocol.DCA,
    [
        Variant("OpenDca", EventType.CREATED),
        Variant("OpenDcaV2", EventType.CREATED),
        Variant("InitiateFlashFill", EventType.FILL_INITIATED),
        Variant("InitiateDlmmFill", EventType.FILL_INITIATED),
        Variant("FulfillFlashFill", EventType.FILL_COMPLETED),
        Variant("FulfillDlmmFill", EventType.FILL_COMPLETED),
        Variant("CloseDca", EventType.CLOSED),
        Variant("EndAndClose", EventType.CLOSED),
        # Recognized, not lifecycle-relevant.
        Variant("Transfer", None),
        Variant("Deposit", None),
        Variant("Withdraw", None),
        Variant("WithdrawFees", None),
    ],
)

EVENT_VARIANTS = TaggedVariants(
    Protocol.DCA,
    [
        Variant("OpenedEvent", EventType.CREATED, DcaKeyHolder),
        Variant("FilledEvent", EventType.FILL_COMPLETED, FilledEventFields),
        Variant("ClosedEvent", EventType.CLOSED, ClosedEventFields),
        Variant("CollectedFeeEvent", EventType.FEE_COLLECTED, DcaKeyHolder),
        Variant("WithdrawEvent", EventType.WITHDRAWN, DcaKeyHolder),
        Variant("DepositEvent", EventType.DEPOSITED, DcaKeyHolder),
    ],
)

# Positional fallback of the DCA account per instruction.
_ORDER_PDA_INDEX: dict[str, int] = {
    "OpenDca": 0,
    "OpenDcaV2": 0,
    "InitiateFlashFill": 1,
    "InitiateDlmmFill": 1,
    "FulfillFlashFill": 1,
    "FulfillDlmmFill": 1,
    "CloseDca": 1,
    "EndAndClose": 1,
}

# Positional fallback of (input_mint, output_mint) per create instruction.
_CREATE_MINT_INDEXES: dict[str, tuple[int, int]] = {
    "OpenDca": (2, 3),
    "OpenDcaV2": (3, 4),
}


def dca_closed_terminal_status(user_closed: bool, unfilled_amount: int) -> TerminalStatus:
    """Derive a closed DCA order's terminal status.

    A user-initiated close wins over the amount-based inference.
    """
    if user_closed:
        return TerminalStatus.CANCELLED
    if unfilled_amount == 0:
        return TerminalStatus.COMPLETED
    return TerminalStatus.EXPIRED


class DcaAdapter(TaggedProtocolAdapter):
    """Jupiter DCA protocol adapter (stateless, shared as ``DCA_ADAPTER``)."""

    protocol = Protocol.DCA
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
        correlation = Correlated(fields.dca_key)

        if isinstance(fields, FilledEventFields):
            payload = DcaFill(
                in_amount=checked_u64_to_i64(fields.in_amount, "in_amount"),
                out_amount=checked_u64_to_i64(fields.out_amount, "out_amount"),
            )
            return ResolvedEvent(event_type, correlation, payload)

        if isinstance(fields, ClosedEventFields):
            unfilled_amount = checked_u64_to_i64(fields.unfilled_amount, "unfilled_amount")
            status = dca_closed_terminal_status(fields.user_closed, unfilled_amount)
            return ResolvedEvent(event_type, correlation, DcaClosed(status=status))

        return ResolvedEvent(event_type, correlation, NO_PAYLOAD)


DCA_ADAPTER = DcaAdapter()


# ---------------------------------------------------------------------------
# Instruction helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DcaCreateArgs:
    in_amount: int
    in_amount_per_cycle: int
    cycle_frequency: int
    min_out_amount: int | None
    max_out_amount: int | None
    start_at: int | None


def extract_order_pda(accounts: list[AccountInfo], instruction_name: str) -> str:
    """Return the DCA order PDA, preferring the named ``dca`` account."""
    named = find_account_by_name(accounts, "dca")
    if named is not None:
        return named.pubkey

    if instruction_name not in INSTRUCTION_VARIANTS:
        raise ProtocolError(f"unknown DCA instruction: {instruction_name}")
    idx = _ORDER_PDA_INDEX.get(instruction_name)
    if idx is None:
        raise ProtocolError(f"DCA instruction {instruction_name} has no order PDA")
    return account_at(
        accounts, idx, f"DCA account index {idx} out of bounds for {instruction_name}"
    )


def extract_create_mints(accounts: list[AccountInfo], instruction_name: str) -> CreateMints:
    named = named_create_mints(accounts)
    if named is not None:
        return named

    if instruction_name not in INSTRUCTION_VARIANTS:
        raise ProtocolError(f"unknown DCA instruction: {instruction_name}")
    indexes = _CREATE_MINT_INDEXES.get(instruction_name)
    if indexes is None:
        raise ProtocolError(f"not a DCA create instruction: {instruction_name}")

    input_idx, output_idx = indexes
    return CreateMints(
        input_mint=account_at(
            accounts, input_idx, f"DCA input_mint index {input_idx} out of bounds"
        ),
        output_mint=account_at(
            accounts, output_idx, f"DCA output_mint index {output_idx} out of bounds"
        ),
    )


def parse_create_args(args: Any) -> DcaCreateArgs:
    """Parse ``OpenDca``/``OpenDcaV2`` args into range-checked values."""
    try:
        fields = OpenDcaFields.model_validate(args)
    except ValidationError as exc:
        raise ProtocolError(f"failed to parse DCA create args: {exc}") from exc

    return DcaCreateArgs(
        in_amount=checked_u64_to_i64(fields.in_amount, "in_amount"),
        in_amount_per_cycle=checked_u64_to_i64(fields.in_amount_per_cycle, "in_amount_per_cycle"),
        cycle_frequency=fields.cycle_frequency,
        min_out_amount=(
            checked_u64_to_i64(fields.min_out_amount, "min_out_amount")
            if fields.min_out_amount is not None
            else None
        ),
        max_out_amount=(
            checked_u64_to_i64(fields.max_out_amount, "max_out_amount")
            if fields.max_out_amount is not None
            else None
        ),
        start_at=fields.start_at,
    )

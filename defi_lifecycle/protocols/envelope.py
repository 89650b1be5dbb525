"""Shared record-parsing helpers for protocol adapters.

The decoder upstream of this package shapes every instruction and event as a
single-key tagged object: ``{"<VariantName>": {...}}``. ``TaggedVariants``
decodes such an object against a protocol's variant table in one step,
selecting the variant and validating its fields together.

All helpers here are pure functions (or immutable tables) with no shared
mutable state, so adapters can compose them freely.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from defi_lifecycle.core.domain.errors import ClassificationError, ProtocolError
from defi_lifecycle.core.domain.taxonomy import EventType, Protocol
from defi_lifecycle.core.domain.types import AccountInfo

I64_MAX: int = (1 << 63) - 1
I16_MAX: int = (1 << 15) - 1
U64_MAX: int = (1 << 64) - 1
U16_MAX: int = (1 << 16) - 1
U8_MAX: int = (1 << 8) - 1

# On-chain unsigned integer widths as decoded from JSON.
U64 = Annotated[int, Field(ge=0, le=U64_MAX)]
U16 = Annotated[int, Field(ge=0, le=U16_MAX)]
U8 = Annotated[int, Field(ge=0, le=U8_MAX)]

UNKNOWN_COUNTERPARTY: str = "unknown"


class TaggedFields(BaseModel):
    """Base for typed variant payloads.

    Extra fields emitted by the decoder are ignored; the declared ones are
    validated strictly (no string-to-int coercion).
    """

    model_config = ConfigDict(extra="ignore", frozen=True, strict=True)


# ---------------------------------------------------------------------------
# Variant tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Variant:
    """One member of a protocol's instruction or event name space.

    ``event_type`` is None for variants that are recognized but deliberately
    ignored (administrative and fee instructions). ``shape`` is the payload
    type; ``Any`` accepts every payload, including an absent one.
    """

    name: str
    event_type: EventType | None
    shape: Any = Any


class TaggedVariants:
    """Immutable table of tagged variants for one protocol name space."""

    def __init__(self, protocol: Protocol, variants: Iterable[Variant]) -> None:
        self._protocol = protocol
        self._variants: dict[str, Variant] = {}
        for variant in variants:
            if variant.name in self._variants:
                raise ValueError(f"duplicate variant {variant.name!r} for {protocol}")
            self._variants[variant.name] = variant
        self._adapters: dict[str, TypeAdapter[Any]] = {
            name: TypeAdapter(variant.shape) for name, variant in self._variants.items()
        }

    @property
    def protocol(self) -> Protocol:
        return self._protocol

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._variants)

    def __contains__(self, name: object) -> bool:
        return name in self._variants

    def event_type_of(self, name: str) -> EventType | None:
        variant = self._variants.get(name)
        return variant.event_type if variant is not None else None

    def catalog(self) -> dict[str, EventType | None]:
        """Return ``{variant name: event type}`` in declaration order."""
        return {name: variant.event_type for name, variant in self._variants.items()}

    def decode(self, value: Any) -> tuple[str, Any] | None:
        """Decode a tagged object into ``(variant name, typed payload)``.

        Returns None when ``value`` is not a tagged object of this name space.
        Raises ClassificationError when the tag is known but the payload is
        malformed, or when a known tag is mixed with other top-level keys.
        """
        if not isinstance(value, Mapping) or not value:
            return None

        if len(value) != 1:
            known = [key for key in value if key in self._variants]
            if not known:
                return None
            raise ClassificationError(
                f"expected a single-key tagged object, got keys {sorted(map(str, value))}",
                protocol=self._protocol.value,
                variant=str(known[0]),
            )

        ((name, inner),) = value.items()
        adapter = self._adapters.get(name)
        if adapter is None:
            return None

        try:
            return name, adapter.validate_python(inner)
        except ValidationError as exc:
            field = _first_error_field(exc)
            raise ClassificationError(
                f"failed to parse {self._protocol.value} {name} payload: "
                f"{exc.error_count()} validation error(s), first at {field!r}",
                protocol=self._protocol.value,
                variant=name,
                field=field,
            ) from exc


def _first_error_field(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "<root>"
    loc = errors[0].get("loc", ())
    return ".".join(str(part) for part in loc) or "<root>"


def tagged(name: str, payload: Any) -> dict[str, Any]:
    """Build a single-key tagged object."""
    return {name: payload}


def unwrap_named(value: Any) -> Any:
    """Unwrap ``{"Name": {...}}`` into ``{...}``; other values pass through."""
    if isinstance(value, Mapping) and len(value) == 1:
        return next(iter(value.values()))
    return value


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def parse_accounts(value: Any) -> list[AccountInfo]:
    """Type the decoder's raw account descriptors."""
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise ProtocolError("accounts is not an array")

    result: list[AccountInfo] = []
    for item in value:
        if isinstance(item, AccountInfo):
            result.append(item)
            continue
        if not isinstance(item, Mapping) or not isinstance(item.get("pubkey"), str):
            raise ProtocolError("account missing pubkey")
        result.append(
            AccountInfo(
                pubkey=item["pubkey"],
                is_signer=item.get("is_signer") is True,
                is_writable=item.get("is_writable") is True,
                name=item.get("name") if isinstance(item.get("name"), str) else None,
            )
        )
    return result


def find_signer(accounts: Iterable[AccountInfo]) -> str | None:
    for account in accounts:
        if account.is_signer:
            return account.pubkey
    return None


def find_account_by_name(accounts: Iterable[AccountInfo], name: str) -> AccountInfo | None:
    for account in accounts:
        if account.name == name:
            return account
    return None


@dataclass(frozen=True, slots=True)
class CreateMints:
    """Input and output mints of an order-creating instruction."""

    input_mint: str
    output_mint: str


def named_create_mints(accounts: Iterable[AccountInfo]) -> CreateMints | None:
    """Return the mints from named ``input_mint``/``output_mint`` accounts, if both exist."""
    accounts = list(accounts)
    input_account = find_account_by_name(accounts, "input_mint")
    output_account = find_account_by_name(accounts, "output_mint")
    if input_account is None or output_account is None:
        return None
    return CreateMints(input_mint=input_account.pubkey, output_mint=output_account.pubkey)


def account_at(accounts: list[AccountInfo], index: int, error: str) -> str:
    """Return the pubkey at a positional index or raise ProtocolError(error)."""
    if 0 <= index < len(accounts):
        return accounts[index].pubkey
    raise ProtocolError(error)


# ---------------------------------------------------------------------------
# Numeric narrowing
# ---------------------------------------------------------------------------


def checked_u64_to_i64(value: int, field: str) -> int:
    """Narrow an on-chain u64 into the signed 64-bit range used downstream."""
    if value < 0 or value > I64_MAX:
        raise ClassificationError(f"{field} value {value} does not fit in i64", field=field)
    return value


def checked_u16_to_i16(value: int, field: str) -> int:
    if value < 0 or value > I16_MAX:
        raise ClassificationError(f"{field} value {value} does not fit in i16", field=field)
    return value

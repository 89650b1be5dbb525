"""
Semantic test: variant catalog reachability.

Invariant:
Every lifecycle-relevant variant in a protocol's catalog classifies to its
catalogued event type, every ignored variant classifies to None, and names
outside the catalog classify to None. The catalog is read from the
adapters' own tables, so this suite follows any table change.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

from typing import Any

import pytest

from defi_lifecycle.core.domain.taxonomy import EventType, Protocol
from defi_lifecycle.core.domain.types import RawEvent, RawInstruction, ResolveContext
from defi_lifecycle.protocols.registry import adapter_for, variant_catalog

# Minimal well-formed payloads per event variant.
EVENT_FIXTURES: dict[Protocol, dict[str, Any]] = {
    Protocol.DCA: {
        "OpenedEvent": {"dca_key": "k"},
        "FilledEvent": {"dca_key": "k", "in_amount": 1, "out_amount": 1},
        "ClosedEvent": {"dca_key": "k", "user_closed": False, "unfilled_amount": 0},
        "CollectedFeeEvent": {"dca_key": "k"},
        "WithdrawEvent": {"dca_key": "k"},
        "DepositEvent": {"dca_key": "k"},
    },
    Protocol.LIMIT_V1: {
        "CreateOrderEvent": {"order_key": "k"},
        "CancelOrderEvent": {"order_key": "k"},
        "TradeEvent": {"order_key": "k"},
    },
    Protocol.LIMIT_V2: {
        "CreateOrderEvent": {"order_key": "k"},
        "CancelOrderEvent": {"order_key": "k"},
        "TradeEvent": {
            "order_key": "k",
            "making_amount": 1,
            "taking_amount": 1,
            "remaining_making_amount": 0,
            "remaining_taking_amount": 0,
        },
    },
    Protocol.KAMINO: {
        "OrderDisplayEvent": {},
        "UserSwapBalancesEvent": None,
    },
}


def _instruction_cases() -> list[tuple[Protocol, str, EventType | None]]:
    return [
        (protocol, name, event_type)
        for protocol in Protocol
        for name, event_type in variant_catalog(protocol)["instructions"].items()
    ]


def _event_cases() -> list[tuple[Protocol, str, EventType | None]]:
    return [
        (protocol, name, event_type)
        for protocol in Protocol
        for name, event_type in variant_catalog(protocol)["events"].items()
    ]


@pytest.mark.parametrize(("protocol", "name", "event_type"), _instruction_cases())
def test_catalogued_instruction_classifies(
    protocol: Protocol, name: str, event_type: EventType | None
) -> None:
    ix = RawInstruction(instruction_name=name, args=None)
    assert adapter_for(protocol).classify_instruction(ix) == event_type


@pytest.mark.parametrize(("protocol", "name", "event_type"), _event_cases())
def test_catalogued_event_resolves(
    protocol: Protocol, name: str, event_type: EventType | None
) -> None:
    ev = RawEvent(event_name=name, fields={name: EVENT_FIXTURES[protocol][name]})

    resolved = adapter_for(protocol).classify_and_resolve_event(ev, ResolveContext.empty())

    assert event_type is not None
    assert resolved is not None
    assert resolved.event_type is event_type


@pytest.mark.parametrize("protocol", list(Protocol))
def test_fixtures_cover_every_event_variant(protocol: Protocol) -> None:
    assert set(EVENT_FIXTURES[protocol]) == set(variant_catalog(protocol)["events"])


@pytest.mark.parametrize("protocol", list(Protocol))
@pytest.mark.parametrize("name", ["", "NotAVariant", "openDca", "TradeEvent2"])
def test_unknown_names_are_none(protocol: Protocol, name: str) -> None:
    adapter = adapter_for(protocol)
    ev = RawEvent(event_name="x", fields={name: {}})

    assert adapter.classify_and_resolve_event(ev, ResolveContext.empty()) is None
    if name:
        assert adapter.classify_instruction(RawInstruction(instruction_name=name)) is None


@pytest.mark.parametrize("protocol", list(Protocol))
def test_catalog_only_uses_taxonomy_members(protocol: Protocol) -> None:
    catalog = variant_catalog(protocol)
    for event_type in [*catalog["instructions"].values(), *catalog["events"].values()]:
        assert event_type is None or isinstance(event_type, EventType)

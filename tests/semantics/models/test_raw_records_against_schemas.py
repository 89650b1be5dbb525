"""Schema conformance tests for raw record Pydantic models.

This test suite validates that the raw record models both accept valid
inputs and reject invalid ones in alignment with their JSON Schemas under
defi_lifecycle/core/schemas. Pydantic must be at least as strict as the
schema for every rejected case.
"""

# pylint: disable=line-too-long,missing-function-docstring
# pylint: disable=redefined-outer-name,global-statement
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate as jsonschema_validate
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from defi_lifecycle.core.domain.order_state_machine import LifecycleTransition
from defi_lifecycle.core.domain.types import RawEvent, RawInstruction

SCHEMA_REGISTRY = Registry()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load_schema(name: str) -> dict:
    """
    Load a JSON schema shipped with the package and register it by $id.
    """
    global SCHEMA_REGISTRY

    root = Path(__file__).parent.parent.parent.parent
    schema_path = root / "defi_lifecycle" / "core" / "schemas" / name

    with schema_path.open("r", encoding="utf-8") as f:
        schema = json.load(f)

    schema_id = schema.get("$id")
    if isinstance(schema_id, str) and schema_id:
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        SCHEMA_REGISTRY = SCHEMA_REGISTRY.with_resource(schema_id, resource)

    return schema


def dump_for_jsonschema(model: Any) -> Any:
    """
    Dump a Pydantic value to JSON-compatible data, omitting None values.
    """
    if hasattr(model, "model_dump"):
        return model.model_dump(mode="json", exclude_none=True)
    return model


def pydantic_validate(model_type: Any, data: dict[str, Any]) -> Any:
    return TypeAdapter(model_type).validate_python(data)


def assert_pydantic_then_schema_ok(model_type: Any, data: dict[str, Any], schema: dict[str, Any]) -> Any:
    obj = pydantic_validate(model_type, data)
    instance = dump_for_jsonschema(obj)
    jsonschema_validate(instance=instance, schema=schema, registry=SCHEMA_REGISTRY)
    return instance


def assert_schema_invalid_but_pydantic_rejects(model_type: Any, data: dict[str, Any], schema: dict[str, Any]) -> None:
    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=schema, registry=SCHEMA_REGISTRY)

    with pytest.raises(PydanticValidationError):
        pydantic_validate(model_type, data)


def mk_accounts(*pubkeys: str) -> list[dict[str, Any]]:
    return [{"pubkey": p, "is_signer": i == 0, "is_writable": True} for i, p in enumerate(pubkeys)]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module", autouse=True)
def _load_common_schema() -> None:
    load_schema("common.schema.json")


@pytest.fixture(scope="module")
def raw_instruction_schema() -> dict:
    return load_schema("raw_instruction.schema.json")


@pytest.fixture(scope="module")
def raw_event_schema() -> dict:
    return load_schema("raw_event.schema.json")


@pytest.fixture(scope="module")
def transition_schema() -> dict:
    return load_schema("lifecycle_transition.schema.json")


# ---------------------------------------------------------------------------
# RawInstruction
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "data",
    [
        {"instruction_name": "OpenDcaV2"},
        {"instruction_name": "OpenDcaV2", "args": None, "accounts": None},
        {
            "instruction_name": "OpenDcaV2",
            "args": {"in_amount": 1000, "in_amount_per_cycle": 100, "cycle_frequency": 60},
            "accounts": mk_accounts("user", "payer", "dca"),
            "id": 1,
            "signature": "5sig",
            "instruction_index": 0,
            "program_id": "DCA265Vj8a9CEuX1eb1LWRnDT7uK6q1xMipnNyatn23M",
            "inner_program_id": "DCA265Vj8a9CEuX1eb1LWRnDT7uK6q1xMipnNyatn23M",
            "slot": 250_000_000,
        },
    ],
)
def test_raw_instruction_valid(data, raw_instruction_schema) -> None:
    assert_pydantic_then_schema_ok(RawInstruction, data, raw_instruction_schema)


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"instruction_name": ""},
        {"instruction_name": 5},
        {"instruction_name": "OpenDca", "slot": -1},
        {"instruction_name": "OpenDca", "instruction_index": -3},
        {"instruction_name": "OpenDca", "accounts": "not-a-list"},
        {"instruction_name": "OpenDca", "unexpected": 1},
    ],
)
def test_raw_instruction_invalid(data, raw_instruction_schema) -> None:
    assert_schema_invalid_but_pydantic_rejects(RawInstruction, data, raw_instruction_schema)


# ---------------------------------------------------------------------------
# RawEvent
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "data",
    [
        {"event_name": "FilledEvent"},
        {
            "event_name": "FilledEvent",
            "fields": {"FilledEvent": {"dca_key": "k", "in_amount": 1, "out_amount": 1}},
            "signature": "5sig",
            "event_index": 2,
            "slot": 1,
        },
    ],
)
def test_raw_event_valid(data, raw_event_schema) -> None:
    assert_pydantic_then_schema_ok(RawEvent, data, raw_event_schema)


@pytest.mark.parametrize(
    "data",
    [
        {"fields": {"FilledEvent": {}}},
        {"event_name": ""},
        {"event_name": "FilledEvent", "event_index": -1},
        {"event_name": "FilledEvent", "extra_field": True},
    ],
)
def test_raw_event_invalid(data, raw_event_schema) -> None:
    assert_schema_invalid_but_pydantic_rejects(RawEvent, data, raw_event_schema)


def test_raw_records_are_frozen() -> None:
    ev = RawEvent(event_name="FilledEvent")
    with pytest.raises(PydanticValidationError):
        ev.event_name = "Other"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# LifecycleTransition
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "data",
    [
        {"kind": "create"},
        {"kind": "fill_delta"},
        {"kind": "close", "status": "completed"},
        {"kind": "close", "status": "cancelled"},
        {"kind": "close", "status": "expired"},
        {"kind": "metadata_only"},
    ],
)
def test_transition_valid(data, transition_schema) -> None:
    assert assert_pydantic_then_schema_ok(LifecycleTransition, data, transition_schema) == data


@pytest.mark.parametrize(
    "data",
    [
        {"kind": "close"},
        {"kind": "close", "status": "active"},
        {"kind": "reopen"},
        {"kind": "create", "status": "completed"},
    ],
)
def test_transition_invalid(data, transition_schema) -> None:
    assert_schema_invalid_but_pydantic_rejects(LifecycleTransition, data, transition_schema)

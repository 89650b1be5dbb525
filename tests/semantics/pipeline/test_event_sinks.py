"""
Semantic test: event bus sinks.

Invariant:
FileRecorderSink writes one JSON object per emitted event and survives
repeated close(). LoggingEventSink logs each event under its class name.
EventBus accepts only the pipeline's domain events and refuses emits once
closed.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

import json
import logging

import pytest

from defi_lifecycle.core.domain.taxonomy import Protocol
from defi_lifecycle.core.domain.types import RawEvent, ResolveContext
from defi_lifecycle.core.events.event_bus import EventBus
from defi_lifecycle.core.events.events import ClassificationFailedEvent
from defi_lifecycle.core.events.sinks.file_recorder import FileRecorderSink
from defi_lifecycle.core.events.sinks.null_event_bus import NullEventBus
from defi_lifecycle.core.events.sinks.sink_logging import LoggingEventSink
from defi_lifecycle.core.pipeline import LifecyclePipeline


def _opened_event() -> RawEvent:
    return RawEvent(
        event_name="OpenedEvent",
        fields={"OpenedEvent": {"dca_key": "dca-7"}},
        signature="sig-7",
    )


def test_file_recorder_writes_json_lines(tmp_path) -> None:
    path = tmp_path / "events" / "lifecycle.jsonl"
    bus = EventBus(sinks=[FileRecorderSink(path)])

    LifecyclePipeline(bus).process_event(
        Protocol.DCA, _opened_event(), ResolveContext.empty(), None
    )
    bus.close()
    bus.close()

    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["event"] for r in records] == [
        "RecordClassifiedEvent",
        "TransitionDecidedEvent",
    ]
    assert records[0]["event_type"] == "created"
    assert records[0]["order_pda"] == "dca-7"
    assert records[1]["transition"] == "Create"
    assert records[1]["decision"] == "apply"


def test_logging_sink_logs_event_names(caplog) -> None:
    logger = logging.getLogger("bus")
    caplog.set_level(logging.INFO, logger="bus")

    with EventBus(sinks=[LoggingEventSink(logger)]) as bus:
        LifecyclePipeline(bus).process_event(
            Protocol.DCA, _opened_event(), ResolveContext.empty(), None
        )

    messages = [record.getMessage() for record in caplog.records if record.name == "bus"]
    assert messages == [
        "domain_event RecordClassifiedEvent",
        "domain_event TransitionDecidedEvent",
    ]


def test_bus_rejects_foreign_events() -> None:
    bus = EventBus()

    with pytest.raises(TypeError, match="not a lifecycle domain event: dict"):
        bus.emit({"event_type": "created"})
    assert bus.emitted_counts() == {}


def test_bus_refuses_emit_after_close() -> None:
    bus = EventBus()
    bus.close()

    with pytest.raises(RuntimeError, match="closed EventBus"):
        bus.emit(
            ClassificationFailedEvent(
                protocol="dca",
                variant_name="FilledEvent",
                field="in_amount",
                reason="bad payload",
                signature="sig-x",
            )
        )


def test_null_bus_counts_and_drops_events() -> None:
    bus = NullEventBus()

    LifecyclePipeline(bus).process_event(
        Protocol.DCA, _opened_event(), ResolveContext.empty(), None
    )

    assert bus.emitted_counts() == {"RecordClassifiedEvent": 1, "TransitionDecidedEvent": 1}

"""Public API for the defi_lifecycle package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Taxonomy and raw records
# ----------------------------------------------------------------------
from defi_lifecycle.core.domain.correlation import (
    NO_PAYLOAD,
    Correlated,
    CorrelationOutcome,
    DcaClosed,
    DcaFill,
    EventPayload,
    KaminoDisplay,
    LimitFill,
    NoPayload,
    NotRequired,
    ResolvedEvent,
    Uncorrelated,
)
from defi_lifecycle.core.domain.errors import ClassificationError, ProtocolError

# ----------------------------------------------------------------------
# Transition mapping and lifecycle engine
# ----------------------------------------------------------------------
from defi_lifecycle.core.domain.mapping import (
    event_type_to_transition,
    resolved_event_to_transition,
    transition_target,
    transition_to_display,
)
from defi_lifecycle.core.domain.order_state_machine import (
    CloseTransition,
    CreateTransition,
    FillDeltaTransition,
    LifecycleTransition,
    MetadataOnlyTransition,
    SnapshotDelta,
    TerminalStatus,
    TransitionDecision,
    decide_transition,
    is_terminal,
    next_status,
    normalize_snapshot_to_delta,
)
from defi_lifecycle.core.domain.taxonomy import MAINNET_PROGRAM_IDS, EventType, Protocol
from defi_lifecycle.core.domain.types import AccountInfo, RawEvent, RawInstruction, ResolveContext

# ----------------------------------------------------------------------
# Events and pipeline
# ----------------------------------------------------------------------
from defi_lifecycle.core.events.event_bus import EventBus
from defi_lifecycle.core.pipeline import LifecyclePipeline, PipelineOutcome
from defi_lifecycle.core.ports.protocol_adapter import ProtocolAdapter

# ----------------------------------------------------------------------
# Protocol adapters and registry
# ----------------------------------------------------------------------
from defi_lifecycle.protocols.dca import DCA_ADAPTER, dca_closed_terminal_status
from defi_lifecycle.protocols.kamino import (
    KAMINO_ADAPTER,
    kamino_display_terminal_status,
    prefetch_order_pdas,
)
from defi_lifecycle.protocols.limit_v1 import LIMIT_V1_ADAPTER
from defi_lifecycle.protocols.limit_v2 import LIMIT_V2_ADAPTER
from defi_lifecycle.protocols.registry import AdapterRegistry, adapter_for, variant_catalog
from defi_lifecycle.protocols.registry_config import RegistryConfig

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Taxonomy
    "EventType",
    "Protocol",
    "MAINNET_PROGRAM_IDS",

    # Raw records
    "AccountInfo",
    "RawInstruction",
    "RawEvent",
    "ResolveContext",

    # Correlation and payloads
    "CorrelationOutcome",
    "Correlated",
    "Uncorrelated",
    "NotRequired",
    "EventPayload",
    "NoPayload",
    "NO_PAYLOAD",
    "DcaFill",
    "DcaClosed",
    "LimitFill",
    "KaminoDisplay",
    "ResolvedEvent",

    # Errors
    "ProtocolError",
    "ClassificationError",

    # Adapters
    "ProtocolAdapter",
    "DCA_ADAPTER",
    "LIMIT_V1_ADAPTER",
    "LIMIT_V2_ADAPTER",
    "KAMINO_ADAPTER",
    "adapter_for",
    "variant_catalog",
    "AdapterRegistry",
    "RegistryConfig",
    "dca_closed_terminal_status",
    "kamino_display_terminal_status",
    "prefetch_order_pdas",

    # Lifecycle
    "TerminalStatus",
    "LifecycleTransition",
    "CreateTransition",
    "FillDeltaTransition",
    "CloseTransition",
    "MetadataOnlyTransition",
    "TransitionDecision",
    "SnapshotDelta",
    "decide_transition",
    "is_terminal",
    "next_status",
    "normalize_snapshot_to_delta",
    "event_type_to_transition",
    "resolved_event_to_transition",
    "transition_to_display",
    "transition_target",

    # Pipeline
    "EventBus",
    "LifecyclePipeline",
    "PipelineOutcome",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("defi-order-lifecycle")
except PackageNotFoundError:
    __version__ = "0.0.0"

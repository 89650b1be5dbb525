"""Error types raised by protocol adapters."""

from __future__ import annotations


class ProtocolError(Exception):
    """A record or account list does not have the shape a protocol requires."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ClassificationError(ProtocolError):
    """A recognized variant whose payload failed required-field validation.

    Unknown variant names are never errors; adapters return ``None`` for them.
    """

    def __init__(
        self,
        reason: str,
        *,
        protocol: str | None = None,
        variant: str | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(reason)
        self.protocol = protocol
        self.variant = variant
        self.field = field

    def with_origin(self, protocol: str, variant: str) -> ClassificationError:
        """Return a copy tagged with the protocol and variant it came from."""
        return ClassificationError(
            f"{protocol} {variant}: {self.reason}",
            protocol=protocol,
            variant=variant,
            field=self.field,
        )

"""Program id configuration for the adapter registry."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from defi_lifecycle.core.domain.taxonomy import MAINNET_PROGRAM_IDS, Protocol


class RegistryConfig(BaseModel):
    """Maps on-chain program ids to the protocol whose adapter handles them.

    Defaults to the known mainnet deployments. Forks and devnet deployments
    are registered by adding entries; several ids may share one protocol.
    """

    program_ids: dict[str, Protocol] = Field(default_factory=lambda: dict(MAINNET_PROGRAM_IDS))

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_json_obj(cls, registry_obj: dict[str, Any]) -> RegistryConfig:
        """Create a RegistryConfig instance from a JSON-compatible object."""
        return cls.model_validate(registry_obj)

    @classmethod
    def with_extra_program_ids(cls, extra: dict[str, Protocol]) -> RegistryConfig:
        """Mainnet ids plus ``extra``; entries in ``extra`` win on conflict."""
        return cls(program_ids={**MAINNET_PROGRAM_IDS, **extra})

    @model_validator(mode="after")
    def validate_program_ids(self) -> RegistryConfig:
        if not self.program_ids:
            raise ValueError("program_ids must not be empty")
        for program_id in self.program_ids:
            if not program_id or program_id != program_id.strip():
                raise ValueError(f"invalid program id: {program_id!r}")
        return self

    def protocols(self) -> frozenset[Protocol]:
        """Return the protocols reachable through at least one program id."""
        return frozenset(self.program_ids.values())

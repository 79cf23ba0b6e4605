"""Capability contracts consumed by the provisioning orchestrator."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from provisioner.modules.participants.models import (
    Asset,
    ContractDefinition,
    DataPlaneInstance,
    ParticipantContext,
    PolicyDefinition,
)
from provisioner.modules.participants.result import ServiceResult


class ParticipantContextService(Protocol):
    """Identity store; participant context ids are unique (first writer wins)."""

    async def create_participant_context(
        self, context: ParticipantContext
    ) -> ServiceResult[ParticipantContext]:
        """Persist a new participant context, ``CONFLICT`` if the id exists."""

    async def get_participant_context(
        self, participant_context_id: str
    ) -> ServiceResult[ParticipantContext]:
        """Read a participant context, ``NOT_FOUND`` if unknown."""


class ParticipantConfigService(Protocol):
    async def save(
        self, participant_context_id: str, config: Mapping[str, str]
    ) -> ServiceResult[None]:
        """Persist configuration entries scoped to one participant."""


class Vault(Protocol):
    async def store_secret(self, alias: str, value: str) -> ServiceResult[None]:
        """Store secret material under an alias."""

    async def resolve_secret(self, alias: str) -> str | None:
        """Return the secret stored under ``alias`` or ``None``."""


class DataPlaneSelectorService(Protocol):
    async def add_instance(self, instance: DataPlaneInstance) -> ServiceResult[None]:
        """Register a data plane; may reject unknown participant references."""


class AssetService(Protocol):
    async def create(self, asset: Asset) -> ServiceResult[Asset]: ...


class PolicyDefinitionService(Protocol):
    async def create(self, policy: PolicyDefinition) -> ServiceResult[PolicyDefinition]: ...


class ContractDefinitionService(Protocol):
    async def create(
        self, contract_definition: ContractDefinition
    ) -> ServiceResult[ContractDefinition]: ...

"""
In-process implementations of the provisioning capabilities.

Used by the default wiring when no remote control plane is configured, and
by the test-suite. Uniqueness checks happen without an ``await`` between
lookup and insert, so concurrent creates of the same id resolve to exactly
one winner.
"""

from __future__ import annotations

from collections.abc import Mapping

from provisioner.core.encryption import (
    EncryptionError,
    SecretEncryptor,
    is_encrypted_secret_value,
)
from provisioner.core.logging import get_logger
from provisioner.modules.participants.models import (
    Asset,
    ContractDefinition,
    DataPlaneInstance,
    ParticipantContext,
    PolicyDefinition,
)
from provisioner.modules.participants.result import ServiceResult

logger = get_logger(__name__)


class InMemoryParticipantContextStore:
    def __init__(self) -> None:
        self.contexts: dict[str, ParticipantContext] = {}

    async def create_participant_context(
        self, context: ParticipantContext
    ) -> ServiceResult[ParticipantContext]:
        participant_context_id = context.participant_context_id
        if not participant_context_id:
            return ServiceResult.bad_request("participantContextId must not be empty")
        if participant_context_id in self.contexts:
            return ServiceResult.conflict(
                f"ParticipantContext with ID '{participant_context_id}' already exists"
            )
        self.contexts[participant_context_id] = context
        return ServiceResult.success(context)

    async def get_participant_context(
        self, participant_context_id: str
    ) -> ServiceResult[ParticipantContext]:
        context = self.contexts.get(participant_context_id)
        if context is None:
            return ServiceResult.not_found(
                f"ParticipantContext with ID '{participant_context_id}' does not exist"
            )
        return ServiceResult.success(context)


class InMemoryParticipantConfigStore:
    def __init__(self, participant_contexts: InMemoryParticipantContextStore) -> None:
        self._participant_contexts = participant_contexts
        self.configs: dict[str, dict[str, str]] = {}

    async def save(
        self, participant_context_id: str, config: Mapping[str, str]
    ) -> ServiceResult[None]:
        if participant_context_id not in self._participant_contexts.contexts:
            return ServiceResult.not_found(
                f"ParticipantContext with ID '{participant_context_id}' does not exist"
            )
        empty = sorted(key for key, value in config.items() if value is None)
        if empty:
            return ServiceResult.bad_request(*(f"Config value for '{key}' is null" for key in empty))
        self.configs[participant_context_id] = dict(config)
        return ServiceResult.success()


class InMemoryVault:
    """
    Secret store keyed by alias; later writes to an alias replace earlier ones.

    With an encryptor configured, values are held as ``enc:v2`` tokens bound
    to their alias. Values held in plaintext, such as those written before a
    key was configured, resolve unchanged.
    """

    def __init__(self, encryptor: SecretEncryptor | None = None) -> None:
        self._encryptor = encryptor
        self._secrets: dict[str, str] = {}

    async def store_secret(self, alias: str, value: str) -> ServiceResult[None]:
        if not alias:
            return ServiceResult.bad_request("Secret alias must not be empty")
        if self._encryptor is not None:
            value = self._encryptor.encrypt_secret(value, aad=f"alias:{alias}")
        self._secrets[alias] = value
        logger.debug("vault_secret_stored", alias=alias, encrypted=self._encryptor is not None)
        return ServiceResult.success()

    async def resolve_secret(self, alias: str) -> str | None:
        stored = self._secrets.get(alias)
        if stored is None or not is_encrypted_secret_value(stored):
            return stored
        if self._encryptor is None:
            raise EncryptionError(f"secret '{alias}' is encrypted but no vault key is configured")
        return self._encryptor.decrypt_secret(stored, aad=f"alias:{alias}")

    def raw_value(self, alias: str) -> str | None:
        """Value as held at rest (ciphertext when encryption is enabled)."""
        return self._secrets.get(alias)


class InMemoryDataPlaneSelector:
    """Data plane registry that rejects instances of unknown participants."""

    def __init__(self, participant_contexts: InMemoryParticipantContextStore) -> None:
        self._participant_contexts = participant_contexts
        self.instances: dict[str, DataPlaneInstance] = {}

    async def add_instance(self, instance: DataPlaneInstance) -> ServiceResult[None]:
        if instance.participant_context_id not in self._participant_contexts.contexts:
            return ServiceResult.not_found(
                f"ParticipantContext with ID '{instance.participant_context_id}' does not exist"
            )
        if instance.instance_id in self.instances:
            return ServiceResult.conflict(
                f"DataPlaneInstance with ID '{instance.instance_id}' already exists"
            )
        self.instances[instance.instance_id] = instance
        return ServiceResult.success()


class InMemoryAssetIndex:
    def __init__(self) -> None:
        self.assets: dict[str, Asset] = {}

    async def create(self, asset: Asset) -> ServiceResult[Asset]:
        if asset.asset_id in self.assets:
            return ServiceResult.conflict(f"Asset with ID '{asset.asset_id}' already exists")
        self.assets[asset.asset_id] = asset
        return ServiceResult.success(asset)


class InMemoryPolicyDefinitionStore:
    def __init__(self) -> None:
        self.policies: dict[str, PolicyDefinition] = {}

    async def create(self, policy: PolicyDefinition) -> ServiceResult[PolicyDefinition]:
        if policy.policy_id in self.policies:
            return ServiceResult.conflict(
                f"PolicyDefinition with ID '{policy.policy_id}' already exists"
            )
        self.policies[policy.policy_id] = policy
        return ServiceResult.success(policy)


class InMemoryContractDefinitionStore:
    """Contract definitions whose access and contract policies must already exist."""

    def __init__(self, policies: InMemoryPolicyDefinitionStore) -> None:
        self._policies = policies
        self.contract_definitions: dict[str, ContractDefinition] = {}

    async def create(
        self, contract_definition: ContractDefinition
    ) -> ServiceResult[ContractDefinition]:
        if contract_definition.contract_id in self.contract_definitions:
            return ServiceResult.conflict(
                f"ContractDefinition with ID '{contract_definition.contract_id}' already exists"
            )
        for policy_id in dict.fromkeys(
            (contract_definition.access_policy_id, contract_definition.contract_policy_id)
        ):
            if policy_id not in self._policies.policies:
                return ServiceResult.not_found(
                    f"PolicyDefinition with ID '{policy_id}' does not exist"
                )
        self.contract_definitions[contract_definition.contract_id] = contract_definition
        return ServiceResult.success(contract_definition)

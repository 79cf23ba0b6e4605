"""Assembles the provisioning orchestrator from application settings."""

from __future__ import annotations

from dataclasses import dataclass

from provisioner.core.config import Settings
from provisioner.core.encryption import SecretEncryptor
from provisioner.core.logging import get_logger
from provisioner.modules.connectors.edc.client import EDCConfig, EDCManagementClient
from provisioner.modules.connectors.edc.services import (
    EDCAssetService,
    EDCContractDefinitionService,
    EDCPolicyDefinitionService,
)
from provisioner.modules.participants.memory import (
    InMemoryAssetIndex,
    InMemoryContractDefinitionStore,
    InMemoryDataPlaneSelector,
    InMemoryParticipantConfigStore,
    InMemoryParticipantContextStore,
    InMemoryPolicyDefinitionStore,
    InMemoryVault,
)
from provisioner.modules.participants.ports import (
    AssetService,
    ContractDefinitionService,
    PolicyDefinitionService,
)
from provisioner.modules.participants.seeding import SeedDefaults
from provisioner.modules.participants.service import (
    ProvisioningDefaults,
    ProvisioningOrchestrator,
)

logger = get_logger(__name__)


@dataclass(slots=True)
class ProvisioningRuntime:
    """The orchestrator plus the resources that must be released on shutdown."""

    orchestrator: ProvisioningOrchestrator
    edc_client: EDCManagementClient | None = None

    async def close(self) -> None:
        if self.edc_client is not None:
            await self.edc_client.close()


def provisioning_defaults(settings: Settings) -> ProvisioningDefaults:
    return ProvisioningDefaults(
        dataplane_url=settings.dataplane_url,
        dataplane_source_type=settings.dataplane_source_type,
        dataplane_transfer_type=settings.dataplane_transfer_type,
        seed=SeedDefaults(
            asset_base_url=settings.seed_asset_base_url,
            asset_description=settings.seed_asset_description,
            membership_claim=settings.membership_claim,
            membership_claim_value=settings.membership_claim_value,
        ),
    )


def build_provisioning_runtime(settings: Settings) -> ProvisioningRuntime:
    participant_contexts = InMemoryParticipantContextStore()

    encryptor = None
    if settings.vault_encryption_key:
        encryptor = SecretEncryptor(
            settings.vault_encryption_key,
            active_key_id=settings.vault_encryption_key_id,
        )

    asset_service: AssetService
    policy_service: PolicyDefinitionService
    contract_definition_service: ContractDefinitionService
    edc_client: EDCManagementClient | None = None
    if settings.edc_management_url:
        edc_client = EDCManagementClient(
            EDCConfig(
                management_url=settings.edc_management_url,
                api_key=settings.edc_management_api_key,
            )
        )
        asset_service = EDCAssetService(edc_client)
        policy_service = EDCPolicyDefinitionService(edc_client)
        contract_definition_service = EDCContractDefinitionService(edc_client)
        logger.info("resource_services_remote", management_url=settings.edc_management_url)
    else:
        policies = InMemoryPolicyDefinitionStore()
        asset_service = InMemoryAssetIndex()
        policy_service = policies
        contract_definition_service = InMemoryContractDefinitionStore(policies)
        logger.info("resource_services_in_memory")

    orchestrator = ProvisioningOrchestrator(
        participant_contexts=participant_contexts,
        config_service=InMemoryParticipantConfigStore(participant_contexts),
        vault=InMemoryVault(encryptor),
        dataplane_selector=InMemoryDataPlaneSelector(participant_contexts),
        asset_service=asset_service,
        policy_service=policy_service,
        contract_definition_service=contract_definition_service,
        defaults=provisioning_defaults(settings),
    )
    return ProvisioningRuntime(orchestrator=orchestrator, edc_client=edc_client)

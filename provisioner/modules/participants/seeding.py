"""
Baseline resources seeded for every new participant.

One asset proxying a default upstream HTTP source, one policy that requires
an active membership credential, and one contract definition that binds the
policy (as both access and contract policy) to exactly that asset.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from provisioner.core.logging import get_logger
from provisioner.modules.participants.models import (
    EDC_ID_PROPERTY,
    Asset,
    ContractDefinition,
    Criterion,
    DataAddress,
    ODRLConstraint,
    ODRLPermission,
    ODRLPolicy,
    PolicyDefinition,
)
from provisioner.modules.participants.ports import (
    AssetService,
    ContractDefinitionService,
    PolicyDefinitionService,
)
from provisioner.modules.participants.result import ServiceResult, chain

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SeedDefaults:
    asset_base_url: str = "https://jsonplaceholder.typicode.com/todos"
    asset_description: str = "This asset requires the Membership credential to access"
    membership_claim: str = "MembershipCredential"
    membership_claim_value: str = "active"


def build_seed_asset(asset_id: str, participant_context_id: str, defaults: SeedDefaults) -> Asset:
    return Asset(
        asset_id=asset_id,
        participant_context_id=participant_context_id,
        properties={"description": defaults.asset_description},
        data_address=DataAddress(
            type="HttpData",
            base_url=defaults.asset_base_url,
            proxy_path=True,
            proxy_query_params=True,
        ),
    )


def build_membership_policy(
    policy_id: str, participant_context_id: str, defaults: SeedDefaults
) -> PolicyDefinition:
    """A single ``use`` permission gated by an equality check on the membership claim."""
    permission = ODRLPermission(
        action="use",
        constraints=(
            ODRLConstraint(
                left_operand=defaults.membership_claim,
                operator="eq",
                right_operand=defaults.membership_claim_value,
            ),
        ),
    )
    return PolicyDefinition(
        policy_id=policy_id,
        participant_context_id=participant_context_id,
        policy=ODRLPolicy(permissions=(permission,)),
    )


def build_contract_definition(
    contract_id: str, asset_id: str, policy_id: str, participant_context_id: str
) -> ContractDefinition:
    return ContractDefinition(
        contract_id=contract_id,
        participant_context_id=participant_context_id,
        access_policy_id=policy_id,
        contract_policy_id=policy_id,
        assets_selector=(
            Criterion(operand_left=EDC_ID_PROPERTY, operator="=", operand_right=asset_id),
        ),
    )


async def seed_resources(
    participant_context_id: str,
    *,
    asset_service: AssetService,
    policy_service: PolicyDefinitionService,
    contract_definition_service: ContractDefinitionService,
    defaults: SeedDefaults,
) -> ServiceResult[ContractDefinition]:
    """Create asset, policy and contract definition, stopping at the first failure."""
    asset = build_seed_asset(str(uuid4()), participant_context_id, defaults)

    async def create_policy(_asset: Asset) -> ServiceResult[PolicyDefinition]:
        policy = build_membership_policy(str(uuid4()), participant_context_id, defaults)
        return await policy_service.create(policy)

    async def create_contract_definition(
        policy: PolicyDefinition,
    ) -> ServiceResult[ContractDefinition]:
        contract_definition = build_contract_definition(
            str(uuid4()), asset.asset_id, policy.policy_id, participant_context_id
        )
        return await contract_definition_service.create(contract_definition)

    result = await chain(
        asset_service.create(asset),
        create_policy,
        create_contract_definition,
    )
    if result.failed:
        logger.warning(
            "seed_resources_failed",
            participant_context_id=participant_context_id,
            reason=result.reason,
            detail=result.failure_detail,
        )
    return result

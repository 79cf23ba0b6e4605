"""Resource services backed by a remote EDC management API."""

from __future__ import annotations

from provisioner.modules.connectors.edc.client import EDCManagementClient
from provisioner.modules.participants.models import Asset, ContractDefinition, PolicyDefinition
from provisioner.modules.participants.result import ServiceResult


class EDCAssetService:
    def __init__(self, client: EDCManagementClient) -> None:
        self._client = client

    async def create(self, asset: Asset) -> ServiceResult[Asset]:
        result = await self._client.create_asset(asset)
        return result.map(lambda _body: asset)


class EDCPolicyDefinitionService:
    def __init__(self, client: EDCManagementClient) -> None:
        self._client = client

    async def create(self, policy: PolicyDefinition) -> ServiceResult[PolicyDefinition]:
        result = await self._client.create_policy(policy)
        return result.map(lambda _body: policy)


class EDCContractDefinitionService:
    def __init__(self, client: EDCManagementClient) -> None:
        self._client = client

    async def create(
        self, contract_definition: ContractDefinition
    ) -> ServiceResult[ContractDefinition]:
        result = await self._client.create_contract_definition(contract_definition)
        return result.map(lambda _body: contract_definition)

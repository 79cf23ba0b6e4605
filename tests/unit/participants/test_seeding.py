"""Unit tests for seed resource builders and their EDC payloads."""

import pytest

from provisioner.modules.participants.models import (
    EDC_ID_PROPERTY,
    Criterion,
    ParticipantConfig,
)
from provisioner.modules.participants.seeding import (
    SeedDefaults,
    build_contract_definition,
    build_membership_policy,
    build_seed_asset,
    seed_resources,
)
from provisioner.modules.participants.service import build_participant_config
from tests.factories import Stores, make_manifest


class TestSeedAsset:
    def test_data_address_proxies_path_and_query(self) -> None:
        asset = build_seed_asset("asset-1", "p1", SeedDefaults())

        assert asset.participant_context_id == "p1"
        assert asset.data_address.type == "HttpData"
        assert asset.data_address.base_url == "https://jsonplaceholder.typicode.com/todos"
        assert asset.properties["description"].startswith("This asset requires")

    def test_edc_payload(self) -> None:
        payload = build_seed_asset("asset-1", "p1", SeedDefaults()).to_edc_payload()

        assert payload["@id"] == "asset-1"
        assert payload["dataAddress"]["@type"] == "DataAddress"
        assert payload["dataAddress"]["proxyPath"] == "true"
        assert payload["dataAddress"]["proxyQueryParams"] == "true"


class TestMembershipPolicy:
    def test_single_use_permission_with_equality_constraint(self) -> None:
        policy = build_membership_policy("policy-1", "p1", SeedDefaults())

        (permission,) = policy.policy.permissions
        (constraint,) = permission.constraints
        assert permission.action == "use"
        assert constraint.left_operand == "MembershipCredential"
        assert constraint.operator == "eq"
        assert constraint.right_operand == "active"

    def test_edc_payload_inlines_single_constraint(self) -> None:
        payload = build_membership_policy("policy-1", "p1", SeedDefaults()).to_edc_payload()

        permission = payload["policy"]["permission"][0]
        assert payload["@id"] == "policy-1"
        assert permission["constraint"] == {
            "leftOperand": "MembershipCredential",
            "operator": "eq",
            "rightOperand": "active",
        }


class TestContractDefinition:
    def test_policy_is_both_access_and_contract_policy(self) -> None:
        contract = build_contract_definition("contract-1", "asset-1", "policy-1", "p1")

        assert contract.access_policy_id == "policy-1"
        assert contract.contract_policy_id == "policy-1"

    def test_selector_matches_only_the_seeded_asset(self) -> None:
        defaults = SeedDefaults()
        seeded = build_seed_asset("asset-1", "p1", defaults)
        other = build_seed_asset("asset-2", "p1", defaults)
        contract = build_contract_definition("contract-1", "asset-1", "policy-1", "p1")

        assert contract.selects(seeded)
        assert not contract.selects(other)

    def test_edc_payload_selector(self) -> None:
        payload = build_contract_definition(
            "contract-1", "asset-1", "policy-1", "p1"
        ).to_edc_payload()

        assert payload["assetsSelector"] == [
            {
                "@type": "Criterion",
                "operandLeft": EDC_ID_PROPERTY,
                "operator": "=",
                "operandRight": "asset-1",
            }
        ]

    def test_property_criterion(self) -> None:
        asset = build_seed_asset("asset-1", "p1", SeedDefaults())
        criterion = Criterion(
            operand_left="description", operand_right=asset.properties["description"]
        )

        assert criterion.matches(asset)

    def test_unsupported_operator_raises(self) -> None:
        asset = build_seed_asset("asset-1", "p1", SeedDefaults())
        criterion = Criterion(operand_left=EDC_ID_PROPERTY, operator="in", operand_right="x")

        with pytest.raises(ValueError, match="Unsupported criterion operator"):
            criterion.matches(asset)


class TestParticipantConfig:
    def test_entries_contain_exactly_five_keys(self) -> None:
        result = build_participant_config(make_manifest())

        assert result.succeeded
        config = result.content
        assert isinstance(config, ParticipantConfig)
        assert len(config.entries()) == 5
        assert config.issuer_id == config.participant_id == "did:web:p1"

    def test_missing_fields_are_all_reported(self) -> None:
        result = build_participant_config(make_manifest(tokenUrl=None, clientId=None))

        assert result.failed
        assert result.failure_detail == (
            "Missing required field: tokenUrl, Missing required field: clientId"
        )

    def test_empty_string_counts_as_missing(self) -> None:
        result = build_participant_config(make_manifest(clientSecretAlias=""))

        assert result.failed
        assert "clientSecretAlias" in (result.failure_detail or "")


@pytest.mark.asyncio
async def test_seed_resources_links_contract_to_created_policy_and_asset(
    stores: Stores,
) -> None:
    result = await seed_resources(
        "p1",
        asset_service=stores.assets,
        policy_service=stores.policies,
        contract_definition_service=stores.contract_definitions,
        defaults=SeedDefaults(),
    )

    assert result.succeeded
    contract = result.content
    (asset_id,) = stores.assets.assets
    (policy_id,) = stores.policies.policies
    assert contract.access_policy_id == policy_id
    assert contract.assets_selector[0].operand_right == asset_id

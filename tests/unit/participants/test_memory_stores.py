"""Unit tests for the in-memory capability implementations."""

import pytest

from provisioner.core.encryption import EncryptionError, SecretEncryptor
from provisioner.modules.participants.memory import InMemoryVault
from provisioner.modules.participants.models import (
    DataPlaneInstance,
    ParticipantContext,
    ParticipantContextState,
)
from provisioner.modules.participants.result import ServiceFailureReason
from provisioner.modules.participants.seeding import (
    SeedDefaults,
    build_contract_definition,
    build_membership_policy,
    build_seed_asset,
)
from tests.factories import TEST_VAULT_KEY, Stores


class TestParticipantContextStore:
    @pytest.mark.asyncio
    async def test_first_writer_wins(self, stores: Stores) -> None:
        first = await stores.participant_contexts.create_participant_context(
            ParticipantContext(participant_context_id="p1", state=ParticipantContextState.ACTIVATED)
        )
        second = await stores.participant_contexts.create_participant_context(
            ParticipantContext(participant_context_id="p1")
        )

        assert first.succeeded
        assert second.reason == ServiceFailureReason.CONFLICT
        stored = await stores.participant_contexts.get_participant_context("p1")
        assert stored.content.state == ParticipantContextState.ACTIVATED

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, stores: Stores) -> None:
        result = await stores.participant_contexts.get_participant_context("ghost")

        assert result.reason == ServiceFailureReason.NOT_FOUND


class TestConfigStore:
    @pytest.mark.asyncio
    async def test_rejects_unknown_participant(self, stores: Stores) -> None:
        result = await stores.configs.save("ghost", {"k": "v"})

        assert result.reason == ServiceFailureReason.NOT_FOUND

    @pytest.mark.asyncio
    async def test_rejects_null_values(self, stores: Stores) -> None:
        await stores.participant_contexts.create_participant_context(
            ParticipantContext(participant_context_id="p1")
        )

        result = await stores.configs.save("p1", {"a": "1", "b": None})  # type: ignore[dict-item]

        assert result.reason == ServiceFailureReason.BAD_REQUEST
        assert "p1" not in stores.configs.configs


class TestVault:
    @pytest.mark.asyncio
    async def test_secret_is_encrypted_at_rest(self, stores: Stores) -> None:
        await stores.vault.store_secret("alias", "s3cr3t")

        assert stores.vault.raw_value("alias") != "s3cr3t"
        assert stores.vault.raw_value("alias").startswith("enc:v2:")
        assert await stores.vault.resolve_secret("alias") == "s3cr3t"

    @pytest.mark.asyncio
    async def test_plaintext_without_encryptor(self) -> None:
        vault = InMemoryVault()

        await vault.store_secret("alias", "s3cr3t")

        assert vault.raw_value("alias") == "s3cr3t"
        assert await vault.resolve_secret("alias") == "s3cr3t"

    @pytest.mark.asyncio
    async def test_plaintext_at_rest_resolves_unchanged(self, stores: Stores) -> None:
        stores.vault._secrets["legacy"] = "written-before-key"

        assert await stores.vault.resolve_secret("legacy") == "written-before-key"

    @pytest.mark.asyncio
    async def test_encrypted_value_without_key_raises(self) -> None:
        token = SecretEncryptor(TEST_VAULT_KEY).encrypt_secret("s3cr3t", aad="alias:alias")
        vault = InMemoryVault()
        await vault.store_secret("alias", token)

        with pytest.raises(EncryptionError, match="no vault key is configured"):
            await vault.resolve_secret("alias")

    @pytest.mark.asyncio
    async def test_later_write_replaces_secret(self, stores: Stores) -> None:
        await stores.vault.store_secret("alias", "one")
        await stores.vault.store_secret("alias", "two")

        assert await stores.vault.resolve_secret("alias") == "two"

    @pytest.mark.asyncio
    async def test_empty_alias_rejected(self, stores: Stores) -> None:
        result = await stores.vault.store_secret("", "value")

        assert result.failed

    @pytest.mark.asyncio
    async def test_unknown_alias_resolves_to_none(self, stores: Stores) -> None:
        assert await stores.vault.resolve_secret("missing") is None


class TestDataPlaneSelector:
    @pytest.mark.asyncio
    async def test_rejects_dangling_participant(self, stores: Stores) -> None:
        instance = DataPlaneInstance(
            instance_id="dp-1", participant_context_id="ghost", url="http://dataplane"
        )

        result = await stores.dataplanes.add_instance(instance)

        assert result.reason == ServiceFailureReason.NOT_FOUND
        assert stores.dataplanes.instances == {}


class TestResourceStores:
    @pytest.mark.asyncio
    async def test_duplicate_asset_conflicts(self, stores: Stores) -> None:
        asset = build_seed_asset("asset-1", "p1", SeedDefaults())

        await stores.assets.create(asset)
        result = await stores.assets.create(asset)

        assert result.reason == ServiceFailureReason.CONFLICT

    @pytest.mark.asyncio
    async def test_duplicate_policy_conflicts(self, stores: Stores) -> None:
        policy = build_membership_policy("policy-1", "p1", SeedDefaults())

        await stores.policies.create(policy)
        result = await stores.policies.create(policy)

        assert result.reason == ServiceFailureReason.CONFLICT

    @pytest.mark.asyncio
    async def test_contract_definition_requires_existing_policy(self, stores: Stores) -> None:
        contract = build_contract_definition("contract-1", "asset-1", "missing-policy", "p1")

        result = await stores.contract_definitions.create(contract)

        assert result.reason == ServiceFailureReason.NOT_FOUND
        assert "missing-policy" in (result.failure_detail or "")

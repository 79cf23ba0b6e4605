"""Unit tests for runtime assembly from settings."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from provisioner.core.config import Settings
from provisioner.modules.participants.wiring import (
    build_provisioning_runtime,
    provisioning_defaults,
)
from tests.factories import TEST_VAULT_KEY, make_manifest


@pytest.mark.asyncio
async def test_in_memory_runtime_without_edc_url() -> None:
    runtime = build_provisioning_runtime(Settings(vault_encryption_key=TEST_VAULT_KEY))

    result = await runtime.orchestrator.provision(make_manifest())
    await runtime.close()

    assert runtime.edc_client is None
    assert result.succeeded
    assert result.locator


@pytest.mark.asyncio
async def test_remote_resource_services_with_edc_url() -> None:
    runtime = build_provisioning_runtime(
        Settings(
            vault_encryption_key=TEST_VAULT_KEY,
            edc_management_url="http://controlplane:8081/api/mgmt",
        )
    )

    with patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=AsyncMock,
        return_value=httpx.Response(
            200, json={}, request=httpx.Request("POST", "http://controlplane")
        ),
    ) as mock_post:
        result = await runtime.orchestrator.provision(make_manifest())
    await runtime.close()

    assert runtime.edc_client is not None
    assert result.succeeded
    paths = [call.args[0] for call in mock_post.await_args_list]
    assert paths == [
        "/v4alpha/participants/p1/assets",
        "/v4alpha/participants/p1/policydefinitions",
        "/v4alpha/participants/p1/contractdefinitions",
    ]


@pytest.mark.asyncio
async def test_remote_rejection_fails_seeding_step() -> None:
    runtime = build_provisioning_runtime(
        Settings(
            vault_encryption_key=TEST_VAULT_KEY,
            edc_management_url="http://controlplane:8081/api/mgmt",
        )
    )

    with patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=AsyncMock,
        return_value=httpx.Response(
            401, text="invalid api key", request=httpx.Request("POST", "http://controlplane")
        ),
    ):
        result = await runtime.orchestrator.provision(make_manifest())
    await runtime.close()

    assert result.failure is not None
    assert result.failure.step.value == "SEEDING_RESOURCES"
    assert result.failure.reason.value == "UNAUTHORIZED"
    assert result.failure.detail == "invalid api key"


def test_defaults_follow_settings() -> None:
    defaults = provisioning_defaults(
        Settings(
            vault_encryption_key=TEST_VAULT_KEY,
            dataplane_url="http://dataplane:8083/control",
            membership_claim_value="gold",
        )
    )

    assert defaults.dataplane_url == "http://dataplane:8083/control"
    assert defaults.seed.membership_claim_value == "gold"


@pytest.mark.asyncio
async def test_non_json_remote_response_fails_seeding_step() -> None:
    runtime = build_provisioning_runtime(
        Settings(
            vault_encryption_key=TEST_VAULT_KEY,
            edc_management_url="http://controlplane:8081/api/mgmt",
        )
    )

    with patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=AsyncMock,
        return_value=httpx.Response(
            200, text="OK", request=httpx.Request("POST", "http://controlplane")
        ),
    ):
        result = await runtime.orchestrator.provision(make_manifest())
    await runtime.close()

    assert result.failure is not None
    assert result.failure.step.value == "SEEDING_RESOURCES"
    assert result.failure.reason.value == "UNEXPECTED"

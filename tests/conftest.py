"""
Pytest fixtures for provisioning tests.
Provides in-memory capability stores and an orchestrator wired to them.
"""

import pytest

from provisioner.core.config import get_settings
from provisioner.modules.participants.service import ProvisioningOrchestrator
from tests.factories import TEST_VAULT_KEY, Stores, make_stores


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test against development settings with a vault key."""
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("VAULT_ENCRYPTION_KEY", TEST_VAULT_KEY)
    monkeypatch.delenv("EDC_MANAGEMENT_URL", raising=False)
    get_settings.cache_clear()


@pytest.fixture
def stores() -> Stores:
    return make_stores()


@pytest.fixture
def orchestrator(stores: Stores) -> ProvisioningOrchestrator:
    return stores.orchestrator()

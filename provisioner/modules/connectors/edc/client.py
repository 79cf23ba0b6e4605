"""
EDC virtual Management API client.

Persistent httpx.AsyncClient, dataclass config object, structured logging,
and explicit ``close()`` lifecycle. Every resource call is scoped to a
participant context and returns a ``ServiceResult`` instead of raising:
HTTP error statuses are mapped onto the failure taxonomy, transport errors
become ``UNEXPECTED`` failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

import httpx

from provisioner.core.logging import get_logger
from provisioner.modules.participants.models import (
    Asset,
    ContractDefinition,
    PolicyDefinition,
)
from provisioner.modules.participants.result import ServiceResult

logger = get_logger(__name__)

_API_VERSION_PREFIX = "/v4alpha/participants"


@dataclass
class EDCConfig:
    """Configuration for connecting to an EDC control plane management API."""

    management_url: str  # e.g. http://controlplane:8081/api/mgmt
    api_key: str = ""
    timeout: float = 30.0


class EDCManagementClient:
    """
    Client for the participant-scoped EDC Management API.

    Uses ``X-Api-Key`` header authentication when an API key is configured.
    """

    def __init__(self, config: EDCConfig) -> None:
        self._config = config
        self._http_client: httpx.AsyncClient | None = None

    def _validate_config(self) -> None:
        base = (self._config.management_url or "").strip()
        if not base:
            raise ValueError("EDC management URL is required")
        self._config.management_url = base.rstrip("/")

    async def _get_client(self) -> httpx.AsyncClient:
        """Return (or lazily create) the authenticated HTTP client."""
        if self._http_client is None:
            self._validate_config()
            headers: dict[str, str] = {
                "Content-Type": "application/json",
            }
            if self._config.api_key:
                headers["X-Api-Key"] = self._config.api_key

            self._http_client = httpx.AsyncClient(
                base_url=self._config.management_url,
                headers=headers,
                timeout=self._config.timeout,
            )
        return self._http_client

    @staticmethod
    def _resource_path(participant_context_id: str, collection: str) -> str:
        return f"{_API_VERSION_PREFIX}/{participant_context_id}/{collection}"

    async def _post(self, path: str, payload: dict[str, Any]) -> ServiceResult[dict[str, Any]]:
        client = await self._get_client()
        try:
            response = await client.post(path, json=payload)
        except httpx.HTTPError as exc:
            logger.error("edc_request_failed", path=path, error=str(exc))
            return ServiceResult.unexpected(f"EDC request to {path} failed: {exc}")

        if response.is_error:
            logger.warning(
                "edc_request_rejected",
                path=path,
                status_code=response.status_code,
            )
            return ServiceResult.from_http_status(response.status_code, response.text)

        if not response.content:
            return ServiceResult.success({})
        try:
            body = response.json()
        except ValueError:
            logger.error("edc_response_not_json", path=path, status_code=response.status_code)
            return ServiceResult.unexpected(f"EDC response from {path} is not valid JSON")
        if not isinstance(body, dict):
            logger.error("edc_response_not_object", path=path, status_code=response.status_code)
            return ServiceResult.unexpected(f"EDC response from {path} is not a JSON object")
        return ServiceResult.success(body)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    async def create_asset(self, asset: Asset) -> ServiceResult[dict[str, Any]]:
        """Create an asset in the participant's catalog."""
        logger.info(
            "edc_creating_asset",
            asset_id=asset.asset_id,
            participant_context_id=asset.participant_context_id,
        )
        result = await self._post(
            self._resource_path(asset.participant_context_id, "assets"),
            asset.to_edc_payload(),
        )
        if result.succeeded:
            logger.info(
                "edc_asset_created",
                asset_id=asset.asset_id,
                edc_response_id=(result.content or {}).get("@id"),
            )
        return result

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    async def create_policy(self, policy: PolicyDefinition) -> ServiceResult[dict[str, Any]]:
        """Create a policy definition."""
        logger.info(
            "edc_creating_policy",
            policy_id=policy.policy_id,
            participant_context_id=policy.participant_context_id,
        )
        result = await self._post(
            self._resource_path(policy.participant_context_id, "policydefinitions"),
            policy.to_edc_payload(),
        )
        if result.succeeded:
            logger.info(
                "edc_policy_created",
                policy_id=policy.policy_id,
                edc_response_id=(result.content or {}).get("@id"),
            )
        return result

    # ------------------------------------------------------------------
    # Contract Definitions
    # ------------------------------------------------------------------

    async def create_contract_definition(
        self, contract: ContractDefinition
    ) -> ServiceResult[dict[str, Any]]:
        """Create a contract definition linking assets to policies."""
        logger.info(
            "edc_creating_contract_definition",
            contract_id=contract.contract_id,
            participant_context_id=contract.participant_context_id,
        )
        result = await self._post(
            self._resource_path(contract.participant_context_id, "contractdefinitions"),
            contract.to_edc_payload(),
        )
        if result.succeeded:
            logger.info(
                "edc_contract_definition_created",
                contract_id=contract.contract_id,
                edc_response_id=(result.content or {}).get("@id"),
            )
        return result

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def check_health(self) -> dict[str, Any]:
        """Hit the EDC health/readiness endpoint."""
        client = await self._get_client()

        try:
            response = await client.get("/api/check/health")
            response.raise_for_status()
            return cast(dict[str, Any], response.json())
        except httpx.HTTPStatusError as exc:
            return {
                "status": "error",
                "error_code": exc.response.status_code,
                "error_message": str(exc),
            }
        except Exception as exc:
            return {
                "status": "error",
                "error_message": str(exc),
            }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

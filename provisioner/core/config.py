"""
Application configuration using Pydantic Settings.
All configuration is loaded from environment variables with sensible defaults.
"""

import warnings
from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Provisioning defaults mirror the deployment's default data plane and the
    seed resources every new participant receives.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Core Application Settings
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    project_name: str = "Participant Provisioner"
    version: str = "0.1.0"

    # ==========================================================================
    # Management API
    # ==========================================================================
    management_api_host: str = Field(default="0.0.0.0")
    management_api_port: int = Field(default=8081, ge=1, le=65535)
    management_api_path: str = Field(default="/api/mgmt")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def participants_api_prefix(self) -> str:
        """Mount point of the participant provisioning endpoints."""
        return f"{self.management_api_path.rstrip('/')}/v1alpha/participants"

    # ==========================================================================
    # Provisioning Defaults
    # ==========================================================================
    dataplane_url: str = Field(
        default="http://dataplane.edc-v.cluster.svc.local:8083/api/control/v1/dataflows",
        description="Control endpoint of the data plane registered for new participants",
    )
    dataplane_source_type: str = Field(default="HttpData")
    dataplane_transfer_type: str = Field(default="HttpData-PULL")

    seed_asset_base_url: str = Field(
        default="https://jsonplaceholder.typicode.com/todos",
        description="Upstream HTTP source proxied by the seeded asset",
    )
    seed_asset_description: str = Field(
        default="This asset requires the Membership credential to access"
    )
    membership_claim: str = Field(default="MembershipCredential")
    membership_claim_value: str = Field(default="active")

    # ==========================================================================
    # EDC Management API (optional remote resource services)
    # ==========================================================================
    edc_management_url: str = Field(
        default="",
        description="When set, assets, policies and contract definitions are created remotely",
    )
    edc_management_api_key: str = Field(default="")

    # ==========================================================================
    # Vault
    # ==========================================================================
    vault_encryption_key: str = Field(
        default="", description="Base64-encoded 256-bit key for secrets held by the vault"
    )
    vault_encryption_key_id: str = Field(default="default")

    @model_validator(mode="after")
    def _validate_production_settings(self) -> Self:
        """Enforce critical security settings in production/staging."""
        if self.environment in ("production", "staging"):
            if not self.vault_encryption_key:
                raise ValueError(
                    f"vault_encryption_key must be set in {self.environment} environment"
                )
            if self.debug:
                raise ValueError(f"debug must be False in {self.environment} environment")
        elif not self.vault_encryption_key:
            warnings.warn(
                "vault_encryption_key is empty, client secrets will be held in plaintext. "
                "Set it before deploying.",
                UserWarning,
                stacklevel=2,
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated environment variable parsing.
    """
    return Settings()

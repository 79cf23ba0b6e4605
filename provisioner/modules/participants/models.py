"""
Entities created while provisioning a participant.

Resource models serialize to the JSON-LD bodies of the EDC management API
via ``to_edc_payload``; field names stay snake_case locally.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

EDC_NAMESPACE = "https://w3id.org/edc/v0.0.1/ns/"
ODRL_NAMESPACE = "http://www.w3.org/ns/odrl/2/"
EDC_ID_PROPERTY = f"{EDC_NAMESPACE}id"

# Participant configuration keys
TOKEN_URL = "edc.iam.sts.oauth.token.url"
CLIENT_ID = "edc.iam.sts.oauth.client.id"
CLIENT_SECRET_ALIAS = "edc.iam.sts.oauth.client.secret.alias"
ISSUER_ID = "edc.iam.issuer.id"
PARTICIPANT_ID = "edc.participant.id"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Participant identity & configuration
# ---------------------------------------------------------------------------


class ParticipantContextState(str, Enum):
    CREATED = "CREATED"
    ACTIVATED = "ACTIVATED"
    SUSPENDED = "SUSPENDED"


class ParticipantContext(_Frozen):
    """Identity record of a participant, owned by the identity store once created."""

    participant_context_id: str
    state: ParticipantContextState = ParticipantContextState.CREATED


class ParticipantConfig(_Frozen):
    """The complete OAuth/identity configuration of one participant."""

    token_url: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    client_secret_alias: str = Field(min_length=1)
    issuer_id: str = Field(min_length=1)
    participant_id: str = Field(min_length=1)

    def entries(self) -> dict[str, str]:
        return {
            TOKEN_URL: self.token_url,
            CLIENT_ID: self.client_id,
            CLIENT_SECRET_ALIAS: self.client_secret_alias,
            ISSUER_ID: self.issuer_id,
            PARTICIPANT_ID: self.participant_id,
        }


# ---------------------------------------------------------------------------
# Data plane
# ---------------------------------------------------------------------------


class DataPlaneInstance(_Frozen):
    """A data-movement endpoint registered on behalf of a participant."""

    instance_id: str
    participant_context_id: str
    url: str
    allowed_source_types: frozenset[str] = Field(default_factory=frozenset)
    allowed_transfer_types: frozenset[str] = Field(default_factory=frozenset)


# ---------------------------------------------------------------------------
# Asset
# ---------------------------------------------------------------------------


class DataAddress(_Frozen):
    """Connection metadata of an asset's upstream source."""

    type: str = "HttpData"
    base_url: str
    proxy_path: bool = True
    proxy_query_params: bool = True

    def to_edc_payload(self) -> dict[str, Any]:
        return {
            "@type": "DataAddress",
            "type": self.type,
            "baseUrl": self.base_url,
            "proxyPath": str(self.proxy_path).lower(),
            "proxyQueryParams": str(self.proxy_query_params).lower(),
        }


class Asset(_Frozen):
    asset_id: str
    participant_context_id: str
    properties: dict[str, Any] = Field(default_factory=dict)
    data_address: DataAddress

    def to_edc_payload(self) -> dict[str, Any]:
        return {
            "@context": {"edc": EDC_NAMESPACE},
            "@id": self.asset_id,
            "properties": self.properties,
            "dataAddress": self.data_address.to_edc_payload(),
        }


# ---------------------------------------------------------------------------
# ODRL Policy
# ---------------------------------------------------------------------------


class ODRLConstraint(_Frozen):
    """Single ODRL constraint (left operand / operator / right operand)."""

    left_operand: str
    operator: str
    right_operand: str

    def to_edc_payload(self) -> dict[str, Any]:
        return {
            "leftOperand": self.left_operand,
            "operator": self.operator,
            "rightOperand": self.right_operand,
        }


class ODRLPermission(_Frozen):
    action: str = "use"
    constraints: tuple[ODRLConstraint, ...] = ()

    def to_edc_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": self.action}
        if len(self.constraints) == 1:
            payload["constraint"] = self.constraints[0].to_edc_payload()
        elif self.constraints:
            payload["constraint"] = {
                "and": [c.to_edc_payload() for c in self.constraints],
            }
        return payload


class ODRLPolicy(_Frozen):
    permissions: tuple[ODRLPermission, ...] = ()

    def to_edc_payload(self) -> dict[str, Any]:
        return {
            "@type": "odrl:Set",
            "permission": [p.to_edc_payload() for p in self.permissions],
            "prohibition": [],
            "obligation": [],
        }


class PolicyDefinition(_Frozen):
    """ODRL policy wrapper registered for a participant."""

    policy_id: str
    participant_context_id: str
    policy: ODRLPolicy

    def to_edc_payload(self) -> dict[str, Any]:
        return {
            "@context": {"odrl": ODRL_NAMESPACE, "edc": EDC_NAMESPACE},
            "@id": self.policy_id,
            "policy": self.policy.to_edc_payload(),
        }


# ---------------------------------------------------------------------------
# Contract Definition
# ---------------------------------------------------------------------------


class Criterion(_Frozen):
    """Asset selector term; only equality is supported."""

    operand_left: str
    operator: str = "="
    operand_right: str

    def matches(self, asset: Asset) -> bool:
        if self.operator != "=":
            raise ValueError(f"Unsupported criterion operator: {self.operator}")
        if self.operand_left == EDC_ID_PROPERTY:
            value: Any = asset.asset_id
        else:
            value = asset.properties.get(self.operand_left)
        return value == self.operand_right

    def to_edc_payload(self) -> dict[str, Any]:
        return {
            "@type": "Criterion",
            "operandLeft": self.operand_left,
            "operator": self.operator,
            "operandRight": self.operand_right,
        }


class ContractDefinition(_Frozen):
    """Binds an access and a contract policy to the assets its selector matches."""

    contract_id: str
    participant_context_id: str
    access_policy_id: str
    contract_policy_id: str
    assets_selector: tuple[Criterion, ...] = ()

    def selects(self, asset: Asset) -> bool:
        return all(criterion.matches(asset) for criterion in self.assets_selector)

    def to_edc_payload(self) -> dict[str, Any]:
        return {
            "@context": {"edc": EDC_NAMESPACE},
            "@id": self.contract_id,
            "accessPolicyId": self.access_policy_id,
            "contractPolicyId": self.contract_policy_id,
            "assetsSelector": [c.to_edc_payload() for c in self.assets_selector],
        }

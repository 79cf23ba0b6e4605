"""Pydantic schemas for the participant provisioning API."""

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic.alias_generators import to_camel

from provisioner.modules.participants.models import ParticipantContextState

DEFAULT_CATALOG_PROTOCOL = "dataspace-protocol-http:2025-1"
MAX_QUERY_LIMIT = 2**31 - 1


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class QuerySpec(_CamelModel):
    """Paging and sorting defaults for catalog queries."""

    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=MAX_QUERY_LIMIT, ge=1)
    sort_field: str | None = None


class CatalogQueryDefaults(_CamelModel):
    """Defaults applied when the participant later requests remote catalogs."""

    protocol: str = DEFAULT_CATALOG_PROTOCOL
    query: QuerySpec = Field(default_factory=QuerySpec)


class ParticipantManifest(_CamelModel):
    """
    Request to onboard a new participant.

    OAuth fields are optional on the wire; the provisioning flow rejects a
    manifest that lacks any of them before configuration is persisted.
    """

    participant_context_id: str
    participant_id: str | None = None
    active: bool = False
    token_url: str | None = None
    client_id: str | None = None
    client_secret: SecretStr | None = None
    client_secret_alias: str | None = None
    query_defaults: CatalogQueryDefaults | None = None


class ParticipantContextResponse(_CamelModel):
    participant_context_id: str
    state: ParticipantContextState

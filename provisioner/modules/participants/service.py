"""
Participant provisioning workflow.

Creates, in order, the participant identity, its configuration, its client
secret, its data plane registration and its seed resources. Each step only
runs once every earlier step succeeded; the first failure ends the run and
is reported together with the step it happened in.

No compensation is performed: entities created before a failing step stay
in place.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

from provisioner.core.logging import get_logger
from provisioner.modules.participants.models import (
    DataPlaneInstance,
    ParticipantConfig,
    ParticipantContext,
    ParticipantContextState,
)
from provisioner.modules.participants.ports import (
    AssetService,
    ContractDefinitionService,
    DataPlaneSelectorService,
    ParticipantConfigService,
    ParticipantContextService,
    PolicyDefinitionService,
    Vault,
)
from provisioner.modules.participants.result import (
    ServiceFailureReason,
    ServiceResult,
)
from provisioner.modules.participants.schemas import ParticipantManifest
from provisioner.modules.participants.seeding import SeedDefaults, seed_resources

logger = get_logger(__name__)


class ProvisioningStep(str, Enum):
    """States of a single provisioning run, in their only permitted order."""

    VALIDATING = "VALIDATING"
    CREATING_IDENTITY = "CREATING_IDENTITY"
    SAVING_CONFIG = "SAVING_CONFIG"
    STORING_SECRET = "STORING_SECRET"
    REGISTERING_ENDPOINT = "REGISTERING_ENDPOINT"
    SEEDING_RESOURCES = "SEEDING_RESOURCES"
    DONE = "DONE"
    FAILED = "FAILED"


_STEP_ORDER = list(ProvisioningStep)
_TERMINAL = frozenset({ProvisioningStep.DONE, ProvisioningStep.FAILED})


@dataclass(slots=True)
class ProvisioningRun:
    """Forward-only progress of one ``provision`` call."""

    participant_context_id: str
    state: ProvisioningStep = ProvisioningStep.VALIDATING
    failed_step: ProvisioningStep | None = None
    history: list[ProvisioningStep] = field(default_factory=lambda: [ProvisioningStep.VALIDATING])

    def advance(self, step: ProvisioningStep) -> None:
        if self.state in _TERMINAL:
            raise RuntimeError(f"Provisioning run already finished in state {self.state.value}")
        if step is ProvisioningStep.FAILED or _STEP_ORDER.index(step) <= _STEP_ORDER.index(
            self.state
        ):
            raise RuntimeError(f"Illegal transition {self.state.value} -> {step.value}")
        self.state = step
        self.history.append(step)

    def fail(self) -> ProvisioningStep:
        if self.state in _TERMINAL:
            raise RuntimeError(f"Provisioning run already finished in state {self.state.value}")
        self.failed_step = self.state
        self.state = ProvisioningStep.FAILED
        self.history.append(ProvisioningStep.FAILED)
        return self.failed_step


@dataclass(frozen=True, slots=True)
class ProvisionFailure:
    step: ProvisioningStep
    reason: ServiceFailureReason
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    """Locator of the new participant, or the single failure that stopped the run."""

    locator: str | None = None
    failure: ProvisionFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, locator: str) -> ProvisionResult:
        return cls(locator=locator)

    @classmethod
    def failed_at(
        cls, step: ProvisioningStep, reason: ServiceFailureReason, detail: str | None = None
    ) -> ProvisionResult:
        return cls(failure=ProvisionFailure(step=step, reason=reason, detail=detail))


@dataclass(frozen=True, slots=True)
class ProvisioningDefaults:
    dataplane_url: str = "http://dataplane.edc-v.cluster.svc.local:8083/api/control/v1/dataflows"
    dataplane_source_type: str = "HttpData"
    dataplane_transfer_type: str = "HttpData-PULL"
    seed: SeedDefaults = field(default_factory=SeedDefaults)


def encode_participant_locator(participant_context_id: str) -> str:
    """URL-safe base64 of the participant context id, usable as a path segment."""
    return base64.urlsafe_b64encode(participant_context_id.encode("utf-8")).decode("ascii")


def decode_participant_locator(locator: str) -> str:
    """Inverse of :func:`encode_participant_locator`; raises ``ValueError`` if malformed."""
    try:
        raw = base64.b64decode(locator.encode("ascii"), altchars=b"-_", validate=True)
        participant_context_id = raw.decode("utf-8")
    except (binascii.Error, UnicodeError) as exc:
        raise ValueError(f"Malformed participant locator: {locator!r}") from exc
    if not participant_context_id:
        raise ValueError("Participant locator is empty")
    if encode_participant_locator(participant_context_id) != locator:
        raise ValueError(f"Non-canonical participant locator: {locator!r}")
    return participant_context_id


def build_participant_config(manifest: ParticipantManifest) -> ServiceResult[ParticipantConfig]:
    """
    Build the five-entry participant configuration from a manifest.

    Fails with ``BAD_REQUEST`` naming every missing field instead of building
    a partial configuration. The client secret value is checked here too
    because the vault step needs it.
    """
    required = {
        "tokenUrl": manifest.token_url,
        "clientId": manifest.client_id,
        "clientSecretAlias": manifest.client_secret_alias,
        "participantId": manifest.participant_id,
        "clientSecret": (
            manifest.client_secret.get_secret_value() if manifest.client_secret else None
        ),
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        return ServiceResult.bad_request(*(f"Missing required field: {name}" for name in missing))
    return ServiceResult.success(
        ParticipantConfig(
            token_url=manifest.token_url,
            client_id=manifest.client_id,
            client_secret_alias=manifest.client_secret_alias,
            issuer_id=manifest.participant_id,
            participant_id=manifest.participant_id,
        )
    )


class ProvisioningOrchestrator:
    """Runs the provisioning workflow against injected capability services."""

    def __init__(
        self,
        *,
        participant_contexts: ParticipantContextService,
        config_service: ParticipantConfigService,
        vault: Vault,
        dataplane_selector: DataPlaneSelectorService,
        asset_service: AssetService,
        policy_service: PolicyDefinitionService,
        contract_definition_service: ContractDefinitionService,
        defaults: ProvisioningDefaults | None = None,
    ) -> None:
        self._participant_contexts = participant_contexts
        self._config_service = config_service
        self._vault = vault
        self._dataplane_selector = dataplane_selector
        self._asset_service = asset_service
        self._policy_service = policy_service
        self._contract_definition_service = contract_definition_service
        self._defaults = defaults or ProvisioningDefaults()

    async def provision(self, manifest: ParticipantManifest) -> ProvisionResult:
        participant_context_id = manifest.participant_context_id
        run = ProvisioningRun(participant_context_id=participant_context_id)
        log = logger.bind(participant_context_id=participant_context_id)
        log.info("participant_provisioning_started", active=manifest.active)

        def failed(reason: ServiceFailureReason, detail: str | None = None) -> ProvisionResult:
            step = run.fail()
            log.warning(
                "provisioning_step_failed",
                step=step.value,
                reason=reason.value,
                detail=detail,
            )
            return ProvisionResult.failed_at(step, reason, detail)

        if not participant_context_id.strip():
            return failed(
                ServiceFailureReason.BAD_REQUEST, "participantContextId must not be empty"
            )

        run.advance(ProvisioningStep.CREATING_IDENTITY)
        context = ParticipantContext(
            participant_context_id=participant_context_id,
            state=(
                ParticipantContextState.ACTIVATED
                if manifest.active
                else ParticipantContextState.CREATED
            ),
        )
        identity_result = await self._participant_contexts.create_participant_context(context)
        if identity_result.failure:
            return failed(identity_result.failure.reason, identity_result.failure_detail)

        run.advance(ProvisioningStep.SAVING_CONFIG)
        config_result = build_participant_config(manifest)
        if config_result.failure:
            return failed(config_result.failure.reason, config_result.failure_detail)
        save_result = await self._config_service.save(
            participant_context_id, config_result.content.entries()
        )
        if save_result.failure:
            return failed(save_result.failure.reason, save_result.failure_detail)

        run.advance(ProvisioningStep.STORING_SECRET)
        secret_result = await self._vault.store_secret(
            manifest.client_secret_alias,
            manifest.client_secret.get_secret_value(),
        )
        if secret_result.failed:
            # Vault failures carry no usable reason or detail.
            return failed(ServiceFailureReason.UNEXPECTED)

        run.advance(ProvisioningStep.REGISTERING_ENDPOINT)
        instance = DataPlaneInstance(
            instance_id=str(uuid4()),
            participant_context_id=participant_context_id,
            url=self._defaults.dataplane_url,
            allowed_source_types=frozenset({self._defaults.dataplane_source_type}),
            allowed_transfer_types=frozenset({self._defaults.dataplane_transfer_type}),
        )
        dataplane_result = await self._dataplane_selector.add_instance(instance)
        if dataplane_result.failed:
            return failed(ServiceFailureReason.UNEXPECTED, dataplane_result.failure_detail)

        run.advance(ProvisioningStep.SEEDING_RESOURCES)
        seed_result = await seed_resources(
            participant_context_id,
            asset_service=self._asset_service,
            policy_service=self._policy_service,
            contract_definition_service=self._contract_definition_service,
            defaults=self._defaults.seed,
        )
        if seed_result.failure:
            return failed(seed_result.failure.reason, seed_result.failure_detail)

        run.advance(ProvisioningStep.DONE)
        log.info("participant_provisioned", dataplane_id=instance.instance_id)
        return ProvisionResult.success(encode_participant_locator(participant_context_id))

    async def get_participant(self, locator: str) -> ServiceResult[ParticipantContext]:
        """Resolve a locator returned by :meth:`provision` to the stored identity."""
        try:
            participant_context_id = decode_participant_locator(locator)
        except ValueError as exc:
            return ServiceResult.bad_request(str(exc))
        return await self._participant_contexts.get_participant_context(participant_context_id)

"""
Participant provisioning API endpoints.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from provisioner.modules.participants.result import ServiceFailure, http_status_for_reason
from provisioner.modules.participants.schemas import (
    ParticipantContextResponse,
    ParticipantManifest,
)
from provisioner.modules.participants.service import ProvisionFailure, ProvisioningOrchestrator

router = APIRouter()


def get_orchestrator(request: Request) -> ProvisioningOrchestrator:
    return request.app.state.orchestrator


Orchestrator = Annotated[ProvisioningOrchestrator, Depends(get_orchestrator)]


def _provision_error(failure: ProvisionFailure) -> HTTPException:
    return HTTPException(
        status_code=http_status_for_reason(failure.reason),
        detail={
            "code": failure.reason.value,
            "step": failure.step.value,
            "message": failure.detail,
        },
    )


def _lookup_error(failure: ServiceFailure) -> HTTPException:
    return HTTPException(
        status_code=http_status_for_reason(failure.reason),
        detail={"code": failure.reason.value, "message": failure.detail},
    )


_CREATE_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"description": "Manifest is incomplete"},
    409: {"description": "Participant context already exists"},
    500: {"description": "A provisioning step failed unexpectedly"},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    include_in_schema=False,
)
@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    responses=_CREATE_RESPONSES,
)
async def create_participant(
    manifest: ParticipantManifest,
    orchestrator: Orchestrator,
    request: Request,
) -> Response:
    """
    Provision a participant: identity, configuration, client secret,
    data plane registration and seed resources.

    Returns ``201 Created`` with a ``Location`` header and no body.
    """
    result = await orchestrator.provision(manifest)
    if result.failure:
        raise _provision_error(result.failure)

    location = request.url_for("get_participant", locator=result.locator)
    return Response(
        status_code=status.HTTP_201_CREATED,
        headers={"Location": str(location)},
    )


@router.get("/{locator}", response_model=ParticipantContextResponse)
async def get_participant(locator: str, orchestrator: Orchestrator) -> ParticipantContextResponse:
    """Read the identity of a provisioned participant by its locator."""
    result = await orchestrator.get_participant(locator)
    if result.failure:
        raise _lookup_error(result.failure)
    context = result.content
    return ParticipantContextResponse(
        participant_context_id=context.participant_context_id,
        state=context.state,
    )

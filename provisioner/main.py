"""
FastAPI application entry point.
Configures the management API, routers, and lifecycle events.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from provisioner.core.config import get_settings
from provisioner.core.logging import configure_logging, get_logger
from provisioner.modules.participants.router import router as participants_router
from provisioner.modules.participants.service import ProvisioningOrchestrator
from provisioner.modules.participants.wiring import (
    ProvisioningRuntime,
    build_provisioning_runtime,
)

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and release remote clients on shutdown."""
    settings = get_settings()
    logger.info(
        "starting_application",
        environment=settings.environment,
        version=settings.version,
        management_api_path=settings.management_api_path,
    )

    yield

    runtime: ProvisioningRuntime = app.state.runtime
    await runtime.close()
    logger.info("application_shutdown_complete")


def create_application(orchestrator: ProvisioningOrchestrator | None = None) -> FastAPI:
    """
    Application factory function.

    Wires the provisioning orchestrator from settings unless one is passed
    in, and mounts the participants router under the management API path.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        openapi_url=f"{settings.management_api_path}/openapi.json",
        docs_url=f"{settings.management_api_path}/docs",
        lifespan=lifespan,
    )

    runtime = (
        ProvisioningRuntime(orchestrator=orchestrator)
        if orchestrator is not None
        else build_provisioning_runtime(settings)
    )
    app.state.runtime = runtime
    app.state.orchestrator = runtime.orchestrator

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, object]:
        checks: dict[str, str] = {}

        if runtime.edc_client is not None:
            edc_result = await runtime.edc_client.check_health()
            checks["edc"] = "unavailable" if "error_message" in edc_result else "ok"

        overall = "healthy" if all(v == "ok" for v in checks.values()) else "degraded"
        return {"status": overall, "version": settings.version, "checks": checks}

    app.include_router(
        participants_router,
        prefix=settings.participants_api_prefix,
        tags=["Participants"],
    )

    return app

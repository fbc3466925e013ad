"""
Health Check Routes - System health and monitoring endpoints.

These endpoints are used for:
1. Load balancer health checks
2. Kubernetes liveness/readiness probes
3. Checking which AI providers are configured
"""
from datetime import datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from chatrelay import __version__
from chatrelay.api.dependencies import AppSettings, Orchestrator, Store
from chatrelay.core.exceptions import StoreError
from chatrelay.core.logging_config import get_logger
from chatrelay.llm.providers import PROVIDER_CLASSES
from chatrelay.models.chat import HealthResponse, ProvidersHealthResponse

logger = get_logger(__name__)

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description="""
    Returns the current health status of the service.

    Use this endpoint for:
    - Load balancer health checks
    - Kubernetes probes
    - Monitoring dashboards

    Returns 200 OK if the service is healthy.
    """
)
async def health_check() -> HealthResponse:
    """
    Perform a basic health check.

    This endpoint verifies that the API is running and responsive.
    It does not touch the store or any provider.
    """
    logger.debug("Health check requested")

    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.utcnow()
    )


@router.get(
    "/ready",
    response_model=HealthResponse,
    summary="Readiness check endpoint",
    description="""
    Returns whether the service is ready to accept requests.

    Verifies that the conversation store answers a query.
    Returns 503 when it does not.
    """
)
def readiness_check(store: Store):
    """Perform a readiness check against the conversation store."""
    logger.debug("Readiness check requested")

    try:
        store.get_stats()
    except StoreError as e:
        logger.error(f"Readiness check failed: {e.message}")
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "version": __version__,
                     "timestamp": datetime.utcnow().isoformat()},
        )

    return HealthResponse(
        status="ready",
        version=__version__,
        timestamp=datetime.utcnow()
    )


@router.get(
    "/providers",
    response_model=ProvidersHealthResponse,
    summary="AI provider configuration",
    description="""
    Reports which AI vendors have a credential configured and the candidate
    order the router will try. Credentials themselves are never returned.
    """
)
def providers_check(settings: AppSettings, orchestrator: Orchestrator) -> ProvidersHealthResponse:
    configured = set(settings.configured_providers())
    providers = {name: name in configured for name in PROVIDER_CLASSES}
    candidates = [c.label for c in orchestrator.router.candidates]

    return ProvidersHealthResponse(
        status="healthy" if candidates else "degraded",
        providers=providers,
        candidates=candidates,
        storage=orchestrator.store.storage,
    )

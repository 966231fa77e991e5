"""
Health Check Endpoints
"""
from fastapi import APIRouter, Depends

from farescope.services.providers.base import FlightProvider, ProviderStatus
from farescope.utils.dependencies import get_provider

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "farescope-api"}


@router.get("/health/ready")
async def readiness_check(provider: FlightProvider = Depends(get_provider)):
    """
    Readiness check - verifies the flight provider can be used
    """
    checks = {
        "provider": provider.name,
        "provider_status": provider.status.value,
        "provider_reachable": False,
    }

    # Too many consecutive failures; don't hit the provider again
    if not provider.is_available:
        return {"status": "unavailable", "checks": checks}

    try:
        checks["provider_reachable"] = await provider.health_check()
    except Exception as e:
        checks["provider_error"] = str(e)

    ready = checks["provider_reachable"] and provider.status == ProviderStatus.HEALTHY

    return {
        "status": "ready" if ready else "degraded",
        "checks": checks
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness check - is the service running"""
    return {"status": "alive"}

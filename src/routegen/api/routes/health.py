"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from ...services.routing.osrm_client import OSRMClient
from .dependencies import get_route_finder

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root(request: Request) -> dict:
    """Liveness check. Does not create or call the routing provider."""
    route_finder = getattr(request.app.state, "route_finder", None)
    return {
        "status": "healthy",
        "service": "route-service",
        "provider": route_finder.name if route_finder is not None else OSRMClient.name,
    }


@router.get("/health/backend", status_code=status.HTTP_200_OK)
def health_backend(route_finder=Depends(get_route_finder)) -> dict:
    """Check routing backend reachability."""
    check = getattr(route_finder, "check_health", None)
    if check is None:
        return {"provider": route_finder.name, "healthy": None}
    return {"provider": route_finder.name, "healthy": bool(check())}

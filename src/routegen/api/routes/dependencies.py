"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from ...services.routing.osrm_client import OSRMClient
from ...services.routing.route_finder import RouteFinder


def get_route_finder(request: Request) -> RouteFinder:
    """Return the app's routing provider, creating the OSRM client on first use."""
    finder = getattr(request.app.state, "route_finder", None)
    if finder is None:
        try:
            finder = OSRMClient()
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Routing provider is not configured. Set ROUTEGEN_OSRM_BASE_URL.",
            ) from exc
        request.app.state.route_finder = finder
    return finder

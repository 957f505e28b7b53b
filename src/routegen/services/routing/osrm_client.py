"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx
from pydantic import ValidationError

from ...config import settings
from ...models.domain import Coordinate
from ...schemas.routing import RouteFinderRequest, RouteFinderResponse

logger = logging.getLogger(__name__)

MAX_CONNECT_SECONDS = 10.0

_PROFILE_ALIASES = {
    "driving": "car",
    "car": "car",
    "biking": "bike",
    "bike": "bike",
    "bicycle": "bike",
    "walking": "foot",
    "foot": "foot",
    "pedestrian": "foot",
}


def map_profile(profile: str | None) -> str:
    """Map a generic travel profile onto an OSRM profile name. Unknown values fall back to car."""
    return _PROFILE_ALIASES.get((profile or "").lower(), "car")


def parse_route_response(response: httpx.Response) -> RouteFinderResponse:
    """Parse a route body, tolerating error statuses that still carry a route `code`.

    OSRM answers domain failures such as NoRoute with a 4xx status and a JSON
    body, which must reach the caller as a response rather than a transport error.
    """
    try:
        return RouteFinderResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        response.raise_for_status()
        raise


class OSRMClient:
    name = "osrm"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.transport = transport

    def _get_client(self, timeout: float | None = None) -> httpx.Client:
        """Get a per-call HTTP client so worker threads never share connections."""
        effective = timeout or self.timeout
        return httpx.Client(
            timeout=httpx.Timeout(effective, connect=min(effective, MAX_CONNECT_SECONDS)),
            transport=self.transport,
        )

    def _route(self, coordinates: Sequence[Coordinate], profile: str, timeout: float | None) -> RouteFinderResponse:
        # OSRM route endpoint expects coordinates as "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{c.longitude:.6f},{c.latitude:.6f}" for c in coordinates)
        params = {
            "overview": "full",
            "steps": "true",
            "annotations": "true",
            "geometries": "polyline",
        }
        url = f"{self.base_url}/route/v1/{map_profile(profile)}/{coordinate_str}"

        with self._get_client(timeout) as client:
            response = client.get(url, params=params)
        return parse_route_response(response)

    def find_route(self, request: RouteFinderRequest, *, timeout: float | None = None) -> RouteFinderResponse:
        """Get the route between the request's start and end coordinates."""
        return self._route([request.start.to_domain(), request.end.to_domain()], request.profile, timeout)

    def find_route_with_waypoints(
        self, waypoints: Sequence[Coordinate], profile: str, *, timeout: float | None = None
    ) -> RouteFinderResponse:
        """Get a route visiting every waypoint in order."""
        if len(waypoints) < 2:
            raise ValueError("At least two waypoints are required for OSRM route.")
        return self._route(waypoints, profile, timeout)

    def check_health(self) -> bool:
        """Check OSRM health with a minimal two-point route request.

        Public OSRM endpoints may not have a /health endpoint, so connectivity is
        tested with a short route in Berlin.
        """
        probe = RouteFinderRequest.model_validate(
            {
                "start": {"latitude": 52.517037, "longitude": 13.388860},
                "end": {"latitude": 52.496891, "longitude": 13.385983},
            }
        )
        try:
            return self.find_route(probe, timeout=5.0).code == "Ok"
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"OSRM health check failed: {exc}")
            return False

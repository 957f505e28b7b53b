"""Route Finder contract and the route-service HTTP client."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import httpx

from ...config import settings
from ...errors import ConfigurationError
from ...models.domain import Coordinate
from ...schemas.routing import CoordinateModel, RouteFinderRequest, RouteFinderResponse, WaypointsRequest
from .osrm_client import MAX_CONNECT_SECONDS, OSRMClient, parse_route_response

logger = logging.getLogger(__name__)


class RouteFinder(Protocol):
    """Anything that can turn a coordinate pair into an OSRM-style route response."""

    name: str
    base_url: str

    def find_route(self, request: RouteFinderRequest, *, timeout: float | None = None) -> RouteFinderResponse:
        ...

    def find_route_with_waypoints(
        self, waypoints: Sequence[Coordinate], profile: str, *, timeout: float | None = None
    ) -> RouteFinderResponse:
        ...

    def check_health(self) -> bool:
        ...


class RouteServiceClient:
    """Client for the route service front-end (`POST /api/v1/route`)."""

    name = "route-service"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.route_service_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.transport = transport

    def _get_client(self, timeout: float | None = None) -> httpx.Client:
        effective = timeout or self.timeout
        return httpx.Client(
            timeout=httpx.Timeout(effective, connect=min(effective, MAX_CONNECT_SECONDS)),
            transport=self.transport,
        )

    def _post(self, path: str, payload: dict, timeout: float | None) -> RouteFinderResponse:
        with self._get_client(timeout) as client:
            response = client.post(f"{self.base_url}{path}", json=payload)
        return parse_route_response(response)

    def find_route(self, request: RouteFinderRequest, *, timeout: float | None = None) -> RouteFinderResponse:
        return self._post("/api/v1/route", request.model_dump(), timeout)

    def find_route_with_waypoints(
        self, waypoints: Sequence[Coordinate], profile: str, *, timeout: float | None = None
    ) -> RouteFinderResponse:
        payload = WaypointsRequest(
            waypoints=[CoordinateModel.from_domain(point) for point in waypoints],
            profile=profile,
        )
        return self._post("/api/v1/route/waypoints", payload.model_dump(), timeout)

    def check_health(self) -> bool:
        try:
            with self._get_client(5.0) as client:
                response = client.get(f"{self.base_url}/health")
            response.raise_for_status()
            return response.json().get("status") == "healthy"
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"Route service health check failed: {exc}")
            return False


def create_route_finder(
    provider: str | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
) -> RouteFinder:
    provider = provider or settings.route_provider
    match provider:
        case "route-service":
            return RouteServiceClient(base_url=base_url, timeout=timeout)
        case "osrm" | "local-osrm" | "localosrm":
            try:
                return OSRMClient(base_url=base_url, timeout=timeout)
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
        case _:
            raise ConfigurationError(f"unknown route provider: {provider}")

"""Route finding endpoints."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from ...schemas.routing import RouteFinderRequest, RouteFinderResponse, WaypointsRequest
from ...services.routing.route_finder import RouteFinder
from .dependencies import get_route_finder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["routes"])

NO_ROUTE_MESSAGE = "no route found between the specified coordinates"


def _respond(response: RouteFinderResponse) -> RouteFinderResponse | JSONResponse:
    if response.code == "NoRoute" or (response.code == "Ok" and not response.routes):
        body = RouteFinderResponse(code="NoRoute", message=response.message or NO_ROUTE_MESSAGE)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=body.model_dump(mode="json"))
    if response.code != "Ok":
        logger.warning(f"Routing provider returned {response.code}: {response.message}")
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=response.model_dump(mode="json"))
    return response


@router.get("/provider", status_code=status.HTTP_200_OK)
def provider(route_finder: RouteFinder = Depends(get_route_finder)) -> dict:
    return {"provider": route_finder.name}


@router.post("/route", response_model=RouteFinderResponse, status_code=status.HTTP_200_OK)
def find_route(payload: RouteFinderRequest, route_finder: RouteFinder = Depends(get_route_finder)):
    try:
        response = route_finder.find_route(payload)
    except (httpx.HTTPError, ValueError) as exc:
        logger.error(f"Error finding route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to find route: {exc}",
        ) from exc
    return _respond(response)


@router.post("/route/waypoints", response_model=RouteFinderResponse, status_code=status.HTTP_200_OK)
def find_route_with_waypoints(payload: WaypointsRequest, route_finder: RouteFinder = Depends(get_route_finder)):
    if len(payload.waypoints) < 2:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least 2 waypoints required")
    try:
        response = route_finder.find_route_with_waypoints(
            [point.to_domain() for point in payload.waypoints],
            payload.profile,
        )
    except (httpx.HTTPError, ValueError) as exc:
        logger.error(f"Error finding route with waypoints: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to find route: {exc}",
        ) from exc
    return _respond(response)

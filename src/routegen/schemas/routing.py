"""Route Finder request/response schemas (OSRM-compatible)."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import DEFAULT_PROFILE, Coordinate, RouteRequest


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    @classmethod
    def from_domain(cls, coordinate: Coordinate) -> "CoordinateModel":
        return cls(latitude=coordinate.latitude, longitude=coordinate.longitude)

    def to_domain(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class RouteFinderRequest(BaseModel):
    start: CoordinateModel
    end: CoordinateModel
    profile: str = DEFAULT_PROFILE

    @classmethod
    def from_domain(cls, request: RouteRequest) -> "RouteFinderRequest":
        return cls(
            start=CoordinateModel.from_domain(request.start),
            end=CoordinateModel.from_domain(request.end),
            profile=request.profile,
        )


class WaypointsRequest(BaseModel):
    waypoints: List[CoordinateModel]
    profile: str = DEFAULT_PROFILE


class ManeuverModel(BaseModel):
    type: str = ""
    modifier: Optional[str] = None
    location: List[float] = Field(default_factory=list, description="[longitude, latitude]")
    bearing_before: Optional[int] = None
    bearing_after: Optional[int] = None


class StepModel(BaseModel):
    distance: float = 0.0
    duration: float = 0.0
    geometry: str = ""
    instruction: str = ""
    name: str = ""
    maneuver: Optional[ManeuverModel] = None


class AnnotationModel(BaseModel):
    duration: Optional[List[float]] = None
    distance: Optional[List[float]] = None
    speed: Optional[List[float]] = None


class LegModel(BaseModel):
    steps: List[StepModel] = Field(default_factory=list)
    distance: float = 0.0
    duration: float = 0.0
    summary: str = ""
    annotation: Optional[AnnotationModel] = None


class RouteModel(BaseModel):
    geometry: str = ""
    legs: List[LegModel] = Field(default_factory=list)
    distance: float = Field(..., description="Total distance in meters.")
    duration: float = Field(..., description="Total duration in seconds.")
    weight_name: str = ""
    weight: float = 0.0
    summary: str = ""


class WaypointModel(BaseModel):
    name: str = ""
    location: List[float] = Field(default_factory=list)
    distance: float = 0.0
    hint: str = ""


class RouteFinderResponse(BaseModel):
    code: str
    message: Optional[str] = None
    routes: List[RouteModel] = Field(default_factory=list)
    waypoints: Optional[List[WaypointModel]] = None

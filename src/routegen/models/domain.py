"""Domain models for route requests and their outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..errors import RouteGenerationError
    from ..schemas.routing import RouteModel

DEFAULT_PROFILE = "car"


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point."""

    latitude: float
    longitude: float

    def validate(self) -> None:
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"latitude must be between -90 and 90, got {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"longitude must be between -180 and 180, got {self.longitude}")


@dataclass(frozen=True, slots=True)
class RouteRequest:
    """A single origin/destination query, immutable once generated."""

    id: int
    start: Coordinate
    end: Coordinate
    profile: str = DEFAULT_PROFILE

    def __post_init__(self) -> None:
        self.start.validate()
        self.end.validate()


@dataclass(slots=True)
class RouteResult:
    """Outcome for one RouteRequest: a route on success, an error otherwise."""

    id: int
    route: Optional["RouteModel"] = None
    error: Optional["RouteGenerationError"] = None
    attempts: int = 0

    @property
    def success(self) -> bool:
        return self.error is None and self.route is not None

"""Schemas for persisted run artifacts."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .routing import RouteFinderRequest, RouteModel


class RouteMetadata(BaseModel):
    id: int
    generated_at: datetime
    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float
    profile: str
    distance: float = 0.0
    duration: float = 0.0
    success: bool
    attempts: int = 0
    error_message: Optional[str] = None


class RouteData(BaseModel):
    """Contents of one `route_NNNNNN.json` artifact."""

    metadata: RouteMetadata
    request: RouteFinderRequest
    route: Optional[RouteModel] = None


class RunSummary(BaseModel):
    total_routes: int
    successful_routes: int
    failed_routes: int
    success_rate: float
    duration_seconds: float
    generated_at: datetime
    method: str
    country: Optional[str] = None
    location_count: Optional[int] = None
    persistence_errors: List[str] = Field(default_factory=list)

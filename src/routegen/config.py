"""Application configuration and settings management."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEGEN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Route Generator"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for generated outputs.")
    log_level: str = Field(default="INFO", description="Root log level for CLI and server.")
    route_provider: Literal["route-service", "osrm"] = Field(
        default="route-service",
        description="Route Finder backend used by the generator.",
    )
    route_service_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the route service front-end (e.g., http://localhost:8080).",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    request_timeout_seconds: float = Field(default=10.0, gt=0.0)
    max_concurrent_requests: int = Field(default=10, ge=1)
    max_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=1.0, ge=0.0)
    shutdown_grace_seconds: float = Field(default=5.0, ge=0.0)

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()


settings = Settings()


class Location(BaseModel):
    name: str
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class CountryBounds(BaseModel):
    min_lat: float = Field(..., ge=-90, le=90)
    max_lat: float = Field(..., ge=-90, le=90)
    min_lng: float = Field(..., ge=-180, le=180)
    max_lng: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def _check_ordering(self) -> "CountryBounds":
        if self.min_lat > self.max_lat:
            raise ValueError("min_lat must not exceed max_lat")
        if self.min_lng > self.max_lng:
            raise ValueError("min_lng must not exceed max_lng")
        return self


class RouteServiceConfig(BaseModel):
    base_url: Optional[str] = Field(
        default=None,
        description="Route Finder base URL. Defaults to the provider's URL from settings.",
    )
    provider: Literal["route-service", "osrm"] = Field(default_factory=lambda: settings.route_provider)
    timeout_seconds: float = Field(default_factory=lambda: settings.request_timeout_seconds)
    max_concurrent_requests: int = Field(default_factory=lambda: settings.max_concurrent_requests)
    deadline_seconds: Optional[float] = Field(
        default=None,
        description="Overall batch deadline. No new requests are dispatched once it passes.",
    )

    @field_validator("timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be positive")
        return value

    @field_validator("max_concurrent_requests")
    @classmethod
    def _positive_concurrency(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_concurrent_requests must be positive")
        return value


class OutputConfig(BaseModel):
    directory: Optional[Path] = Field(
        default=None,
        description="Output root. Defaults to the configured data root.",
    )


class GeneratorConfig(BaseModel):
    """Batch run parameters, mirrored from the `route_generator` YAML section."""

    route_count: int
    method: Literal["random", "permutation"]
    country: Optional[str] = None
    country_bounds: dict[str, CountryBounds] = Field(default_factory=dict)
    location_set: list[Location] = Field(default_factory=list)
    route_service: RouteServiceConfig = Field(default_factory=RouteServiceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    random_seed: int = 0
    profile: str = "car"

    @model_validator(mode="after")
    def _validate_method(self) -> "GeneratorConfig":
        if self.route_count <= 0:
            raise ValueError("route_count must be positive")
        if self.method == "random" and (self.country is None or self.country not in self.country_bounds):
            raise ValueError(f"country bounds not defined for {self.country}")
        if self.method == "permutation" and len(self.location_set) < 2:
            raise ValueError("location_set must contain at least 2 locations for permutation method")
        return self

    def summary_context(self) -> dict[str, Any]:
        if self.method == "random":
            return {"country": self.country}
        return {"location_count": len(self.location_set)}


def load_generator_config(path: Path | str) -> GeneratorConfig:
    """Load and validate a generator run configuration from a YAML file."""

    config_path = Path(path)
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"failed to read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"failed to parse config file {config_path}: {exc}") from exc

    if not isinstance(raw, dict) or not isinstance(raw.get("route_generator"), dict):
        raise ConfigurationError(f"{config_path} has no 'route_generator' section")

    try:
        return GeneratorConfig.model_validate(raw["route_generator"])
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc

"""Error taxonomy for the route generation pipeline."""

from __future__ import annotations


class RouteGenerationError(Exception):
    """Base class for every error raised by the pipeline."""


class ConfigurationError(RouteGenerationError):
    """Missing or invalid generation parameters. Fatal before dispatch."""


class RetryableRequestError(RouteGenerationError):
    """Transient Route Finder failure that survived every retry."""


class RouteNotFoundError(RouteGenerationError):
    """The Route Finder reported that no route exists between the endpoints."""

    def __init__(self, message: str = "no route found") -> None:
        super().__init__(message)


class BatchCancelledError(RouteGenerationError):
    """Dispatch stopped because the deadline passed or a shutdown was requested."""


class StoreError(RouteGenerationError):
    """Base class for result store failures."""


class PersistenceError(StoreError):
    """A single artifact could not be written."""

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"failed to persist '{key}': {cause}")
        self.key = key
        self.cause = cause


class DuplicateResultError(StoreError):
    """A result for the same request ID was recorded twice."""


class StoreFinalizedError(StoreError):
    """The store no longer accepts writes of this kind."""

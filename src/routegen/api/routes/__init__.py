"""Route group exports."""

from . import health, routes, runs

__all__ = ["health", "routes", "runs"]

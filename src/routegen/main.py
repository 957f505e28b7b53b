"""FastAPI application entry point for the route service."""

from __future__ import annotations

from fastapi import FastAPI

from .api.routes import health, routes, runs
from .config import settings
from .services.routing.route_finder import RouteFinder


def create_app(route_finder: RouteFinder | None = None) -> FastAPI:
    app = FastAPI(title=settings.app_name)
    app.state.route_finder = route_finder

    app.include_router(health.router)
    app.include_router(routes.router, prefix=settings.api_prefix)
    app.include_router(runs.router, prefix=settings.api_prefix)
    return app


app = create_app()

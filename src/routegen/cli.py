"""Command-line interface for the route generator.

Usage:
    # Generate routes from a YAML run configuration
    routegen generate --config config.yaml

    # Serve the route service front-end
    routegen serve --port 8080

    # Check Route Finder connectivity
    routegen check
"""

from __future__ import annotations

import signal
import threading
from pathlib import Path
from typing import Annotated, Optional

import typer

from . import __version__
from .config import load_generator_config, settings
from .errors import ConfigurationError
from .logging_setup import configure_logging

app = typer.Typer(
    name="routegen",
    help="Generate and persist routes against an external routing backend.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"routegen {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit."),
    ] = None,
    log_level: Annotated[str, typer.Option("--log-level", help="Root log level.")] = settings.log_level,
) -> None:
    configure_logging(log_level)


def _install_signal_handlers(cancel_event: threading.Event) -> dict:
    def _handle(signum: int, _frame) -> None:
        typer.echo(f"Received signal {signum}, stopping dispatch...", err=True)
        cancel_event.set()

    return {signum: signal.signal(signum, _handle) for signum in (signal.SIGINT, signal.SIGTERM)}


@app.command()
def generate(
    config_file: Annotated[
        Path,
        typer.Option("--config", "-c", help="Path to YAML run configuration.", dir_okay=False, resolve_path=True),
    ] = Path("config.yaml"),
) -> None:
    """Generate route requests, resolve them and persist the results."""
    from .services.pipeline import run_generation

    try:
        config = load_generator_config(config_file)
    except ConfigurationError as exc:
        typer.secho(f"Failed to load configuration: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Method: {config.method}, Route count: {config.route_count}")
    cancel_event = threading.Event()
    previous_handlers = _install_signal_handlers(cancel_event)

    try:
        report = run_generation(config, cancel_event=cancel_event)
    except ConfigurationError as exc:
        typer.secho(f"Invalid configuration: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    except OSError as exc:
        typer.secho(f"Output directory unavailable: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)

    typer.echo(f"Output directory: {report.run_dir}")
    typer.echo(
        f"Saved {report.total} routes ({report.successful} successful, {report.failed} failed), "
        f"success rate: {report.summary.success_rate:.2f}%"
    )
    if report.persistence_errors:
        typer.secho(f"{len(report.persistence_errors)} artifacts could not be written", fg=typer.colors.YELLOW)
    if report.cancelled:
        typer.secho("Run was cancelled before all routes were dispatched", fg=typer.colors.YELLOW)
        raise typer.Exit(130)


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address.")] = "0.0.0.0",
    port: Annotated[int, typer.Option("--port", help="Port to listen on.", min=1, max=65535)] = 8080,
) -> None:
    """Run the route service HTTP front-end."""
    import uvicorn

    from .main import create_app

    uvicorn.run(create_app(), host=host, port=port, proxy_headers=True, forwarded_allow_ips="*")


@app.command()
def check(
    provider: Annotated[Optional[str], typer.Option("--provider", help="route-service or osrm.")] = None,
    base_url: Annotated[Optional[str], typer.Option("--base-url", help="Backend base URL.")] = None,
) -> None:
    """Check Route Finder connectivity."""
    from .services.routing.route_finder import create_route_finder

    try:
        finder = create_route_finder(provider, base_url)
    except ConfigurationError as exc:
        typer.secho(f"[ERROR] {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    if finder.check_health():
        typer.echo(f"[OK] {finder.name} at {finder.base_url} is healthy")
        return
    typer.secho(f"[ERROR] {finder.name} at {finder.base_url} is not responding", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


if __name__ == "__main__":
    app()

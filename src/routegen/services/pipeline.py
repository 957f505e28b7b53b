"""Route generation orchestration service."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path

from ..config import GeneratorConfig
from ..errors import PersistenceError
from ..persistence.filesystem import FileStorage
from ..schemas.outputs import RunSummary
from .generation.generator import RequestGenerator
from .routing.processor import RouteProcessor
from .routing.route_finder import RouteFinder, create_route_finder
from .storage.store import ResultStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GenerationReport:
    run_dir: Path
    total: int
    successful: int
    failed: int
    summary: RunSummary
    cancelled: bool = False
    persistence_errors: list[PersistenceError] = field(default_factory=list)


def run_generation(
    config: GeneratorConfig,
    *,
    route_finder: RouteFinder | None = None,
    storage: FileStorage | None = None,
    processor: RouteProcessor | None = None,
    cancel_event: threading.Event | None = None,
) -> GenerationReport:
    """Generate requests, resolve them against the Route Finder and persist every outcome.

    Configuration errors and an unavailable output directory abort the run before
    dispatch. Everything after that degrades to per-route failures.
    """
    requests = RequestGenerator(config).generate()

    service = config.route_service
    if route_finder is None:
        route_finder = create_route_finder(service.provider, service.base_url, service.timeout_seconds)
    if processor is None:
        processor = RouteProcessor(route_finder)
    storage = storage or FileStorage(root=config.output.directory)
    run_dir = storage.make_run_directory(prefix=f"routes_{config.method}")
    logger.info(f"Output directory: {run_dir}", extra={"run_dir": str(run_dir)})

    store = ResultStore(storage.sink_for(run_dir))
    cancel_event = cancel_event if cancel_event is not None else threading.Event()

    started = time.monotonic()
    results = processor.submit(
        requests,
        service.max_concurrent_requests,
        per_attempt_timeout=service.timeout_seconds,
        overall_deadline=service.deadline_seconds,
        cancel_event=cancel_event,
        on_result=store.record_result,
    )
    elapsed = time.monotonic() - started

    store.finalize_index()
    summary = store.finalize_summary(
        total=len(results),
        successful=store.successful,
        failed=store.failed,
        elapsed=elapsed,
        method=config.method,
        context=config.summary_context(),
    )

    errors = store.persistence_errors
    if errors:
        logger.warning(f"Encountered {len(errors)} errors while saving routes")
    return GenerationReport(
        run_dir=run_dir,
        total=summary.total_routes,
        successful=summary.successful_routes,
        failed=summary.failed_routes,
        summary=summary,
        cancelled=cancel_event.is_set(),
        persistence_errors=errors,
    )

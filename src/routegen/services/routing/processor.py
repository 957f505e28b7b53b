"""Concurrent dispatch of route requests to a Route Finder."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Optional, Sequence

import httpx

from ...config import settings
from ...errors import (
    BatchCancelledError,
    ConfigurationError,
    RetryableRequestError,
    RouteNotFoundError,
)
from ...models.domain import RouteRequest, RouteResult
from ...schemas.routing import RouteFinderRequest, RouteModel
from .route_finder import RouteFinder

logger = logging.getLogger(__name__)

ResultCallback = Callable[[RouteResult, RouteRequest], None]

# Expected transient failures (pydantic's ValidationError is a ValueError). Other exceptions
# are retried too but logged with a traceback.
RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    RetryableRequestError,
    httpx.HTTPError,
    OSError,
    TimeoutError,
    ValueError,
)

_POLL_SECONDS = 0.1
_PROGRESS_EVERY = 10


class _ResultCollector:
    """Correlates results by request ID and forwards each one exactly once.

    Once sealed, late results from abandoned workers are dropped, and sealing
    blocks until every callback already in progress has returned.
    """

    def __init__(self, total: int, on_result: Optional[ResultCallback]) -> None:
        self._total = total
        self._on_result = on_result
        self._results: dict[int, RouteResult] = {}
        self._sealed = False
        self._active = 0
        self._cond = threading.Condition()

    def offer(self, result: RouteResult, request: RouteRequest, *, force: bool = False) -> bool:
        with self._cond:
            if (self._sealed and not force) or result.id in self._results:
                return False
            self._results[result.id] = result
            self._active += 1
            completed = len(self._results)

        if completed % _PROGRESS_EVERY == 0 or completed == self._total:
            logger.info(f"Progress: {completed}/{self._total} route requests completed")

        try:
            if self._on_result is not None:
                try:
                    self._on_result(result, request)
                except Exception:
                    logger.exception(f"Result callback failed for route {result.id}")
        finally:
            with self._cond:
                self._active -= 1
                self._cond.notify_all()
        return True

    def seal(self) -> None:
        with self._cond:
            self._sealed = True
            self._cond.wait_for(lambda: self._active == 0)

    def results(self) -> dict[int, RouteResult]:
        with self._cond:
            return dict(self._results)


class RouteProcessor:
    """Calls the Route Finder for each request with retry and exponential backoff."""

    def __init__(
        self,
        route_finder: RouteFinder,
        *,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        grace_period: float | None = None,
    ) -> None:
        self.route_finder = route_finder
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_attempts
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.backoff_seconds
        self.grace_period = grace_period if grace_period is not None else settings.shutdown_grace_seconds
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")

    def backoff_delay(self, attempt: int) -> float:
        """Delay after failed attempt number `attempt` (1-based): base, 2*base, 4*base..."""
        return self.backoff_seconds * (2 ** (attempt - 1))

    def _wait(self, delay: float, cancel_event: threading.Event | None) -> bool:
        """Sleep for `delay` seconds. Returns True if cancellation fired meanwhile."""
        if cancel_event is None:
            time.sleep(delay)
            return False
        return cancel_event.wait(delay)

    def _attempt(self, payload: RouteFinderRequest, timeout: float | None) -> RouteModel:
        response = self.route_finder.find_route(payload, timeout=timeout)
        if response.code == "NoRoute":
            raise RouteNotFoundError()
        if response.code != "Ok":
            raise RetryableRequestError(
                f"route service returned error: {response.code} - {response.message or 'no message'}"
            )
        if not response.routes:
            raise RetryableRequestError("route service returned an empty route list")
        return response.routes[0]

    def process_route(
        self,
        request: RouteRequest,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RouteResult:
        """Resolve one request. Never raises for per-request failures."""
        payload = RouteFinderRequest.from_domain(request)
        last_error: BaseException | None = None

        for attempt in range(1, self.max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                error = BatchCancelledError(f"route {request.id} cancelled before attempt {attempt}")
                error.__cause__ = last_error
                return RouteResult(id=request.id, error=error, attempts=attempt - 1)

            try:
                route = self._attempt(payload, timeout)
            except RouteNotFoundError as exc:
                logger.info(
                    f"Route {request.id}: no route found "
                    f"({request.start.latitude:.6f},{request.start.longitude:.6f} -> "
                    f"{request.end.latitude:.6f},{request.end.longitude:.6f})"
                )
                return RouteResult(id=request.id, error=exc, attempts=attempt)
            except Exception as exc:
                last_error = exc
                if not isinstance(exc, RETRYABLE_EXCEPTIONS):
                    logger.warning(
                        f"Route {request.id} attempt {attempt} raised unexpected {type(exc).__name__}",
                        exc_info=True,
                        extra={"route_id": request.id, "attempt": attempt},
                    )
                if attempt < self.max_attempts:
                    delay = self.backoff_delay(attempt)
                    logger.warning(
                        f"Route {request.id} attempt {attempt} failed, retrying in {delay:.1f}s: {exc}",
                        extra={"route_id": request.id, "attempt": attempt},
                    )
                    if self._wait(delay, cancel_event):
                        error = BatchCancelledError(f"route {request.id} cancelled during backoff after attempt {attempt}")
                        error.__cause__ = exc
                        return RouteResult(id=request.id, error=error, attempts=attempt)
                continue

            logger.debug(f"Route {request.id} succeeded on attempt {attempt}")
            return RouteResult(id=request.id, route=route, attempts=attempt)

        error = RetryableRequestError(f"max retries exceeded: {last_error}")
        error.__cause__ = last_error
        logger.warning(f"Route {request.id} failed after {self.max_attempts} attempts: {last_error}")
        return RouteResult(id=request.id, error=error, attempts=self.max_attempts)

    def _run_one(
        self,
        request: RouteRequest,
        timeout: float | None,
        cancel_event: threading.Event,
        collector: _ResultCollector,
    ) -> None:
        try:
            result = self.process_route(request, timeout=timeout, cancel_event=cancel_event)
        except Exception as exc:
            logger.exception(f"Unexpected failure processing route {request.id}")
            error = RetryableRequestError(f"unexpected error: {exc}")
            error.__cause__ = exc
            result = RouteResult(id=request.id, error=error, attempts=0)
        collector.offer(result, request)

    def submit(
        self,
        requests: Sequence[RouteRequest],
        workers: int,
        *,
        per_attempt_timeout: float | None = None,
        overall_deadline: float | None = None,
        cancel_event: threading.Event | None = None,
        on_result: Optional[ResultCallback] = None,
    ) -> list[RouteResult]:
        """Process `requests` on `workers` threads and return one result per request, ordered by ID.

        `on_result` runs on the worker thread as each result completes. When the
        deadline passes or `cancel_event` is set, no new attempts start; in-flight
        attempts get `grace_period` seconds before they are abandoned. Every
        request without a result by then gets a BatchCancelledError result.
        """
        if workers < 1:
            raise ConfigurationError(f"worker count must be positive, got {workers}")
        ids = [request.id for request in requests]
        if len(set(ids)) != len(ids):
            raise ConfigurationError("request IDs must be unique within a batch")

        cancel_event = cancel_event if cancel_event is not None else threading.Event()
        collector = _ResultCollector(len(requests), on_result)
        timer: threading.Timer | None = None
        if overall_deadline is not None:
            timer = threading.Timer(overall_deadline, cancel_event.set)
            timer.daemon = True
            timer.start()

        logger.info(f"Dispatching {len(requests)} route requests ({workers} concurrent workers)")
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="route-worker")
        abandoned = False
        try:
            pending = {
                executor.submit(self._run_one, request, per_attempt_timeout, cancel_event, collector)
                for request in requests
            }
            grace_deadline: float | None = None
            while pending:
                if grace_deadline is None and cancel_event.is_set():
                    logger.warning(f"Cancellation requested; waiting up to {self.grace_period:.1f}s for in-flight routes")
                    grace_deadline = time.monotonic() + self.grace_period
                if grace_deadline is None:
                    timeout = _POLL_SECONDS
                else:
                    timeout = grace_deadline - time.monotonic()
                    if timeout <= 0:
                        abandoned = True
                        break
                _, pending = wait(pending, timeout=timeout)
        finally:
            if timer is not None:
                timer.cancel()
            executor.shutdown(wait=not abandoned, cancel_futures=True)

        collector.seal()
        received = collector.results()
        missing = [request for request in requests if request.id not in received]
        if missing:
            logger.warning(f"{len(missing)} route requests produced no result before cancellation")
        for request in missing:
            error = BatchCancelledError(f"route {request.id} was not completed before cancellation")
            collector.offer(RouteResult(id=request.id, error=error, attempts=0), request, force=True)

        results = collector.results()
        return [results[request_id] for request_id in sorted(results)]

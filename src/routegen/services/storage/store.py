"""Thread-safe persistence and aggregation of route results."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Mapping

from ...errors import DuplicateResultError, PersistenceError, StoreFinalizedError
from ...models.domain import RouteRequest, RouteResult
from ...persistence.filesystem import ArtifactSink
from ...schemas.outputs import RouteData, RouteMetadata, RunSummary
from ...schemas.routing import RouteFinderRequest

logger = logging.getLogger(__name__)

INDEX_KEY = "metadata.json"
SUMMARY_KEY = "summary.json"


def artifact_key(route_id: int) -> str:
    return f"route_{route_id:06d}.json"


def compute_success_rate(successful: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return 100.0 * successful / total


def build_metadata(result: RouteResult, request: RouteRequest) -> RouteMetadata:
    metadata = RouteMetadata(
        id=request.id,
        generated_at=datetime.now(timezone.utc),
        start_lat=request.start.latitude,
        start_lng=request.start.longitude,
        end_lat=request.end.latitude,
        end_lng=request.end.longitude,
        profile=request.profile,
        success=result.success,
        attempts=result.attempts,
    )
    if result.error is not None:
        metadata.error_message = str(result.error)
    elif result.route is not None:
        metadata.distance = result.route.distance
        metadata.duration = result.route.duration
    return metadata


class ResultStore:
    """Records results as workers finish them, then writes the index and summary.

    Counters and the metadata collection share one lock. Artifact writes use a
    distinct key per request and happen outside it.
    """

    def __init__(self, sink: ArtifactSink) -> None:
        self.sink = sink
        self._lock = threading.Lock()
        self._metadata: dict[int, RouteMetadata] = {}
        self._claimed: set[int] = set()
        self._successful = 0
        self._failed = 0
        self._errors: list[PersistenceError] = []
        self._index_written = False
        self._summary: RunSummary | None = None

    def _write(self, key: str, data: Any) -> PersistenceError | None:
        try:
            self.sink.write_json(key, data)
        except Exception as exc:
            logger.error(f"Failed to persist {key}: {exc}")
            return PersistenceError(key, exc)
        return None

    def record_result(self, result: RouteResult, request: RouteRequest) -> RouteMetadata:
        if result.id != request.id:
            raise ValueError(f"result {result.id} does not belong to request {request.id}")

        with self._lock:
            if self._index_written:
                raise StoreFinalizedError(f"index already written; cannot record route {request.id}")
            if request.id in self._claimed:
                raise DuplicateResultError(f"route {request.id} already recorded")
            self._claimed.add(request.id)

        metadata = build_metadata(result, request)
        error: PersistenceError | None = None
        try:
            route_data = RouteData(
                metadata=metadata, request=RouteFinderRequest.from_domain(request), route=result.route
            )
            error = self._write(artifact_key(request.id), route_data.model_dump(mode="json"))
        finally:
            self._commit(request.id, metadata, error)
        return metadata

    def _commit(self, route_id: int, metadata: RouteMetadata, error: PersistenceError | None) -> None:
        with self._lock:
            self._metadata[route_id] = metadata
            if metadata.success:
                self._successful += 1
            else:
                self._failed += 1
            if error is not None:
                self._errors.append(error)

    @property
    def successful(self) -> int:
        with self._lock:
            return self._successful

    @property
    def failed(self) -> int:
        with self._lock:
            return self._failed

    @property
    def recorded(self) -> int:
        with self._lock:
            return len(self._metadata)

    @property
    def persistence_errors(self) -> list[PersistenceError]:
        with self._lock:
            return list(self._errors)

    @property
    def metadata(self) -> list[RouteMetadata]:
        with self._lock:
            return [self._metadata[route_id] for route_id in sorted(self._metadata)]

    def finalize_index(self) -> list[RouteMetadata]:
        """Write the metadata index ordered by ID. Call once every record_result has returned."""
        with self._lock:
            if self._index_written:
                raise StoreFinalizedError("metadata index already written")
            if len(self._claimed) != len(self._metadata):
                raise StoreFinalizedError("results are still being recorded")
            self._index_written = True
            entries = [self._metadata[route_id] for route_id in sorted(self._metadata)]

        error = self._write(INDEX_KEY, [entry.model_dump(mode="json") for entry in entries])
        if error is not None:
            with self._lock:
                self._errors.append(error)
        logger.info(f"Wrote metadata index with {len(entries)} entries")
        return entries

    def finalize_summary(
        self,
        total: int,
        successful: int,
        failed: int,
        elapsed: float,
        method: str,
        context: Mapping[str, Any] | None = None,
    ) -> RunSummary:
        context = context or {}
        with self._lock:
            if self._summary is not None:
                raise StoreFinalizedError("run summary already written")
            summary = RunSummary(
                total_routes=total,
                successful_routes=successful,
                failed_routes=failed,
                success_rate=compute_success_rate(successful, total),
                duration_seconds=elapsed,
                generated_at=datetime.now(timezone.utc),
                method=method,
                country=context.get("country"),
                location_count=context.get("location_count"),
                persistence_errors=[str(error) for error in self._errors],
            )
            self._summary = summary

        error = self._write(SUMMARY_KEY, summary.model_dump(mode="json", exclude_none=True))
        if error is not None:
            with self._lock:
                self._errors.append(error)
        logger.info(
            f"Saved {total} routes ({successful} successful, {failed} failed); "
            f"success rate: {summary.success_rate:.2f}%"
        )
        return summary

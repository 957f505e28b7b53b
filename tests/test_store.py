import json
import math
import threading
from pathlib import Path

import pytest

from routegen.errors import DuplicateResultError, RetryableRequestError, RouteNotFoundError, StoreFinalizedError
from routegen.models.domain import Coordinate, RouteRequest, RouteResult
from routegen.persistence.filesystem import FileStorage
from routegen.schemas.routing import RouteModel
from routegen.services.storage import ResultStore, compute_success_rate


def _request(rid: int) -> RouteRequest:
    return RouteRequest(id=rid, start=Coordinate(51.5074, -0.1278), end=Coordinate(51.5155, -0.1419))


def _success(rid: int, distance: float = 2500.5, duration: float = 400.0) -> RouteResult:
    return RouteResult(id=rid, route=RouteModel(distance=distance, duration=duration, geometry="_p~iF"), attempts=1)


def _store(tmp_path: Path) -> tuple[ResultStore, Path]:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="routes_test")
    return ResultStore(storage.sink_for(run_dir)), run_dir


class MemorySink:
    def __init__(self, fail_keys=(), error=OSError):
        self.fail_keys = set(fail_keys)
        self.error = error
        self.written = {}

    def write_json(self, key, data):
        if key in self.fail_keys:
            raise self.error(f"cannot write {key}")
        self.written[key] = data


@pytest.mark.parametrize(
    "successful,total,expected",
    [(0, 0, 0.0), (5, 5, 100.0), (1, 4, 25.0), (0, 3, 0.0)],
)
def test_compute_success_rate(successful, total, expected):
    rate = compute_success_rate(successful, total)

    assert rate == expected
    assert math.isfinite(rate)


def test_record_result_writes_zero_padded_artifact(tmp_path: Path):
    store, run_dir = _store(tmp_path)

    store.record_result(_success(7), _request(7))

    artifact = json.loads((run_dir / "route_000007.json").read_text(encoding="utf-8"))
    assert artifact["metadata"]["id"] == 7
    assert artifact["metadata"]["success"] is True
    assert artifact["metadata"]["distance"] == 2500.5
    assert artifact["request"]["start"] == {"latitude": 51.5074, "longitude": -0.1278}
    assert artifact["route"]["geometry"] == "_p~iF"


def test_record_result_keeps_failure_message(tmp_path: Path):
    store, run_dir = _store(tmp_path)

    store.record_result(RouteResult(id=1, error=RouteNotFoundError(), attempts=1), _request(1))

    artifact = json.loads((run_dir / "route_000001.json").read_text(encoding="utf-8"))
    assert artifact["metadata"]["success"] is False
    assert artifact["metadata"]["error_message"] == "no route found"
    assert artifact["route"] is None
    assert store.failed == 1


def test_record_result_rejects_duplicates():
    store = ResultStore(MemorySink())
    store.record_result(_success(1), _request(1))

    with pytest.raises(DuplicateResultError):
        store.record_result(_success(1), _request(1))
    assert store.recorded == 1


def test_concurrent_records_lose_no_updates():
    store = ResultStore(MemorySink())
    barrier = threading.Barrier(8)

    def worker(offset: int) -> None:
        barrier.wait()
        for rid in range(offset * 50 + 1, offset * 50 + 51):
            if rid % 3 == 0:
                store.record_result(RouteResult(id=rid, error=RetryableRequestError("boom"), attempts=3), _request(rid))
            else:
                store.record_result(_success(rid), _request(rid))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.recorded == 400
    assert store.successful + store.failed == 400
    assert store.failed == len([rid for rid in range(1, 401) if rid % 3 == 0])
    assert [entry.id for entry in store.metadata] == list(range(1, 401))


def test_persistence_errors_are_collected_without_blocking(tmp_path: Path):
    sink = MemorySink(fail_keys={"route_000002.json"})
    store = ResultStore(sink)

    for rid in (3, 2, 1):
        store.record_result(_success(rid), _request(rid))
    store.finalize_index()
    summary = store.finalize_summary(3, store.successful, store.failed, 1.5, "random", {"country": "uk"})

    assert set(sink.written) == {"route_000001.json", "route_000003.json", "metadata.json", "summary.json"}
    assert len(store.persistence_errors) == 1
    assert store.persistence_errors[0].key == "route_000002.json"
    assert [entry["id"] for entry in sink.written["metadata.json"]] == [1, 2, 3]
    assert summary.persistence_errors and "route_000002.json" in summary.persistence_errors[0]


def test_unexpected_sink_error_still_records_and_finalizes():
    sink = MemorySink(fail_keys={"route_000002.json"}, error=RuntimeError)
    store = ResultStore(sink)

    for rid in (1, 2, 3):
        store.record_result(_success(rid), _request(rid))
    index = store.finalize_index()
    store.finalize_summary(3, store.successful, store.failed, 0.5, "random", {"country": "uk"})

    assert store.recorded == 3
    assert store.successful == 3
    assert [entry.id for entry in index] == [1, 2, 3]
    assert isinstance(store.persistence_errors[0].cause, RuntimeError)
    assert "summary.json" in sink.written


def test_finalize_index_runs_once_and_closes_recording():
    store = ResultStore(MemorySink())
    store.record_result(_success(1), _request(1))
    store.finalize_index()

    with pytest.raises(StoreFinalizedError):
        store.finalize_index()
    with pytest.raises(StoreFinalizedError):
        store.record_result(_success(2), _request(2))


def test_finalize_summary_writes_context(tmp_path: Path):
    store, run_dir = _store(tmp_path)

    store.finalize_summary(0, 0, 0, 0.25, "permutation", {"location_count": 5})

    summary = json.loads((run_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["success_rate"] == 0.0
    assert summary["method"] == "permutation"
    assert summary["location_count"] == 5
    assert "country" not in summary
    with pytest.raises(StoreFinalizedError):
        store.finalize_summary(0, 0, 0, 0.25, "permutation", {"location_count": 5})

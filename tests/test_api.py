import httpx
import pytest
from fastapi.testclient import TestClient

from routegen.config import settings
from routegen.main import create_app
from routegen.models.domain import Coordinate, RouteRequest, RouteResult
from routegen.persistence.filesystem import FileStorage
from routegen.schemas.routing import RouteFinderResponse, RouteModel
from routegen.services.storage import ResultStore

ROUTE_PAYLOAD = {
    "start": {"latitude": 51.5074, "longitude": -0.1278},
    "end": {"latitude": 51.5155, "longitude": -0.1419},
}


class FakeRouteFinder:
    name = "fake"
    base_url = "memory://"

    def __init__(self, response=None, error=None):
        self.response = response or RouteFinderResponse.model_validate(
            {"code": "Ok", "routes": [{"distance": 2500.5, "duration": 400.0, "geometry": "abc"}]}
        )
        self.error = error
        self.waypoints = None

    def find_route(self, request, *, timeout=None):
        if self.error:
            raise self.error
        return self.response

    def find_route_with_waypoints(self, waypoints, profile, *, timeout=None):
        self.waypoints = list(waypoints)
        return self.response

    def check_health(self):
        return True


def _client(finder=None) -> TestClient:
    return TestClient(create_app(route_finder=finder or FakeRouteFinder()))


def test_health_reports_provider():
    response = _client().get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "route-service", "provider": "fake"}


def test_backend_health_calls_provider():
    assert _client().get("/health/backend").json() == {"provider": "fake", "healthy": True}


def test_provider_endpoint():
    assert _client().get("/api/v1/provider").json() == {"provider": "fake"}


def test_route_success():
    response = _client().post("/api/v1/route", json=ROUTE_PAYLOAD)

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "Ok"
    assert body["routes"][0]["distance"] == 2500.5


@pytest.mark.parametrize(
    "upstream",
    [RouteFinderResponse(code="NoRoute", message="Impossible route"), RouteFinderResponse(code="Ok", routes=[])],
)
def test_route_without_result_is_404_no_route(upstream):
    response = _client(FakeRouteFinder(response=upstream)).post("/api/v1/route", json=ROUTE_PAYLOAD)

    assert response.status_code == 404
    assert response.json()["code"] == "NoRoute"


def test_route_upstream_error_code_is_502():
    finder = FakeRouteFinder(response=RouteFinderResponse(code="InvalidQuery", message="bad coordinates"))

    response = _client(finder).post("/api/v1/route", json=ROUTE_PAYLOAD)

    assert response.status_code == 502
    assert response.json()["code"] == "InvalidQuery"


def test_route_transport_failure_is_502():
    finder = FakeRouteFinder(error=httpx.ConnectError("connection refused"))

    response = _client(finder).post("/api/v1/route", json=ROUTE_PAYLOAD)

    assert response.status_code == 502
    assert "connection refused" in response.json()["detail"]


def test_route_rejects_out_of_range_coordinates():
    payload = {"start": {"latitude": 95.0, "longitude": 0.0}, "end": ROUTE_PAYLOAD["end"]}

    assert _client().post("/api/v1/route", json=payload).status_code == 422


def test_waypoints_route():
    finder = FakeRouteFinder()
    payload = {"waypoints": [ROUTE_PAYLOAD["start"], ROUTE_PAYLOAD["end"]], "profile": "bike"}

    response = _client(finder).post("/api/v1/route/waypoints", json=payload)

    assert response.status_code == 200
    assert finder.waypoints == [Coordinate(51.5074, -0.1278), Coordinate(51.5155, -0.1419)]


def test_waypoints_need_two_points():
    payload = {"waypoints": [ROUTE_PAYLOAD["start"]]}

    assert _client().post("/api/v1/route/waypoints", json=payload).status_code == 400


def test_missing_provider_configuration_is_503(monkeypatch):
    monkeypatch.setattr(settings, "osrm_base_url", None)
    client = TestClient(create_app())

    assert client.get("/api/v1/provider").status_code == 503
    assert client.get("/health/backend").status_code == 503


def test_health_stays_up_without_provider_configuration(monkeypatch):
    monkeypatch.setattr(settings, "osrm_base_url", None)
    client = TestClient(create_app())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "route-service", "provider": "osrm"}


def test_runs_lists_persisted_summaries(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "data_root", tmp_path)
    storage = FileStorage(root=tmp_path)
    store = ResultStore(storage.sink_for(storage.make_run_directory(prefix="routes_random")))
    request = RouteRequest(id=1, start=Coordinate(51.5074, -0.1278), end=Coordinate(51.5155, -0.1419))
    store.record_result(RouteResult(id=1, route=RouteModel(distance=10.0, duration=2.0), attempts=1), request)
    store.finalize_index()
    store.finalize_summary(1, 1, 0, 0.5, "random", {"country": "uk"})

    client = _client()
    body = client.get("/api/runs").json()
    filtered = client.get("/api/runs", params={"method": "permutation"}).json()

    assert body["total"] == 1
    run = body["items"][0]
    assert run["id"].startswith("routes_random_")
    assert run["success_rate"] == 100.0
    assert run["has_index"] is True
    assert run["artifact_count"] == 1
    assert filtered == {"items": [], "total": 0}

from pathlib import Path

import pytest

from routegen.config import Settings, load_generator_config
from routegen.errors import ConfigurationError

VALID_CONFIG = """
route_generator:
  route_count: 10
  method: random
  country: uk
  random_seed: 42
  country_bounds:
    uk: {min_lat: 49.9, max_lat: 58.7, min_lng: -8.2, max_lng: 1.8}
  route_service:
    base_url: http://localhost:8080
    timeout_seconds: 5
    max_concurrent_requests: 4
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_generator_config(tmp_path: Path):
    config = load_generator_config(_write(tmp_path, VALID_CONFIG))

    assert config.route_count == 10
    assert config.method == "random"
    assert config.country_bounds["uk"].max_lat == 58.7
    assert config.route_service.max_concurrent_requests == 4
    assert config.route_service.deadline_seconds is None
    assert config.summary_context() == {"country": "uk"}


@pytest.mark.parametrize(
    "replacement",
    [
        ("route_count: 10", "route_count: 0"),
        ("method: random", "method: nearest"),
        ("country: uk", "country: fr"),
        ("max_concurrent_requests: 4", "max_concurrent_requests: 0"),
        ("timeout_seconds: 5", "timeout_seconds: 0"),
        ("min_lat: 49.9, max_lat: 58.7", "min_lat: 58.7, max_lat: 49.9"),
    ],
)
def test_invalid_generator_config_is_rejected(tmp_path: Path, replacement):
    content = VALID_CONFIG.replace(*replacement)

    with pytest.raises(ConfigurationError):
        load_generator_config(_write(tmp_path, content))


def test_permutation_needs_two_locations(tmp_path: Path):
    content = """
route_generator:
  route_count: 3
  method: permutation
  location_set:
    - {name: London, lat: 51.5074, lng: -0.1278}
"""
    with pytest.raises(ConfigurationError, match="at least 2 locations"):
        load_generator_config(_write(tmp_path, content))


def test_missing_file_and_bad_yaml(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        load_generator_config(tmp_path / "missing.yaml")
    with pytest.raises(ConfigurationError):
        load_generator_config(_write(tmp_path, "route_generator: [unterminated"))
    with pytest.raises(ConfigurationError):
        load_generator_config(_write(tmp_path, "something_else: {}"))


def test_settings_read_prefixed_environment(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("ROUTEGEN_MAX_CONCURRENT_REQUESTS", "7")
    monkeypatch.setenv("ROUTEGEN_ROUTE_PROVIDER", "osrm")
    monkeypatch.setenv("ROUTEGEN_DATA_ROOT", str(tmp_path))

    configured = Settings()

    assert configured.max_concurrent_requests == 7
    assert configured.route_provider == "osrm"
    assert configured.data_root == tmp_path.resolve()

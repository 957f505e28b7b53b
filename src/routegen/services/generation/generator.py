"""Deterministic route request generation."""

from __future__ import annotations

import logging
import random
from typing import Sequence

from ...config import CountryBounds, GeneratorConfig, Location
from ...errors import ConfigurationError
from ...models.domain import DEFAULT_PROFILE, Coordinate, RouteRequest

PROFILES = ("car", "bike", "foot")

logger = logging.getLogger(__name__)


def _check_count(count: int) -> None:
    if count <= 0:
        raise ConfigurationError(f"route count must be positive, got {count}")


def _sample(bounds: CountryBounds, rng: random.Random) -> Coordinate:
    return Coordinate(
        latitude=bounds.min_lat + rng.random() * (bounds.max_lat - bounds.min_lat),
        longitude=bounds.min_lng + rng.random() * (bounds.max_lng - bounds.min_lng),
    )


def generate_random(
    count: int,
    bounds: CountryBounds,
    rng: random.Random,
    profile: str = DEFAULT_PROFILE,
) -> list[RouteRequest]:
    """Draw `count` start/end pairs uniformly inside `bounds`.

    Coordinates are drawn in the order start, end for every request so the
    sequence depends only on the RNG state.
    """

    _check_count(count)
    requests: list[RouteRequest] = []
    for index in range(count):
        start = _sample(bounds, rng)
        end = _sample(bounds, rng)
        requests.append(RouteRequest(id=index + 1, start=start, end=end, profile=profile))
    return requests


def generate_permutation(
    count: int,
    locations: Sequence[Location],
    rng: random.Random,
    profile: str = DEFAULT_PROFILE,
) -> list[RouteRequest]:
    """Cycle through a shuffled list of ordered location pairs.

    Every ordered pair (i, j) with i != j appears once per cycle, so coverage is
    uniform before any pair repeats.
    """

    _check_count(count)
    if len(locations) < 2:
        raise ConfigurationError("need at least 2 locations for permutation")

    pairs = [(i, j) for i in range(len(locations)) for j in range(len(locations)) if i != j]
    rng.shuffle(pairs)

    requests: list[RouteRequest] = []
    for index in range(count):
        start_idx, end_idx = pairs[index % len(pairs)]
        start_loc, end_loc = locations[start_idx], locations[end_idx]
        requests.append(
            RouteRequest(
                id=index + 1,
                start=Coordinate(latitude=start_loc.lat, longitude=start_loc.lng),
                end=Coordinate(latitude=end_loc.lat, longitude=end_loc.lng),
                profile=profile,
            )
        )
    return requests


class RequestGenerator:
    """Builds the request sequence for one configured run."""

    def __init__(self, config: GeneratorConfig, rng: random.Random | None = None) -> None:
        self.config = config
        self.rng = rng if rng is not None else random.Random(config.random_seed)

    def generate(self) -> list[RouteRequest]:
        config = self.config
        match config.method:
            case "random":
                bounds = config.country_bounds.get(config.country or "")
                if bounds is None:
                    raise ConfigurationError(f"country bounds not found for {config.country}")
                requests = generate_random(config.route_count, bounds, self.rng, config.profile)
            case "permutation":
                requests = generate_permutation(config.route_count, config.location_set, self.rng, config.profile)
            case _:
                raise ConfigurationError(f"unknown generation method: {config.method}")

        logger.info(f"Generated {len(requests)} route requests using '{config.method}' method")
        return requests

    def random_profile(self) -> str:
        return self.rng.choice(PROFILES)

"""Shared fixtures for the serving tests: catalog, collaborators, fake clock, service."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import numpy as np
import pytest

from serving.services import (
    RateLimiter,
    RecommendationService,
    ResponseCache,
    StaticCandidateProvider,
    StaticInteractionFeed,
    StaticSignalScorer,
)

ORIGINS = ["Ethiopia", "Kenya", "Colombia", "Brazil", "Guatemala", "Peru"]
ROASTS = ["light", "medium", "dark"]
PROCESSES = ["washed", "natural", "honey"]


class FakeClock:
    """Monotonic stand-in; advance it explicitly."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingScorer:
    def __init__(self, source: str):
        self.source = source
        self.calls = 0

    async def score(self, user_id, limit, exclude_ids):
        self.calls += 1
        raise RuntimeError(f"{self.source} scorer is down")


class FailingCandidateProvider:
    async def get_candidates(self, user_id, exclude_ids):
        raise ConnectionError("catalog unavailable")


class FailingInteractionFeed:
    async def get_interactions(self, user_id, window_days):
        raise ConnectionError("feed unavailable")


def make_catalog(n: int = 18):
    items = [
        {
            "item_id": f"c{i}",
            "name": f"Coffee {i}",
            "origin": ORIGINS[i % len(ORIGINS)],
            "roast_level": ROASTS[i % len(ROASTS)],
            "processing_method": PROCESSES[(i // 3) % len(PROCESSES)],
            "flavor_notes": ["berry", "chocolate"],
            "avg_rating": 4.2,
        }
        for i in range(n)
    ]
    items.append({"item_id": "low", "name": "Low quality", "origin": "Peru", "avg_rating": 2.0})
    items.append({"item_id": "gone", "name": "Sold out", "origin": "Peru", "avg_rating": 4.8, "is_available": False})
    return items


def make_signal_entries(catalog, offset: int, n: int = 10):
    return [
        {"item": catalog[(offset + k) % 18], "score": round(0.9 - k * 0.05, 3), "reasons": [f"reason-{offset}-{k}"]}
        for k in range(n)
    ]


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def broken():
    """Collaborators that always fail."""
    return SimpleNamespace(
        scorer=FailingScorer,
        provider=FailingCandidateProvider,
        feed=FailingInteractionFeed,
    )


@pytest.fixture
def feed():
    now = datetime.now(timezone.utc)
    return StaticInteractionFeed(
        {
            "u1": [
                {"item_id": "c0", "type": "rating", "value": 5, "timestamp": now - timedelta(days=2),
                 "metadata": {"source": "discovery", "origin": "Ethiopia", "roast_level": "light"}},
                {"item_id": "c1", "type": "view", "timestamp": now - timedelta(days=1),
                 "metadata": {"origin": "Kenya"}},
            ]
        }
    )


@pytest.fixture
def scorers(catalog):
    users = ["u1", "u2", "u3"]
    return [
        StaticSignalScorer("collaborative", {u: make_signal_entries(catalog, 0) for u in users}),
        StaticSignalScorer("content-based", {u: make_signal_entries(catalog, 4) for u in users}),
        StaticSignalScorer("popularity", {u: make_signal_entries(catalog, 8) for u in users}),
    ]


@pytest.fixture
def make_service(catalog, feed, scorers, clock):
    """Factory so tests can swap single collaborators."""

    def _make(**overrides):
        kwargs = dict(
            candidate_provider=StaticCandidateProvider(catalog),
            interaction_feed=feed,
            scorers=scorers,
            rng=np.random.default_rng(0),
            cache=ResponseCache(ttl_seconds=3600, max_size=100, clock=clock),
            rate_limiter=RateLimiter(window_seconds=60, max_requests=100, clock=clock),
        )
        kwargs.update(overrides)
        return RecommendationService(**kwargs)

    return _make


@pytest.fixture
def service(make_service):
    return make_service()

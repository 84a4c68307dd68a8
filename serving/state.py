"""Application state: the recommendation service wired from ServerConfig."""

import logging
from typing import List, Optional

from recommender.models import DEFAULT_DISCOVERY_CONFIG
from recommender.utils import make_random_source

from .config import ServerConfig, get_config
from .services import (
    JsonCatalogProvider,
    JsonInteractionFeed,
    JsonSignalScorer,
    RateLimiter,
    RecommendationService,
    ResponseCache,
    SignalScorer,
)

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(self, config: ServerConfig, service: Optional[RecommendationService] = None):
        self.config = config
        self.service = service or self._create_service(config)

    def _create_service(self, config: ServerConfig) -> RecommendationService:
        """Build the service; collaborators come from JSON files when configured."""
        catalog = None
        if config.catalog_json_path:
            catalog = JsonCatalogProvider(
                config.catalog_json_path,
                min_quality=DEFAULT_DISCOVERY_CONFIG.min_quality_threshold,
                pool_size=DEFAULT_DISCOVERY_CONFIG.candidate_pool_size,
            )
            logger.info("[startup] Candidate provider: JSON (%s)", config.catalog_json_path)
        else:
            logger.info("[startup] Candidate provider: none (discovery serves empty lists)")

        feed = None
        if config.interactions_json_path:
            feed = JsonInteractionFeed(config.interactions_json_path)
            logger.info("[startup] Interaction feed: JSON (%s)", config.interactions_json_path)

        scorers: List[SignalScorer] = []
        if config.signals_json_path:
            items = catalog.by_id() if catalog else {}
            for source in JsonSignalScorer.sources_in(config.signals_json_path):
                scorers.append(JsonSignalScorer(source, config.signals_json_path, catalog=items))
            logger.info("[startup] Signal scorers: %s", ", ".join(s.source for s in scorers) or "none")

        return RecommendationService(
            candidate_provider=catalog,
            interaction_feed=feed,
            scorers=scorers,
            rng=make_random_source(config.random_seed),
            cache=ResponseCache(ttl_seconds=config.cache_ttl_seconds, max_size=config.cache_max_size),
            rate_limiter=RateLimiter(
                window_seconds=config.rate_limit_window_seconds,
                max_requests=config.rate_limit_max_requests,
            ),
            cache_sweep_interval_seconds=config.cache_sweep_interval_seconds,
            rate_limit_sweep_interval_seconds=config.rate_limit_sweep_interval_seconds,
        )


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState(get_config())
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace (or clear, with None) the global state. Used by tests."""
    global _state
    _state = state

"""
RecommendationService: the stateful serving facade.

serve(): rate limit -> route to a model version -> cache -> compute -> cache.
Computation awaits every collaborator before touching the in-memory stores;
arm sets are built off-lock and swapped in atomically.

The service owns all shared state (arm store, registry, experiments, cache,
rate limiter) and its two background sweeps; nothing here is module-global.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from recommender.models import (
    BanditArm,
    BlendConfig,
    CandidateItem,
    DiscoveryConfig,
    ExplorationMetrics,
    ExplorationStrategy,
    Interaction,
    ModelAlgorithm,
    RecommendationCandidate,
    SignalList,
    resolve_blend_config,
    resolve_discovery_config,
)
from recommender.stages import (
    build_arms,
    create_blended_queue,
    create_discovery_queue,
    create_single_source_queue,
    default_metrics,
    derive_exploration_metrics,
    discovery_signal,
    top_performing_arms,
)
from recommender.utils import RandomSource, make_random_source

from ..errors import ModelNotFound, RateLimited, UpstreamDegraded
from ..models.common import (
    ArmSummary,
    RecommendationResponse,
    RecommendedItem,
    ServeMetadata,
    ServingStats,
    UserDiscoveryStats,
)
from .arm_store import ArmStore
from .experiment_router import Experiment, ExperimentArm, ExperimentResult, ExperimentRouter
from .model_registry import DEFAULT_MODEL_ID, DeployResult, Evaluator, ModelRegistry, ModelVersion
from .periodic import PeriodicTask
from .providers import CandidateProvider, InteractionFeed, SignalScorer
from .rate_limiter import RateLimiter
from .response_cache import ResponseCache, make_cache_key

logger = logging.getLogger(__name__)

DISCOVERY_SOURCE = ModelAlgorithm.DISCOVERY.value


@dataclass
class ServeOptions:
    limit: int = 10
    # None means the resolved model version's algorithm.
    algorithm: Optional[str] = None
    exclude_ids: List[str] = field(default_factory=list)
    use_cache: bool = True
    include_reasons: bool = True


@dataclass
class ServingEvent:
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[ServingEvent], None]


class _SourceFailed(Exception):
    """A collaborator call failed; carries the source name."""

    def __init__(self, source: str, cause: BaseException):
        self.source = source
        self.cause = cause
        super().__init__(f"{source}: {cause}")


class RecommendationService:
    """Serves recommendations and owns all in-memory serving state."""

    def __init__(
        self,
        candidate_provider: Optional[CandidateProvider] = None,
        interaction_feed: Optional[InteractionFeed] = None,
        scorers: Optional[List[SignalScorer]] = None,
        discovery_config: Optional[DiscoveryConfig] = None,
        blend_config: Optional[BlendConfig] = None,
        rng: Optional[RandomSource] = None,
        evaluator: Optional[Evaluator] = None,
        cache: Optional[ResponseCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        cache_sweep_interval_seconds: float = 600,
        rate_limit_sweep_interval_seconds: float = 60,
    ):
        self.candidate_provider = candidate_provider
        self.interaction_feed = interaction_feed
        self.scorers: Dict[str, SignalScorer] = {s.source: s for s in (scorers or [])}
        self.discovery_config = resolve_discovery_config(discovery_config)
        self.blend_config = resolve_blend_config(blend_config)
        self.rng = rng if rng is not None else make_random_source()

        self.arm_store = ArmStore()
        self.registry = ModelRegistry(evaluator=evaluator)
        self.router = ExperimentRouter(model_exists=lambda model_id: model_id in self.registry)
        self.cache = cache if cache is not None else ResponseCache()
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

        self._listeners: List[Listener] = []
        self.registry.on_default_changed(self._on_default_changed)

        self.sweeps = [
            PeriodicTask("cache-ttl", self.cache.sweep, cache_sweep_interval_seconds),
            PeriodicTask("rate-limit", self.rate_limiter.sweep, rate_limit_sweep_interval_seconds),
        ]

    # --- lifecycle ---

    def start(self) -> None:
        """Start the background sweeps on the running event loop."""
        for task in self.sweeps:
            task.start()

    async def stop(self) -> None:
        for task in self.sweeps:
            await task.stop()

    # --- observers ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for ServingEvents. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, name: str, /, **payload: Any) -> None:
        event = ServingEvent(name=name, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("[serving] Listener failed on %s", name)

    def _on_default_changed(self, model_id: str) -> None:
        removed = self.cache.flush()
        logger.info("[cache] Flushed %d entries after default model changed to %s", removed, model_id)
        self._emit("cache_flushed", reason="default_model_changed", model_id=model_id, removed=removed)

    # --- serving ---

    async def serve(self, user_id: str, options: Optional[ServeOptions] = None) -> RecommendationResponse:
        """
        Serve recommendations for a user.

        Raises RateLimited when the user's window is exhausted, ModelNotFound
        when the routed model id has no registry entry, and UpstreamDegraded
        when every source the request depends on failed.
        """
        options = options or ServeOptions()
        started = time.perf_counter()
        request_id = uuid.uuid4().hex

        allowed, reset_at = self.rate_limiter.check(user_id)
        if not allowed:
            raise RateLimited(user_id, reset_at)

        assignment = self.router.route(user_id, self.registry.default_model_id or DEFAULT_MODEL_ID)
        model = self.registry.get(assignment.model_id)
        if model is None:
            raise ModelNotFound(assignment.model_id)

        algorithm = ModelAlgorithm(options.algorithm or model.algorithm)
        excluded = set(options.exclude_ids)
        key = make_cache_key(user_id, model.id, algorithm.value, options.limit, excluded)

        def respond(items: List[RecommendedItem], cached: bool, degraded: List[str]) -> RecommendationResponse:
            if not options.include_reasons:
                items = [i.model_copy(update={"reasons": []}) for i in items]
            return RecommendationResponse(
                items=items,
                metadata=ServeMetadata(
                    model_version=model.id,
                    algorithm=algorithm.value,
                    cached=cached,
                    ab_group=assignment.ab_group,
                    processing_time_ms=(time.perf_counter() - started) * 1000,
                    request_id=request_id,
                    degraded_sources=degraded,
                ),
            )

        if options.use_cache:
            cached_items = self.cache.get(key)
            if cached_items is not None:
                self._emit("cache_hit", user_id=user_id, cache_key=key, model_version=model.id)
                return respond(cached_items, cached=True, degraded=[])

        candidates, degraded = await self._compute(user_id, model, algorithm, options.limit, excluded)
        items = [
            RecommendedItem(
                item=c.item,
                score=c.score,
                match_percent=c.match_percent,
                reasons=list(c.reasons),
                algorithm=c.algorithm,
            )
            for c in candidates
        ]
        # Degraded results are not cached so a recovered source is picked up next call.
        if options.use_cache and not degraded:
            self.cache.put(key, items)

        response = respond(items, cached=False, degraded=degraded)
        self._emit(
            "served",
            user_id=user_id,
            model_version=model.id,
            algorithm=algorithm.value,
            count=len(items),
            processing_time_ms=response.metadata.processing_time_ms,
        )
        logger.debug(
            "[serving] %s: %d items via %s/%s",
            user_id,
            len(items),
            model.id,
            algorithm.value,
        )
        return response

    async def _compute(
        self,
        user_id: str,
        model: ModelVersion,
        algorithm: ModelAlgorithm,
        limit: int,
        excluded: Set[str],
    ) -> Tuple[List[RecommendationCandidate], List[str]]:
        """Return (candidates, failed sources)."""
        strategy = model.discovery_strategy

        if algorithm is ModelAlgorithm.DISCOVERY:
            try:
                return await self._discovery_queue(user_id, strategy, limit, excluded), []
            except _SourceFailed as e:
                logger.warning("[serving] Discovery degraded to empty for %s: %s", user_id, e)
                return [], [e.source]

        if algorithm is ModelAlgorithm.HYBRID:
            return await self._blended_queue(user_id, model, strategy, limit, excluded)

        source = algorithm.value
        scorer = self.scorers.get(source)
        if scorer is None:
            logger.warning("[serving] No scorer configured for %s", source)
            return [], []
        try:
            signal = await scorer.score(user_id, self.blend_config.max_candidates, excluded)
        except Exception as e:
            logger.warning("[serving] Source %s failed for %s: %s", source, user_id, e)
            raise UpstreamDegraded([source]) from e
        return create_single_source_queue(signal, limit, excluded_ids=excluded), []

    async def _blended_queue(
        self,
        user_id: str,
        model: ModelVersion,
        strategy: ExplorationStrategy,
        limit: int,
        excluded: Set[str],
    ) -> Tuple[List[RecommendationCandidate], List[str]]:
        discovery_limit = max(limit, self.discovery_config.max_discovery_recommendations)

        async def run_scorer(scorer: SignalScorer) -> SignalList:
            try:
                return await scorer.score(user_id, self.blend_config.max_candidates, excluded)
            except Exception as e:
                raise _SourceFailed(scorer.source, e) from e

        async def run_discovery() -> SignalList:
            queue = await self._discovery_queue(user_id, strategy, discovery_limit, excluded)
            return discovery_signal(queue)

        jobs = [run_scorer(s) for s in self.scorers.values()]
        if self.candidate_provider is not None:
            jobs.append(run_discovery())
        results = await asyncio.gather(*jobs, return_exceptions=True)

        signals: List[SignalList] = []
        failed: List[str] = []
        for result in results:
            if isinstance(result, _SourceFailed):
                logger.warning("[serving] Skipping source for %s: %s", user_id, result)
                failed.append(result.source)
            elif isinstance(result, BaseException):
                raise result
            else:
                signals.append(result)

        if failed and not signals:
            raise UpstreamDegraded(failed)

        config = self.blend_config.with_weights(model.weights)
        return create_blended_queue(signals, limit, config=config, excluded_ids=excluded), failed

    async def _discovery_queue(
        self,
        user_id: str,
        strategy: ExplorationStrategy,
        limit: int,
        excluded: Set[str],
    ) -> List[RecommendationCandidate]:
        if self.candidate_provider is None:
            return []
        interactions, feed_ok = await self._fetch_interactions(user_id)
        try:
            pool = await self.candidate_provider.get_candidates(user_id, excluded)
        except Exception as e:
            raise _SourceFailed(DISCOVERY_SOURCE, e) from e

        arms = self._arms_for(user_id, pool, interactions)
        metrics = self._metrics_for(user_id, interactions, feed_ok)
        return create_discovery_queue(
            arms,
            strategy,
            limit,
            self.rng,
            metrics=metrics,
            config=self.discovery_config,
            excluded_ids=excluded,
        )

    async def _fetch_interactions(self, user_id: str) -> Tuple[List[Interaction], bool]:
        if self.interaction_feed is None:
            return [], True
        try:
            records = await self.interaction_feed.get_interactions(
                user_id, self.discovery_config.feedback_window_days
            )
            return records, True
        except Exception as e:
            logger.warning("[serving] Interaction feed unavailable for %s: %s", user_id, e)
            return [], False

    def _arms_for(
        self,
        user_id: str,
        pool: List[CandidateItem],
        interactions: List[Interaction],
    ) -> List[BanditArm]:
        """
        Reuse the stored arms while the pool is unchanged; otherwise rebuild.

        A rebuild happens entirely off-lock and is swapped in with one call.
        """
        current = self.arm_store.get_arms(user_id)
        if current and {a.item_id for a in current} == {i.item_id for i in pool}:
            order = {item.item_id: n for n, item in enumerate(pool)}
            return sorted(current, key=lambda a: order[a.item_id])
        fresh = build_arms(pool, interactions, self.discovery_config)
        self.arm_store.replace_arms(user_id, fresh)
        return [arm.model_copy(deep=True) for arm in fresh]

    def _metrics_for(self, user_id: str, interactions: List[Interaction], feed_ok: bool) -> ExplorationMetrics:
        existing = self.arm_store.get_metrics(user_id)
        if existing is not None:
            return existing
        if feed_ok:
            computed = derive_exploration_metrics(user_id, interactions, self.discovery_config)
        else:
            computed = default_metrics(user_id)
        return self.arm_store.get_or_set_metrics(user_id, lambda: computed)

    # --- feedback ---

    def record_feedback(self, user_id: str, item_id: str, signal: str) -> None:
        """Fire-and-forget arm update; unknown users, items or signals are ignored."""
        if signal not in ("positive", "negative", "neutral"):
            logger.debug("[serving] Ignoring unknown feedback signal %r", signal)
            return
        try:
            self.arm_store.record_feedback(user_id, item_id, signal, datetime.now(timezone.utc))
        except Exception:
            logger.exception("[serving] Feedback update failed for %s/%s", user_id, item_id)

    # --- models ---

    def deploy_model(
        self,
        name: str,
        version: str,
        algorithm: str,
        config: Optional[Dict[str, Any]] = None,
        set_as_default: bool = False,
    ) -> DeployResult:
        result = self.registry.deploy(name, version, algorithm, config, set_as_default=set_as_default)
        if result.success:
            self._emit("model_deployed", model_id=result.model_id, name=name, version=version)
        return result

    def set_default_model(self, model_id: str) -> DeployResult:
        return self.registry.set_default(model_id)

    def deprecate_model(self, model_id: str) -> DeployResult:
        return self.registry.deprecate(model_id)

    def get_model(self, model_id: str) -> Optional[ModelVersion]:
        return self.registry.get(model_id)

    def list_models(self) -> List[ModelVersion]:
        return self.registry.list_models()

    # --- experiments ---

    def create_experiment(
        self,
        name: str,
        model_versions: List[ExperimentArm],
        description: str = "",
        duration_days: Optional[float] = None,
        eligibility_percentage: float = 100.0,
        metrics: Optional[List[str]] = None,
    ) -> ExperimentResult:
        result = self.router.create(
            name,
            model_versions,
            description=description,
            duration_days=duration_days,
            eligibility_percentage=eligibility_percentage,
            metrics=metrics,
        )
        if result.success:
            self._emit("experiment_created", test_id=result.test_id, name=name)
        return result

    def set_experiment_status(self, test_id: str, status: str) -> ExperimentResult:
        return self.router.set_status(test_id, status)

    def get_experiment(self, test_id: str) -> Optional[Experiment]:
        return self.router.get(test_id)

    def list_experiments(self) -> List[Experiment]:
        return self.router.list_experiments()

    # --- stats / cache ---

    def get_stats(self, user_id: str) -> UserDiscoveryStats:
        metrics = self.arm_store.get_metrics(user_id) or default_metrics(user_id)
        top = top_performing_arms(self.arm_store.get_arms(user_id), n=5)
        return UserDiscoveryStats(
            user_id=user_id,
            exploration_rate=metrics.exploration_rate,
            diversity_score=metrics.diversity_score,
            total_discoveries=metrics.total_discovery_interactions,
            success_rate=metrics.success_rate,
            top_performing_arms=[
                ArmSummary(
                    item_id=arm.item_id,
                    name=arm.item.name,
                    trials=arm.trials,
                    successes=arm.successes,
                    average_reward=arm.average_reward,
                    confidence=arm.confidence,
                )
                for arm in top
            ],
        )

    def serving_stats(self) -> ServingStats:
        cache_stats = self.cache.stats()
        return ServingStats(
            model_versions=len(self.registry),
            active_experiments=self.router.active_count(),
            cache_size=cache_stats["size"],
            cache_hit_rate=cache_stats["hit_rate"],
            current_model=self.registry.default_model_id,
            rate_limit_windows=len(self.rate_limiter),
            users_with_arms=self.arm_store.user_count(),
        )

    def flush_cache(self) -> int:
        removed = self.cache.flush()
        logger.info("[cache] Flushed %d entries", removed)
        self._emit("cache_flushed", reason="manual", removed=removed)
        return removed

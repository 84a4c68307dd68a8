"""
Queue orchestrator: turns arms or signal lists into the final ranked candidates.

Two entry points:
- create_discovery_queue: bandit selection -> diversity caps -> discovery reasons
- create_blended_queue: multi-signal blend -> diversity caps
"""

from typing import List, Optional, Set

from ..models.arm import BanditArm, ExplorationMetrics
from ..models.candidate import RecommendationCandidate, ScoredItem, SignalList
from ..models.config import (
    BlendConfig,
    DiscoveryConfig,
    resolve_blend_config,
    resolve_discovery_config,
)
from ..models.kinds import ExplorationStrategy, ModelAlgorithm
from ..utils.random_source import RandomSource
from .blending import blend_signals, single_source_candidates
from .diversity import apply_diversity_caps
from .exploration import select_arms
from .reasons import discovery_reasons


def _arm_to_candidate(arm: BanditArm, strategy: ExplorationStrategy) -> RecommendationCandidate:
    return RecommendationCandidate(
        item=arm.item,
        source_scores={ModelAlgorithm.DISCOVERY.value: arm.average_reward},
        score=arm.average_reward,
        reasons=discovery_reasons(arm.item, strategy),
        algorithm=f"discovery-{ExplorationStrategy(strategy).value}",
    )


def create_discovery_queue(
    arms: List[BanditArm],
    strategy: ExplorationStrategy,
    limit: int,
    rng: RandomSource,
    metrics: Optional[ExplorationMetrics] = None,
    config: Optional[DiscoveryConfig] = None,
    excluded_ids: Optional[Set[str]] = None,
) -> List[RecommendationCandidate]:
    """
    Rank arms with the bandit strategy, then apply discovery diversity caps.

    The strategy ranks max(limit, max_discovery_recommendations) arms so the
    diversity filter has spare candidates; at most `limit` are returned.
    """
    config = resolve_discovery_config(config)
    excluded = excluded_ids or set()
    pool = [a for a in arms if a.item_id not in excluded]
    if not pool or limit <= 0:
        return []

    ranked = select_arms(
        strategy,
        pool,
        min(len(pool), max(limit, config.max_discovery_recommendations)),
        rng,
        metrics=metrics,
        config=config,
    )
    candidates = [_arm_to_candidate(arm, strategy) for arm in ranked]
    return apply_diversity_caps(candidates, config.diversity, target_size=limit)


def discovery_signal(candidates: List[RecommendationCandidate]) -> SignalList:
    """Expose a discovery queue as the 'discovery' source for the blend."""
    return SignalList(
        source=ModelAlgorithm.DISCOVERY.value,
        items=[ScoredItem(item=c.item, score=c.score, reasons=c.reasons) for c in candidates],
    )


def create_blended_queue(
    signal_lists: List[SignalList],
    limit: int,
    config: Optional[BlendConfig] = None,
    excluded_ids: Optional[Set[str]] = None,
) -> List[RecommendationCandidate]:
    """Blend all sources, then apply the hybrid diversity caps down to `limit`."""
    config = resolve_blend_config(config)
    blended = blend_signals(signal_lists, config, excluded_ids=excluded_ids)
    return apply_diversity_caps(blended, config.diversity, target_size=max(0, limit))


def create_single_source_queue(
    signal: SignalList,
    limit: int,
    excluded_ids: Optional[Set[str]] = None,
) -> List[RecommendationCandidate]:
    """Serve one source's list directly, best first."""
    return single_source_candidates(signal, excluded_ids=excluded_ids)[: max(0, limit)]

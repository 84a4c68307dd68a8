"""
Exploration strategies over a user's bandit arms.

Public API: select_arms dispatches on ExplorationStrategy; each strategy returns up
to `limit` arms, best first, without duplicates.
"""

from typing import Callable, Dict, List, Optional

from ...models.arm import BanditArm, ExplorationMetrics
from ...models.config import DiscoveryConfig, resolve_discovery_config
from ...models.kinds import ExplorationStrategy
from ...utils.random_source import RandomSource
from .epsilon_greedy import effective_epsilon, select_epsilon_greedy
from .hybrid import dedupe_arms, hybrid_allocation, select_hybrid
from .thompson import beta_moments, sample_beta, select_thompson
from .ucb import COLD_START_PRIORITY, select_ucb, ucb_score

_Selector = Callable[[List[BanditArm], int, DiscoveryConfig, RandomSource, int], List[BanditArm]]

_STRATEGIES: Dict[ExplorationStrategy, _Selector] = {
    ExplorationStrategy.EPSILON_GREEDY: select_epsilon_greedy,
    ExplorationStrategy.UCB: lambda arms, limit, config, rng, n: select_ucb(arms, limit, config),
    ExplorationStrategy.THOMPSON_SAMPLING: lambda arms, limit, config, rng, n: select_thompson(
        arms, limit, config, rng
    ),
    ExplorationStrategy.HYBRID: select_hybrid,
}

# Import-time exhaustiveness check over the closed strategy set.
_missing = set(ExplorationStrategy) - set(_STRATEGIES)
if _missing:
    raise RuntimeError(f"No selector registered for {sorted(s.value for s in _missing)}")


def select_arms(
    strategy: ExplorationStrategy,
    arms: List[BanditArm],
    limit: int,
    rng: RandomSource,
    metrics: Optional[ExplorationMetrics] = None,
    config: Optional[DiscoveryConfig] = None,
) -> List[BanditArm]:
    """Run the chosen strategy. Metrics feed epsilon decay; missing metrics mean no decay."""
    config = resolve_discovery_config(config)
    total = metrics.total_discovery_interactions if metrics is not None else 0
    return _STRATEGIES[ExplorationStrategy(strategy)](arms, limit, config, rng, total)


__all__ = [
    "COLD_START_PRIORITY",
    "beta_moments",
    "dedupe_arms",
    "effective_epsilon",
    "hybrid_allocation",
    "sample_beta",
    "select_arms",
    "select_epsilon_greedy",
    "select_hybrid",
    "select_thompson",
    "select_ucb",
    "ucb_score",
]

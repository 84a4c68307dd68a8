"""
Epsilon-greedy selection with decaying exploration rate.
"""

from typing import List

from ...models.arm import BanditArm
from ...models.config import DiscoveryConfig
from ...utils.random_source import RandomSource


def effective_epsilon(config: DiscoveryConfig, total_discovery_interactions: int) -> float:
    """max(min_epsilon, epsilon * decay_rate ** total_discovery_interactions)."""
    decayed = config.epsilon * config.epsilon_decay_rate ** max(0, total_discovery_interactions)
    return max(config.min_epsilon, decayed)


def select_epsilon_greedy(
    arms: List[BanditArm],
    limit: int,
    config: DiscoveryConfig,
    rng: RandomSource,
    total_discovery_interactions: int = 0,
) -> List[BanditArm]:
    """
    Pick up to `limit` arms without replacement.

    Each pick explores with probability epsilon (uniform over arms with fewer than
    explore_trials_threshold trials, or over all remaining arms when none are
    under-explored) and otherwise exploits the highest average reward, ties going
    to the earliest arm. `arms` is not mutated.
    """
    epsilon = effective_epsilon(config, total_discovery_interactions)
    remaining = list(arms)
    selected: List[BanditArm] = []

    while remaining and len(selected) < limit:
        if rng.random() < epsilon:
            pool = [
                idx for idx, a in enumerate(remaining)
                if a.trials < config.explore_trials_threshold
            ] or list(range(len(remaining)))
            chosen_idx = pool[int(rng.integers(0, len(pool)))]
        else:
            chosen_idx = max(range(len(remaining)), key=lambda idx: remaining[idx].average_reward)
        selected.append(remaining.pop(chosen_idx))

    return selected

"""
Hybrid bandit: split the limit across epsilon-greedy, UCB, and Thompson sampling.
"""

import math
from typing import List, Tuple

from ...models.arm import BanditArm
from ...models.config import DiscoveryConfig
from ...utils.random_source import RandomSource
from .epsilon_greedy import select_epsilon_greedy
from .thompson import select_thompson
from .ucb import select_ucb


def hybrid_allocation(limit: int, config: DiscoveryConfig) -> Tuple[int, int, int]:
    """(epsilon, ucb, thompson) counts: ceil of each share, Thompson takes the rest (never negative)."""
    epsilon_count = math.ceil(limit * config.hybrid_epsilon_share)
    ucb_count = math.ceil(limit * config.hybrid_ucb_share)
    thompson_count = max(0, limit - epsilon_count - ucb_count)
    return epsilon_count, ucb_count, thompson_count


def dedupe_arms(arms: List[BanditArm]) -> List[BanditArm]:
    """Drop repeated item ids, keeping the first occurrence."""
    seen = set()
    unique: List[BanditArm] = []
    for arm in arms:
        if arm.item_id in seen:
            continue
        seen.add(arm.item_id)
        unique.append(arm)
    return unique


def select_hybrid(
    arms: List[BanditArm],
    limit: int,
    config: DiscoveryConfig,
    rng: RandomSource,
    total_discovery_interactions: int = 0,
) -> List[BanditArm]:
    """Run the three strategies independently, concatenate, dedupe, truncate to `limit`."""
    epsilon_count, ucb_count, thompson_count = hybrid_allocation(limit, config)
    combined = (
        select_epsilon_greedy(arms, epsilon_count, config, rng, total_discovery_interactions)
        + select_ucb(arms, ucb_count, config)
        + select_thompson(arms, thompson_count, config, rng)
    )
    return dedupe_arms(combined)[: max(0, limit)]

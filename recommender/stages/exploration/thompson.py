"""
Thompson sampling over Beta posteriors.

Beta draws use a moment-matched normal approximation clamped to [0, 1] when both
parameters exceed 1, and a uniform draw otherwise. The approximation is coarse for
small or skewed (alpha, beta).
"""

import math
from typing import List, Tuple

from ...models.arm import BanditArm
from ...models.config import DiscoveryConfig
from ...utils.random_source import RandomSource


def beta_moments(alpha: float, beta: float) -> Tuple[float, float]:
    """Mean and variance of Beta(alpha, beta)."""
    total = alpha + beta
    mean = alpha / total
    variance = (alpha * beta) / (total ** 2 * (total + 1))
    return mean, variance


def sample_beta(alpha: float, beta: float, rng: RandomSource) -> float:
    """Approximate one draw from Beta(alpha, beta)."""
    if alpha > 1 and beta > 1:
        mean, variance = beta_moments(alpha, beta)
        draw = mean + float(rng.standard_normal()) * math.sqrt(variance)
        return max(0.0, min(1.0, draw))
    return float(rng.random())


def posterior(arm: BanditArm, config: DiscoveryConfig) -> Tuple[float, float]:
    """(alpha, beta) = (prior + successes, prior + failures)."""
    alpha = config.thompson_alpha_prior + arm.successes
    beta = config.thompson_beta_prior + (arm.trials - arm.successes)
    return alpha, beta


def select_thompson(
    arms: List[BanditArm],
    limit: int,
    config: DiscoveryConfig,
    rng: RandomSource,
) -> List[BanditArm]:
    """Draw one sample per arm, sort descending (stable), take the top `limit`."""
    sampled = [(arm, sample_beta(*posterior(arm, config), rng)) for arm in arms]
    sampled.sort(key=lambda pair: pair[1], reverse=True)
    return [arm for arm, _ in sampled[: max(0, limit)]]

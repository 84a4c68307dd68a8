"""
Upper Confidence Bound selection.
"""

import math
from typing import List, Tuple

from ...models.arm import BanditArm
from ...models.config import DiscoveryConfig

# Cold arms outrank every finite UCB score.
COLD_START_PRIORITY = math.inf


def ucb_score(arm: BanditArm, total_trials: int, confidence_level: float, min_trials: int) -> float:
    """
    average_reward + sqrt(C * ln(total_trials) / trials).

    Arms below min_trials (or never tried) get COLD_START_PRIORITY.
    """
    if arm.trials < min_trials or arm.trials == 0:
        return COLD_START_PRIORITY
    log_total = math.log(total_trials) if total_trials > 0 else 0.0
    return arm.average_reward + math.sqrt(confidence_level * log_total / arm.trials)


def score_ucb(arms: List[BanditArm], config: DiscoveryConfig) -> List[Tuple[BanditArm, float]]:
    """Pair every arm with its UCB score."""
    total_trials = sum(a.trials for a in arms)
    return [
        (arm, ucb_score(arm, total_trials, config.ucb_confidence_level, config.ucb_min_trials))
        for arm in arms
    ]


def select_ucb(arms: List[BanditArm], limit: int, config: DiscoveryConfig) -> List[BanditArm]:
    """Sort once by UCB score (descending, stable) and take the top `limit`."""
    scored = score_ucb(arms, config)
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return [arm for arm, _ in scored[: max(0, limit)]]

"""
Exploration Strategy Tests

Covers the four bandit strategies over BanditArm lists:

- Epsilon-greedy: decayed epsilon floor, exploit ordering, explore preference
- UCB: score formula, cold-start priority
- Thompson sampling: Beta approximation, uniform fallback for alpha=beta=1
- Hybrid: 40/30/rest allocation, no duplicate item ids

Randomness comes from a scripted source (exact sequences) or a seeded
numpy Generator (statistical checks).

Run:
----
    pytest recommender/tests/test_exploration.py -v
"""

import math

import numpy as np
import pytest

from recommender.models import BanditArm, CandidateItem, DiscoveryConfig, ExplorationMetrics, ExplorationStrategy
from recommender.stages.exploration import (
    COLD_START_PRIORITY,
    effective_epsilon,
    hybrid_allocation,
    sample_beta,
    select_arms,
    select_epsilon_greedy,
    select_hybrid,
    select_thompson,
    select_ucb,
    ucb_score,
)


class ScriptedRandom:
    """Returns pre-scripted draws; repeats the last value once a script runs out."""

    def __init__(self, uniforms=(0.99,), normals=(0.0,), ints=(0,)):
        self._uniforms = list(uniforms)
        self._normals = list(normals)
        self._ints = list(ints)

    @staticmethod
    def _next(values):
        return values.pop(0) if len(values) > 1 else values[0]

    def random(self):
        return self._next(self._uniforms)

    def standard_normal(self):
        return self._next(self._normals)

    def integers(self, low, high):
        return min(high - 1, max(low, self._next(self._ints)))


def make_arm(item_id, trials=0, successes=0, reward=0.0):
    return BanditArm(
        item_id=item_id,
        trials=trials,
        successes=successes,
        average_reward=reward,
        confidence=math.sqrt(1 / trials) if trials else 1.0,
        item=CandidateItem(item_id=item_id, name=item_id),
    )


def ids(arms):
    return [a.item_id for a in arms]


class TestEpsilonDecay:
    def test_decay_hits_floor(self):
        config = DiscoveryConfig(epsilon=0.1, epsilon_decay_rate=0.995, min_epsilon=0.05)
        # 0.1 * 0.995 ** 200 is about 0.0367, below the floor
        assert effective_epsilon(config, 200) == pytest.approx(0.05)

    def test_no_history_uses_base_epsilon(self):
        assert effective_epsilon(DiscoveryConfig(), 0) == pytest.approx(0.1)

    def test_partial_decay(self):
        config = DiscoveryConfig()
        assert effective_epsilon(config, 10) == pytest.approx(0.1 * 0.995 ** 10)

    def test_never_below_min_epsilon(self):
        config = DiscoveryConfig(epsilon=0.3, epsilon_decay_rate=0.9, min_epsilon=0.07)
        for n in range(0, 2000, 7):
            assert effective_epsilon(config, n) >= config.min_epsilon


class TestEpsilonGreedy:
    def test_exploit_orders_by_reward_ties_first_seen(self):
        arms = [make_arm("a", 5, 2, 0.4), make_arm("b", 5, 4, 0.8), make_arm("c", 5, 4, 0.8), make_arm("d", 5, 1, 0.2)]
        picked = select_epsilon_greedy(arms, 4, DiscoveryConfig(), ScriptedRandom(uniforms=[0.99]))
        assert ids(picked) == ["b", "c", "a", "d"]

    def test_explore_prefers_under_explored_arms(self):
        arms = [make_arm("hot", 10, 9, 0.9), make_arm("cold1", 1, 0, 0.0), make_arm("cold2", 0)]
        rng = ScriptedRandom(uniforms=[0.0], ints=[0])
        picked = select_epsilon_greedy(arms, 2, DiscoveryConfig(), rng)
        assert ids(picked) == ["cold1", "cold2"]

    def test_explore_falls_back_to_all_arms(self):
        arms = [make_arm("a", 5, 1, 0.2), make_arm("b", 5, 4, 0.8)]
        rng = ScriptedRandom(uniforms=[0.0], ints=[0])
        picked = select_epsilon_greedy(arms, 1, DiscoveryConfig(), rng)
        assert ids(picked) == ["a"]

    def test_without_replacement_and_input_untouched(self):
        arms = [make_arm(f"i{n}", n % 4, 0, 0.0) for n in range(8)]
        rng = np.random.default_rng(7)
        picked = select_epsilon_greedy(arms, 20, DiscoveryConfig(epsilon=0.5), rng)
        assert len(picked) == 8
        assert len(set(ids(picked))) == 8
        assert len(arms) == 8

    def test_zero_limit(self):
        assert select_epsilon_greedy([make_arm("a")], 0, DiscoveryConfig(), ScriptedRandom()) == []


class TestUCB:
    def test_score_formula(self):
        arm = make_arm("x", trials=10, successes=5, reward=0.5)
        score = ucb_score(arm, total_trials=100, confidence_level=2.0, min_trials=5)
        assert score == pytest.approx(0.5 + math.sqrt(2 * math.log(100) / 10))
        assert score == pytest.approx(1.46, abs=0.005)

    def test_cold_arm_gets_top_priority(self):
        arm = make_arm("cold", trials=4, successes=4, reward=1.0)
        assert ucb_score(arm, 100, 2.0, 5) == COLD_START_PRIORITY

    def test_untried_arm_with_zero_min_trials(self):
        assert ucb_score(make_arm("new"), 0, 2.0, 0) == COLD_START_PRIORITY

    def test_cold_arms_outrank_warm_arms(self):
        warm = [make_arm(f"w{n}", trials=50, successes=50, reward=1.0) for n in range(3)]
        cold = [make_arm("c1", trials=4), make_arm("c2", trials=0)]
        picked = select_ucb(warm + cold, 5, DiscoveryConfig())
        assert ids(picked)[:2] == ["c1", "c2"]

    def test_warm_arms_ranked_by_bound(self):
        arms = [make_arm("low", 20, 4, 0.2), make_arm("high", 20, 16, 0.8), make_arm("mid", 20, 10, 0.5)]
        picked = select_ucb(arms, 2, DiscoveryConfig())
        assert ids(picked) == ["high", "mid"]


class TestThompson:
    def test_normal_approximation_uses_posterior_mean(self):
        rng = ScriptedRandom(normals=[0.0])
        assert sample_beta(3.0, 2.0, rng) == pytest.approx(0.6)

    def test_draw_is_clamped(self):
        assert sample_beta(3.0, 2.0, ScriptedRandom(normals=[50.0])) == 1.0
        assert sample_beta(3.0, 2.0, ScriptedRandom(normals=[-50.0])) == 0.0

    def test_small_parameters_fall_back_to_uniform(self):
        assert sample_beta(1.0, 5.0, ScriptedRandom(uniforms=[0.37])) == pytest.approx(0.37)

    def test_uninformed_prior_is_uniform(self):
        rng = np.random.default_rng(12345)
        samples = np.array([sample_beta(1.0, 1.0, rng) for _ in range(20000)])
        assert samples.min() >= 0.0 and samples.max() <= 1.0
        assert samples.mean() == pytest.approx(0.5, abs=0.01)
        counts, _ = np.histogram(samples, bins=10, range=(0.0, 1.0))
        for count in counts:
            assert abs(count / len(samples) - 0.1) < 0.015

    def test_sorts_by_sample(self):
        arms = [make_arm("a"), make_arm("b"), make_arm("c")]
        rng = ScriptedRandom(uniforms=[0.2, 0.9, 0.5])
        picked = select_thompson(arms, 3, DiscoveryConfig(), rng)
        assert ids(picked) == ["b", "c", "a"]


class TestHybrid:
    def test_allocation_default_split(self):
        assert hybrid_allocation(10, DiscoveryConfig()) == (4, 3, 3)

    def test_allocation_never_negative(self):
        assert hybrid_allocation(1, DiscoveryConfig()) == (1, 1, 0)
        assert hybrid_allocation(0, DiscoveryConfig()) == (0, 0, 0)

    def test_no_duplicates_and_respects_limit(self):
        arms = [make_arm(f"i{n}", trials=n % 7, successes=0) for n in range(12)]
        rng = np.random.default_rng(3)
        for limit in range(1, 15):
            picked = select_hybrid(arms, limit, DiscoveryConfig(), rng)
            assert len(picked) == len(set(ids(picked)))
            assert len(picked) <= limit


class TestSelectArms:
    @pytest.mark.parametrize("strategy", list(ExplorationStrategy))
    def test_every_strategy_dispatches(self, strategy):
        arms = [make_arm(f"i{n}", trials=n, successes=n // 2, reward=(n // 2) / n if n else 0.0) for n in range(10)]
        picked = select_arms(strategy, arms, 5, np.random.default_rng(1))
        assert 0 < len(picked) <= 5
        assert len(set(ids(picked))) == len(picked)

    def test_accepts_string_strategy(self):
        picked = select_arms("ucb", [make_arm("a"), make_arm("b")], 1, ScriptedRandom())
        assert ids(picked) == ["a"]

    def test_metrics_drive_decay(self):
        # With 1000 discovery interactions epsilon sits at the floor; a draw of 0.06 exploits.
        arms = [make_arm("best", 5, 5, 1.0), make_arm("cold", 0)]
        metrics = ExplorationMetrics(user_id="u", total_discovery_interactions=1000)
        picked = select_arms(
            ExplorationStrategy.EPSILON_GREEDY, arms, 1, ScriptedRandom(uniforms=[0.06]), metrics=metrics
        )
        assert ids(picked) == ["best"]

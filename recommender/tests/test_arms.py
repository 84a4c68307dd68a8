"""
Arm Initialization and Feedback Tests

Arms are seeded from the candidate pool plus the user's recent interaction feed:

- rating >= 4: success, reward (rating - 3) / 2
- purchase / favorite: success, reward 0.8
- rating < 4: one trial, no success
- views, clicks and other engagement: ignored (arm stays untried)
- a successful interaction beats an unsuccessful one on the same item
- no interaction: untried, confidence 1.0

Run:
----
    pytest recommender/tests/test_arms.py -v
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from recommender.models import BanditArm, CandidateItem, DiscoveryConfig, Interaction
from recommender.stages import (
    apply_feedback,
    build_arms,
    bump_metrics,
    default_metrics,
    derive_exploration_metrics,
    top_performing_arms,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def items(*item_ids):
    return [CandidateItem(item_id=i, name=i.title(), origin="Kenya", roast_level="light") for i in item_ids]


def interaction(item_id, type_, value=None, days_ago=1, **metadata):
    return Interaction(
        item_id=item_id,
        type=type_,
        value=value,
        timestamp=NOW - timedelta(days=days_ago),
        metadata=metadata,
    )


class TestBuildArms:
    def test_seeding_rules(self):
        pool = items("five", "four", "bought", "viewed", "fresh", "meh")
        feed = [
            interaction("five", "rating", 5),
            interaction("four", "rating", 4),
            interaction("bought", "purchase"),
            interaction("viewed", "view"),
            interaction("meh", "rating", 3),
        ]
        arms = {a.item_id: a for a in build_arms(pool, feed, DiscoveryConfig(), now=NOW)}

        assert (arms["five"].trials, arms["five"].successes, arms["five"].average_reward) == (1, 1, 1.0)
        assert arms["four"].average_reward == pytest.approx(0.5)
        assert arms["bought"].average_reward == pytest.approx(0.8)
        assert (arms["viewed"].trials, arms["viewed"].confidence) == (0, 1.0)
        assert (arms["meh"].trials, arms["meh"].successes) == (1, 0)
        assert (arms["fresh"].trials, arms["fresh"].average_reward, arms["fresh"].confidence) == (0, 0.0, 1.0)
        assert arms["five"].confidence == pytest.approx(1.0)

    def test_preserves_candidate_order_and_attributes(self):
        pool = items("b", "a", "c")
        arms = build_arms(pool, [], now=NOW)
        assert [a.item_id for a in arms] == ["b", "a", "c"]
        assert arms[0].attributes.origin == "Kenya"
        assert arms[0].attributes.processing_method == "unknown"

    def test_interactions_outside_window_are_ignored(self):
        feed = [interaction("a", "purchase", days_ago=45)]
        arms = build_arms(items("a"), feed, DiscoveryConfig(feedback_window_days=30), now=NOW)
        assert arms[0].trials == 0

    def test_later_view_does_not_erase_rating(self):
        feed = [
            interaction("a", "rating", 5, days_ago=2),
            interaction("a", "view", days_ago=1),
        ]
        arm = build_arms(items("a"), feed, now=NOW)[0]
        assert (arm.trials, arm.successes, arm.average_reward) == (1, 1, 1.0)

    def test_engagement_only_item_keeps_cold_start(self):
        feed = [interaction("a", "view"), interaction("a", "click"), interaction("a", "share")]
        arm = build_arms(items("a"), feed, now=NOW)[0]
        assert (arm.trials, arm.successes, arm.confidence) == (0, 0, 1.0)

    def test_success_beats_later_failure(self):
        feed = [
            interaction("a", "purchase", days_ago=5),
            interaction("a", "rating", 2, days_ago=1),
        ]
        arm = build_arms(items("a"), feed, now=NOW)[0]
        assert (arm.trials, arm.successes) == (1, 1)
        assert arm.average_reward == pytest.approx(0.8)

    def test_most_recent_success_wins(self):
        feed = [
            interaction("a", "purchase", days_ago=5),
            interaction("a", "rating", 5, days_ago=1),
        ]
        arm = build_arms(items("a"), feed, now=NOW)[0]
        assert arm.average_reward == pytest.approx(1.0)

    def test_successes_never_exceed_trials(self):
        with pytest.raises(ValueError):
            BanditArm(item_id="x", trials=1, successes=2, item=CandidateItem(item_id="x"))


class TestFeedback:
    def test_positive_then_negative(self):
        arm = build_arms(items("a"), [], now=NOW)[0]
        apply_feedback(arm, "positive", NOW)
        assert (arm.trials, arm.successes, arm.average_reward, arm.confidence) == (1, 1, 1.0, 1.0)

        apply_feedback(arm, "negative", NOW)
        assert (arm.trials, arm.successes) == (2, 1)
        assert arm.average_reward == pytest.approx(0.5)
        assert arm.confidence == pytest.approx(math.sqrt(0.5))

    def test_neutral_counts_as_trial(self):
        arm = build_arms(items("a"), [], now=NOW)[0]
        apply_feedback(arm, "neutral", NOW)
        assert (arm.trials, arm.successes, arm.average_reward) == (1, 0, 0.0)

    def test_metrics_bump(self):
        metrics = default_metrics("u1")
        bump_metrics(metrics, "positive", NOW)
        bump_metrics(metrics, "negative", NOW)
        assert metrics.total_discovery_interactions == 2
        assert metrics.successful_discoveries == 1
        assert metrics.success_rate == pytest.approx(0.5)


class TestExplorationMetrics:
    def test_defaults_without_history(self):
        metrics = derive_exploration_metrics("u1", [], now=NOW)
        assert metrics.exploration_rate == pytest.approx(0.1)
        assert metrics.novelty_preference == pytest.approx(0.5)
        assert metrics.total_discovery_interactions == 0
        assert metrics.success_rate == 0.0

    def test_derived_from_feed(self):
        feed = [
            interaction("a", "rating", 5, source="discovery", origin="Kenya", roast_level="light"),
            interaction("b", "purchase", algorithm="discovery-ucb", origin="Ethiopia", roast_level="dark"),
            interaction("c", "view", origin="Colombia"),
            interaction("d", "click", origin="Kenya"),
        ]
        metrics = derive_exploration_metrics("u1", feed, now=NOW)
        assert metrics.exploration_rate == pytest.approx(0.5)
        assert metrics.total_discovery_interactions == 2
        assert metrics.successful_discoveries == 2
        assert metrics.novelty_preference == pytest.approx(1.0)
        # 3 origins + 2 roasts
        assert metrics.diversity_score == pytest.approx(0.5)

    def test_diversity_score_capped(self):
        feed = [interaction(f"i{n}", "view", origin=f"o{n}", roast_level=f"r{n}") for n in range(8)]
        assert derive_exploration_metrics("u1", feed, now=NOW).diversity_score == 1.0


class TestTopPerformingArms:
    def test_only_tried_arms_best_first(self):
        arms = build_arms(items("a", "b", "c", "d"), [], now=NOW)
        apply_feedback(arms[0], "negative", NOW)
        apply_feedback(arms[1], "positive", NOW)
        apply_feedback(arms[2], "positive", NOW)
        apply_feedback(arms[2], "negative", NOW)
        top = top_performing_arms(arms, n=5)
        assert [a.item_id for a in top] == ["b", "c", "a"]
        assert len(top_performing_arms(arms, n=1)) == 1

"""
Blending and Diversity Tests

Blend: combined = sum(score * weight) + min(0.1 * n_sources, 0.3), capped at 1.0.
Reasons: one per source (social > collaborative > content-based > popularity >
discovery), backfilled to 4.
Diversity: greedy, order-preserving admission under per-attribute caps.

Run:
----
    pytest recommender/tests/test_blending.py -v
"""

import numpy as np
import pytest

from recommender.models import (
    BlendConfig,
    CandidateItem,
    DiscoveryConfig,
    DiversityCaps,
    ExplorationStrategy,
    RecommendationCandidate,
    ScoredItem,
    SignalList,
)
from recommender.stages import (
    apply_diversity_caps,
    blend_signals,
    build_arms,
    consolidate_reasons,
    create_blended_queue,
    create_discovery_queue,
    create_single_source_queue,
    discovery_signal,
)
from recommender.stages.blending import coverage_bonus


def coffee(item_id, origin="Kenya", roast="light", process="washed", **extra):
    return CandidateItem(
        item_id=item_id,
        name=item_id,
        origin=origin,
        roast_level=roast,
        processing_method=process,
        **extra,
    )


def signal(source, *entries):
    return SignalList(
        source=source,
        items=[ScoredItem(item=item, score=score, reasons=list(reasons)) for item, score, *reasons in entries],
    )


def candidate(item, score):
    return RecommendationCandidate(item=item, score=score)


class TestBlend:
    def test_two_source_example(self):
        x = coffee("x")
        blended = blend_signals([signal("content-based", (x, 0.6)), signal("popularity", (x, 0.4))])
        assert len(blended) == 1
        # 0.6*0.3 + 0.4*0.2 + min(0.1*2, 0.3)
        assert blended[0].score == pytest.approx(0.46)
        assert blended[0].source_scores == {"content-based": 0.6, "popularity": 0.4}
        assert blended[0].algorithm == "hybrid"

    def test_score_capped_at_one(self):
        x = coffee("x")
        lists = [signal(s, (x, 1.0)) for s in ("collaborative", "content-based", "popularity", "social", "discovery")]
        blended = blend_signals(lists, BlendConfig(weights={s.source: 1.0 for s in lists}))
        assert blended[0].score == 1.0

    def test_coverage_bonus_caps(self):
        config = BlendConfig()
        assert coverage_bonus(1, config) == pytest.approx(0.1)
        assert coverage_bonus(5, config) == pytest.approx(0.3)

    def test_sorted_descending_and_exclusions(self):
        a, b, c = coffee("a"), coffee("b"), coffee("c")
        blended = blend_signals(
            [signal("collaborative", (a, 0.2), (b, 0.9), (c, 0.5))],
            excluded_ids={"c"},
        )
        assert [r.item_id for r in blended] == ["b", "a"]

    def test_repeated_item_in_one_source_counts_once(self):
        a = coffee("a")
        blended = blend_signals([signal("collaborative", (a, 0.5), (a, 0.9))])
        assert blended[0].score == pytest.approx(0.5 * 0.4 + 0.1)

    def test_unweighted_source_still_earns_coverage(self):
        a = coffee("a")
        config = BlendConfig().with_weights({"social": 0.0})
        blended = blend_signals([signal("social", (a, 0.9))], config)
        assert blended[0].score == pytest.approx(0.1)

    def test_truncates_to_max_candidates(self):
        entries = [(coffee(f"i{n}"), n / 100) for n in range(30)]
        blended = blend_signals([signal("popularity", *entries)], BlendConfig(max_candidates=10))
        assert len(blended) == 10
        assert blended[0].item_id == "i29"

    def test_blended_score_never_exceeds_one(self):
        rng = np.random.default_rng(0)
        pool = [coffee(f"i{n}") for n in range(20)]
        lists = [
            signal(source, *[(item, float(rng.random())) for item in pool])
            for source in ("collaborative", "content-based", "popularity", "social", "discovery")
        ]
        for candidate_ in blend_signals(lists):
            assert candidate_.score <= 1.0


class TestReasons:
    def test_priority_then_backfill(self):
        reasons = [
            ("discovery", "d1"),
            ("popularity", "p1"),
            ("collaborative", "c1"),
            ("collaborative", "c2"),
            ("social", "s1"),
            ("content-based", "cb1"),
        ]
        assert consolidate_reasons(reasons) == ["s1", "c1", "cb1", "p1"]
        assert consolidate_reasons(reasons, max_reasons=6) == ["s1", "c1", "cb1", "p1", "d1", "c2"]

    def test_duplicates_removed(self):
        reasons = [("collaborative", "same"), ("popularity", "same"), ("popularity", "other")]
        assert consolidate_reasons(reasons) == ["same", "other"]

    def test_blend_carries_reasons(self):
        x = coffee("x")
        blended = blend_signals(
            [signal("popularity", (x, 0.5, "Trending")), signal("social", (x, 0.5, "Friends loved it"))]
        )
        assert blended[0].reasons == ["Friends loved it", "Trending"]


class TestDiversity:
    def test_caps_enforced_in_input_order(self):
        ranked = [
            candidate(coffee("k1", origin="Kenya"), 0.9),
            candidate(coffee("k2", origin="Kenya"), 0.8),
            candidate(coffee("k3", origin="Kenya"), 0.7),
            candidate(coffee("e1", origin="Ethiopia"), 0.6),
        ]
        kept = apply_diversity_caps(ranked, DiversityCaps(origin=2))
        assert [c.item_id for c in kept] == ["k1", "k2", "e1"]

    def test_stops_at_target_size(self):
        ranked = [candidate(coffee(f"i{n}", origin=f"o{n}"), 0.5) for n in range(10)]
        kept = apply_diversity_caps(ranked, DiversityCaps(origin=1), target_size=4)
        assert [c.item_id for c in kept] == ["i0", "i1", "i2", "i3"]

    def test_no_cap_exceeded(self):
        rng = np.random.default_rng(5)
        origins, roasts, processes = ["Kenya", "Ethiopia", "Brazil"], ["light", "medium", "dark"], ["washed", "natural"]
        ranked = [
            candidate(
                coffee(
                    f"i{n}",
                    origin=origins[rng.integers(0, 3)],
                    roast=roasts[rng.integers(0, 3)],
                    process=processes[rng.integers(0, 2)],
                ),
                0.5,
            )
            for n in range(60)
        ]
        caps = DiversityCaps(origin=2, roast_level=3, processing_method=2)
        kept = apply_diversity_caps(ranked, caps)
        for dim, cap in caps.as_dict().items():
            values = [getattr(c.item, dim) for c in kept]
            for value in set(values):
                assert values.count(value) <= cap

    def test_missing_attributes_share_unknown_bucket(self):
        ranked = [candidate(CandidateItem(item_id=f"i{n}"), 0.5) for n in range(5)]
        kept = apply_diversity_caps(ranked, DiversityCaps(origin=3))
        assert len(kept) == 3


class TestQueues:
    def test_discovery_queue(self):
        pool = [coffee(f"i{n}", origin=["Kenya", "Ethiopia", "Peru"][n % 3], roast=["light", "dark"][n % 2],
                       process=["washed", "natural", "honey"][n % 3], flavor_notes=["berry", "cocoa", "citrus"])
                for n in range(12)]
        arms = build_arms(pool, [])
        queue = create_discovery_queue(arms, ExplorationStrategy.UCB, 5, np.random.default_rng(0))
        assert len(queue) == 5
        assert len({c.item_id for c in queue}) == 5
        first = queue[0]
        assert first.algorithm == "discovery-ucb"
        assert first.reasons[0] == "High potential with confidence-based selection"
        assert "Discover flavors: berry, cocoa" in first.reasons
        caps = DiscoveryConfig().diversity.as_dict()
        for dim, cap in caps.items():
            values = [getattr(c.item, dim) for c in queue]
            assert all(values.count(v) <= cap for v in values)

    def test_discovery_queue_respects_exclusions_and_empty_pool(self):
        arms = build_arms([coffee("a", origin="A"), coffee("b", origin="B")], [])
        queue = create_discovery_queue(arms, "thompson-sampling", 5, np.random.default_rng(0), excluded_ids={"a"})
        assert [c.item_id for c in queue] == ["b"]
        assert create_discovery_queue([], ExplorationStrategy.HYBRID, 5, np.random.default_rng(0)) == []

    def test_discovery_signal_feeds_blend(self):
        arms = build_arms([coffee("a")], [])
        queue = create_discovery_queue(arms, ExplorationStrategy.EPSILON_GREEDY, 1, np.random.default_rng(0))
        sig = discovery_signal(queue)
        assert sig.source == "discovery"
        assert sig.items[0].item_id == "a"

    def test_blended_queue_applies_hybrid_caps(self):
        entries = [(coffee(f"k{n}", origin="Kenya", roast=f"r{n}"), 0.9 - n / 100) for n in range(6)]
        entries.append((coffee("p0", origin="Peru"), 0.1))
        queue = create_blended_queue([signal("collaborative", *entries)], 10)
        origins = [c.item.origin for c in queue]
        assert origins.count("Kenya") == 3
        assert queue[-1].item_id == "p0"

    def test_single_source_queue(self):
        a, b, c = coffee("a"), coffee("b"), coffee("c")
        queue = create_single_source_queue(
            signal("popularity", (a, 0.3, "Popular"), (b, 1.7, "Hot"), (c, 0.9)), 2, excluded_ids={"c"}
        )
        assert [r.item_id for r in queue] == ["b", "a"]
        assert queue[0].score == 1.0
        assert queue[0].match_percent == 100
        assert queue[0].algorithm == "popularity"


class TestConfigLoading:
    def test_discovery_from_dict(self):
        config = DiscoveryConfig.from_dict(
            {
                "epsilon_greedy": {"epsilon": 0.2, "decay_rate": 0.99},
                "ucb": {"confidence_level": 1.5},
                "diversity": {"origin": 4},
                "unknown_section": {"x": 1},
            }
        )
        assert config.epsilon == 0.2
        assert config.epsilon_decay_rate == 0.99
        assert config.ucb_confidence_level == 1.5
        assert config.diversity.origin == 4
        assert config.min_epsilon == 0.05

    def test_invalid_shares_rejected(self):
        with pytest.raises(ValueError):
            DiscoveryConfig(hybrid_epsilon_share=0.8, hybrid_ucb_share=0.5)

    def test_blend_weights_merge_with_defaults(self):
        config = BlendConfig.from_dict({"weights": {"social": 0.5}})
        assert config.weights["social"] == 0.5
        assert config.weights["collaborative"] == 0.4

    def test_unknown_weight_source_rejected(self):
        with pytest.raises(ValueError):
            BlendConfig().with_weights({"astrology": 1.0})

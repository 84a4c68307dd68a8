"""
Coffee recommendation core: bandit exploration and multi-source blending.

Single entry point for the algorithm package:
- models/: configs, BanditArm, ExplorationMetrics, CandidateItem, Interaction, candidates
- stages/: arms, exploration strategies, blending, diversity, orchestrator
- utils/: seedable random source
"""

from .models import (
    DEFAULT_BLEND_CONFIG,
    DEFAULT_DISCOVERY_CONFIG,
    BanditArm,
    BlendConfig,
    CandidateItem,
    DiscoveryConfig,
    DiversityCaps,
    ExplorationMetrics,
    ExplorationStrategy,
    Interaction,
    ModelAlgorithm,
    RecommendationCandidate,
    ScoredItem,
    SignalList,
)
from .stages import (
    apply_diversity_caps,
    blend_signals,
    build_arms,
    create_blended_queue,
    create_discovery_queue,
    create_single_source_queue,
    derive_exploration_metrics,
    select_arms,
)
from .utils import RandomSource, make_random_source

__all__ = [
    "DEFAULT_BLEND_CONFIG",
    "DEFAULT_DISCOVERY_CONFIG",
    "BanditArm",
    "BlendConfig",
    "CandidateItem",
    "DiscoveryConfig",
    "DiversityCaps",
    "ExplorationMetrics",
    "ExplorationStrategy",
    "Interaction",
    "ModelAlgorithm",
    "RandomSource",
    "RecommendationCandidate",
    "ScoredItem",
    "SignalList",
    "apply_diversity_caps",
    "blend_signals",
    "build_arms",
    "create_blended_queue",
    "create_discovery_queue",
    "create_single_source_queue",
    "derive_exploration_metrics",
    "make_random_source",
    "select_arms",
]

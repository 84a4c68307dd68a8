"""Data models for the recommendation core."""

from .arm import BanditArm, ExplorationMetrics, ItemAttributes, confidence_for
from .candidate import RecommendationCandidate, ScoredItem, SignalList
from .config import (
    DEFAULT_BLEND_CONFIG,
    DEFAULT_DISCOVERY_CONFIG,
    DEFAULT_SOURCE_WEIGHTS,
    BlendConfig,
    DiscoveryConfig,
    DiversityCaps,
    resolve_blend_config,
    resolve_discovery_config,
)
from .interaction import (
    CandidateItem,
    FeedbackSignal,
    Interaction,
    InteractionType,
    ensure_candidates,
    ensure_interactions,
)
from .kinds import REASON_PRIORITY, SIGNAL_SOURCES, ExplorationStrategy, ModelAlgorithm

__all__ = [
    "BanditArm",
    "BlendConfig",
    "CandidateItem",
    "DEFAULT_BLEND_CONFIG",
    "DEFAULT_DISCOVERY_CONFIG",
    "DEFAULT_SOURCE_WEIGHTS",
    "DiscoveryConfig",
    "DiversityCaps",
    "ExplorationMetrics",
    "ExplorationStrategy",
    "FeedbackSignal",
    "Interaction",
    "InteractionType",
    "ItemAttributes",
    "ModelAlgorithm",
    "REASON_PRIORITY",
    "RecommendationCandidate",
    "SIGNAL_SOURCES",
    "ScoredItem",
    "SignalList",
    "confidence_for",
    "ensure_candidates",
    "ensure_interactions",
    "resolve_blend_config",
    "resolve_discovery_config",
]

"""Pipeline stages: arms, exploration, blending, diversity, queue orchestration."""

from .arms import (
    apply_feedback,
    build_arms,
    bump_metrics,
    default_metrics,
    derive_exploration_metrics,
    top_performing_arms,
)
from .blending import blend_signals, consolidate_reasons
from .diversity import apply_diversity_caps
from .exploration import select_arms
from .orchestrator import (
    create_blended_queue,
    create_discovery_queue,
    create_single_source_queue,
    discovery_signal,
)

__all__ = [
    "apply_diversity_caps",
    "apply_feedback",
    "blend_signals",
    "build_arms",
    "bump_metrics",
    "consolidate_reasons",
    "create_blended_queue",
    "create_discovery_queue",
    "create_single_source_queue",
    "default_metrics",
    "derive_exploration_metrics",
    "discovery_signal",
    "select_arms",
    "top_performing_arms",
]

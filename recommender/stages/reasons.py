"""Human-readable reasons for discovery picks."""

from typing import List

from ..models.interaction import CandidateItem
from ..models.kinds import ExplorationStrategy

STRATEGY_REASONS = {
    ExplorationStrategy.EPSILON_GREEDY: "Balanced exploration-exploitation choice",
    ExplorationStrategy.UCB: "High potential with confidence-based selection",
    ExplorationStrategy.THOMPSON_SAMPLING: "Probabilistic exploration based on uncertainty",
    ExplorationStrategy.HYBRID: "Multi-algorithm discovery recommendation",
}


def discovery_reasons(item: CandidateItem, strategy: ExplorationStrategy) -> List[str]:
    """Strategy reason first, then one reason per known attribute."""
    reasons = [STRATEGY_REASONS[ExplorationStrategy(strategy)]]
    if item.origin:
        reasons.append(f"Explore coffee from {item.origin}")
    if item.roast_level:
        reasons.append(f"Try {item.roast_level} roast level")
    if item.processing_method:
        reasons.append(f"Experience {item.processing_method} processing")
    if item.flavor_notes:
        reasons.append(f"Discover flavors: {', '.join(item.flavor_notes[:2])}")
    return reasons

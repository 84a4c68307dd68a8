"""
Closed enumerations for algorithm selection.

ModelAlgorithm names what a deployed model version serves; ExplorationStrategy
names the bandit strategy used for the discovery source. Dispatch tables key on
these enums, so adding a member without a handler fails at import time.
"""

from enum import Enum


class ExplorationStrategy(str, Enum):
    """Multi-armed bandit strategies for discovery."""

    EPSILON_GREEDY = "epsilon-greedy"
    UCB = "ucb"
    THOMPSON_SAMPLING = "thompson-sampling"
    HYBRID = "hybrid"


class ModelAlgorithm(str, Enum):
    """Algorithm kinds a model version can be deployed with."""

    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content-based"
    HYBRID = "hybrid"
    POPULARITY = "popularity"
    DISCOVERY = "discovery"
    SOCIAL = "social"


# Signal sources that feed the blend (everything except the hybrid composite).
SIGNAL_SOURCES = (
    ModelAlgorithm.COLLABORATIVE,
    ModelAlgorithm.CONTENT_BASED,
    ModelAlgorithm.POPULARITY,
    ModelAlgorithm.DISCOVERY,
    ModelAlgorithm.SOCIAL,
)

# Reason priority when consolidating blended reasons (highest first).
REASON_PRIORITY = (
    ModelAlgorithm.SOCIAL,
    ModelAlgorithm.COLLABORATIVE,
    ModelAlgorithm.CONTENT_BASED,
    ModelAlgorithm.POPULARITY,
    ModelAlgorithm.DISCOVERY,
)

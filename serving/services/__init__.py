"""Serving services: stores, routing, cache, rate limiting, collaborators, facade."""

from .arm_store import ArmStore
from .experiment_router import (
    Assignment,
    Experiment,
    ExperimentArm,
    ExperimentResult,
    ExperimentRouter,
    user_bucket,
)
from .locks import KeyedLocks
from .model_registry import (
    DEFAULT_MODEL_ID,
    DeployResult,
    ModelRegistry,
    ModelVersion,
    PerformanceSnapshot,
)
from .periodic import PeriodicTask
from .providers import (
    CandidateProvider,
    InteractionFeed,
    JsonCatalogProvider,
    JsonInteractionFeed,
    JsonSignalScorer,
    SignalScorer,
    StaticCandidateProvider,
    StaticInteractionFeed,
    StaticSignalScorer,
)
from .rate_limiter import RateLimiter
from .response_cache import ResponseCache, make_cache_key
from .serving import RecommendationService, ServeOptions, ServingEvent

__all__ = [
    "ArmStore",
    "Assignment",
    "Experiment",
    "ExperimentArm",
    "ExperimentResult",
    "ExperimentRouter",
    "user_bucket",
    "KeyedLocks",
    "DEFAULT_MODEL_ID",
    "DeployResult",
    "ModelRegistry",
    "ModelVersion",
    "PerformanceSnapshot",
    "PeriodicTask",
    "CandidateProvider",
    "InteractionFeed",
    "JsonCatalogProvider",
    "JsonInteractionFeed",
    "JsonSignalScorer",
    "SignalScorer",
    "StaticCandidateProvider",
    "StaticInteractionFeed",
    "StaticSignalScorer",
    "RateLimiter",
    "ResponseCache",
    "make_cache_key",
    "RecommendationService",
    "ServeOptions",
    "ServingEvent",
]

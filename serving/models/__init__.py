"""Pydantic request/response models for the API."""

from .common import (
    ArmSummary,
    RecommendationResponse,
    RecommendedItem,
    ServeMetadata,
    ServingStats,
    UserDiscoveryStats,
)
from .requests import (
    CreateExperimentRequest,
    DeployModelRequest,
    ExperimentModelRequest,
    ExperimentStatusRequest,
    FeedbackRequest,
    RecommendationRequest,
)

__all__ = [
    "ArmSummary",
    "RecommendationResponse",
    "RecommendedItem",
    "ServeMetadata",
    "ServingStats",
    "UserDiscoveryStats",
    "CreateExperimentRequest",
    "DeployModelRequest",
    "ExperimentModelRequest",
    "ExperimentStatusRequest",
    "FeedbackRequest",
    "RecommendationRequest",
]

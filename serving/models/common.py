"""Pydantic models shared by the service and the API responses."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from recommender.models import CandidateItem


class RecommendedItem(BaseModel):
    item: CandidateItem
    score: float
    match_percent: int
    reasons: List[str] = []
    algorithm: str = ""


class ServeMetadata(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_version: str
    algorithm: str
    cached: bool = False
    ab_group: Optional[str] = None
    processing_time_ms: float = 0.0
    request_id: str = ""
    degraded_sources: List[str] = []


class RecommendationResponse(BaseModel):
    items: List[RecommendedItem]
    metadata: ServeMetadata


class ArmSummary(BaseModel):
    item_id: str
    name: str = ""
    trials: int
    successes: int
    average_reward: float
    confidence: float


class UserDiscoveryStats(BaseModel):
    user_id: str
    exploration_rate: float
    diversity_score: float
    total_discoveries: int
    success_rate: float
    top_performing_arms: List[ArmSummary] = []


class ServingStats(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_versions: int
    active_experiments: int
    cache_size: int
    cache_hit_rate: float
    current_model: Optional[str] = None
    rate_limit_windows: int = 0
    users_with_arms: int = 0

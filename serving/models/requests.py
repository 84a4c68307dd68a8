"""Request bodies for the recommendation and admin endpoints."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from recommender.models import ModelAlgorithm


class RecommendationRequest(BaseModel):
    user_id: str = Field(min_length=1)
    limit: int = Field(default=10, ge=1, le=100)
    algorithm: Optional[ModelAlgorithm] = None
    exclude_ids: List[str] = []
    use_cache: bool = True
    include_reasons: bool = True


class FeedbackRequest(BaseModel):
    user_id: str
    item_id: str
    signal: Literal["positive", "negative", "neutral"]


class DeployModelRequest(BaseModel):
    # Left loosely typed so validation failures come back as {success: false}.
    name: str = ""
    version: str = ""
    algorithm: str = ""
    config: Dict[str, Any] = {}
    set_as_default: bool = False


class ExperimentModelRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    traffic_percentage: float
    name: str = ""


class CreateExperimentRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    name: str = ""
    description: str = ""
    model_versions: List[ExperimentModelRequest] = []
    duration_days: Optional[float] = None
    eligibility_percentage: float = 100.0
    metrics: List[str] = []


class ExperimentStatusRequest(BaseModel):
    status: Literal["running", "paused", "completed"]

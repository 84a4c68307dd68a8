"""
Bandit arm and per-user exploration metrics.
"""

import math
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field, model_validator

from .interaction import CandidateItem


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def confidence_for(trials: int) -> float:
    """sqrt(1 / trials), or 1.0 for an untried arm."""
    return math.sqrt(1 / trials) if trials > 0 else 1.0


class ItemAttributes(BaseModel):
    """Static attribute tags copied onto an arm when it is created."""

    roast_level: str = "unknown"
    origin: str = "unknown"
    processing_method: str = "unknown"
    flavor_notes: List[str] = []
    avg_rating: float = 0.0

    @classmethod
    def from_item(cls, item: CandidateItem) -> "ItemAttributes":
        return cls(
            roast_level=item.roast_level or "unknown",
            origin=item.origin or "unknown",
            processing_method=item.processing_method or "unknown",
            flavor_notes=list(item.flavor_notes),
            avg_rating=item.avg_rating,
        )


class BanditArm(BaseModel):
    """One candidate item tracked with trial/success counters."""

    item_id: str
    trials: int = Field(default=0, ge=0)
    successes: int = Field(default=0, ge=0)
    average_reward: float = Field(default=0.0, ge=0.0, le=1.0)
    confidence: float = 1.0
    last_updated: datetime = Field(default_factory=_utcnow)
    attributes: ItemAttributes = Field(default_factory=ItemAttributes)
    item: CandidateItem

    @model_validator(mode="after")
    def successes_within_trials(self):
        if self.successes > self.trials:
            raise ValueError(f"successes ({self.successes}) exceed trials ({self.trials})")
        return self


class ExplorationMetrics(BaseModel):
    """Per-user exploration behaviour, derived from history and bumped on feedback."""

    user_id: str
    exploration_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    diversity_score: float = Field(default=0.5, ge=0.0, le=1.0)
    novelty_preference: float = Field(default=0.5, ge=0.0, le=1.0)
    total_discovery_interactions: int = Field(default=0, ge=0)
    successful_discoveries: int = Field(default=0, ge=0)
    last_updated: datetime = Field(default_factory=_utcnow)

    @property
    def success_rate(self) -> float:
        if self.total_discovery_interactions == 0:
            return 0.0
        return self.successful_discoveries / self.total_discovery_interactions

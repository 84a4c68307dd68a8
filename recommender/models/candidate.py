"""
Scoring models: signal-source output and the blended recommendation candidate.

Contains:
- ScoredItem: one entry of a signal scorer's ranked list
- SignalList: a scorer's ranked list tagged with its source name
- RecommendationCandidate: an item with per-source scores, blended score, and reasons
"""

from typing import Dict, List

from pydantic import BaseModel, Field

from .interaction import CandidateItem


class ScoredItem(BaseModel):
    """An item as returned by a signal scorer."""

    item: CandidateItem
    score: float = Field(ge=0.0)
    reasons: List[str] = []

    @property
    def item_id(self) -> str:
        return self.item.item_id


class SignalList(BaseModel):
    """One ranked candidate list from a named source."""

    source: str
    items: List[ScoredItem] = []


class RecommendationCandidate(BaseModel):
    """A candidate built per request; never persisted by the core."""

    item: CandidateItem
    source_scores: Dict[str, float] = {}
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    reasons: List[str] = []
    algorithm: str = ""

    @property
    def item_id(self) -> str:
        return self.item.item_id

    @property
    def match_percent(self) -> int:
        return round(self.score * 100)

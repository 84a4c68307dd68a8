"""
Inputs handed to the core by its collaborators.

CandidateItem: one catalog item in a pre-filtered candidate pool.
Interaction: one record from a user's interaction feed.
Built from provider dicts via model_validate(d) or ensure_candidates()/ensure_interactions().
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

InteractionType = Literal[
    "view", "click", "rating", "purchase", "favorite", "search", "share", "review"
]

FeedbackSignal = Literal["positive", "negative", "neutral"]


class CandidateItem(BaseModel):
    """
    A recommendable item with its static attribute tags.

    avg_rating doubles as the quality score used by the provider's quality floor.
    """

    model_config = ConfigDict(extra="allow")

    item_id: str
    name: str = ""
    roast_level: Optional[str] = None
    origin: Optional[str] = None
    processing_method: Optional[str] = None
    flavor_notes: List[str] = []
    avg_rating: float = 0.0
    is_available: bool = True


class Interaction(BaseModel):
    """A single user interaction (view, rating, purchase, ...) with an item."""

    model_config = ConfigDict(extra="allow")

    item_id: str
    type: InteractionType
    value: Optional[float] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = {}

    def is_success(self) -> bool:
        """Rating of 4+ or a purchase/favorite counts as a successful outcome."""
        if self.type == "rating":
            return self.value is not None and self.value >= 4
        return self.type in ("purchase", "favorite")

    def is_discovery(self) -> bool:
        """True when the interaction came from a discovery recommendation."""
        if self.metadata.get("source") == "discovery":
            return True
        algorithm = self.metadata.get("algorithm")
        return isinstance(algorithm, str) and "discovery" in algorithm


def ensure_candidates(items: List[Union[Dict, CandidateItem]]) -> List[CandidateItem]:
    """Convert list of dicts or CandidateItems to CandidateItem models."""
    return [CandidateItem.model_validate(i) if isinstance(i, dict) else i for i in items]


def ensure_interactions(items: List[Union[Dict, Interaction]]) -> List[Interaction]:
    """Convert list of dicts or Interactions to Interaction models."""
    return [Interaction.model_validate(i) if isinstance(i, dict) else i for i in items]

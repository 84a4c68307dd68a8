"""
Collaborator abstractions: candidate pool, interaction feed, signal scorers.

The serving layer never queries storage itself; it awaits these collaborators
before touching any in-memory store. Implementations: in-memory (tests,
embedding) and JSON files (local runs). Swap via ServerConfig paths.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set, Union

from recommender.models import (
    CandidateItem,
    Interaction,
    ScoredItem,
    SignalList,
    ensure_candidates,
    ensure_interactions,
)

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 40
DEFAULT_MIN_QUALITY = 3.0


class CandidateProvider(Protocol):
    """Supplies the pre-filtered, available-only candidate pool for a user."""

    async def get_candidates(self, user_id: str, exclude_ids: Set[str]) -> List[CandidateItem]:
        ...


class InteractionFeed(Protocol):
    """Supplies a user's interaction records within a time window."""

    async def get_interactions(self, user_id: str, window_days: int) -> List[Interaction]:
        ...


class SignalScorer(Protocol):
    """A ranked (item, score, reasons) list from one signal source."""

    source: str

    async def score(self, user_id: str, limit: int, exclude_ids: Set[str]) -> SignalList:
        ...


def filter_pool(
    items: Iterable[CandidateItem],
    exclude_ids: Set[str],
    min_quality: float = DEFAULT_MIN_QUALITY,
    pool_size: int = DEFAULT_POOL_SIZE,
) -> List[CandidateItem]:
    """Available items at or above the quality floor, minus exclusions, capped."""
    pool = [
        item
        for item in items
        if item.is_available and item.avg_rating >= min_quality and item.item_id not in exclude_ids
    ]
    return pool[:pool_size]


def _recent(interactions: Iterable[Interaction], window_days: int) -> List[Interaction]:
    cutoff = datetime.now(timezone.utc) - timedelta(days=window_days)
    out = []
    for interaction in interactions:
        ts = interaction.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        if ts >= cutoff:
            out.append(interaction)
    return out


# --- in-memory ---


class StaticCandidateProvider:
    """Catalog held in memory. Applies the same filters as the JSON provider."""

    def __init__(
        self,
        items: List[Union[Dict, CandidateItem]],
        min_quality: float = DEFAULT_MIN_QUALITY,
        pool_size: int = DEFAULT_POOL_SIZE,
    ):
        self.items = ensure_candidates(items)
        self.min_quality = min_quality
        self.pool_size = pool_size

    async def get_candidates(self, user_id: str, exclude_ids: Set[str]) -> List[CandidateItem]:
        return filter_pool(self.items, exclude_ids, self.min_quality, self.pool_size)


class StaticInteractionFeed:
    def __init__(self, by_user: Optional[Dict[str, List[Union[Dict, Interaction]]]] = None):
        self.by_user: Dict[str, List[Interaction]] = {
            user_id: ensure_interactions(records) for user_id, records in (by_user or {}).items()
        }

    async def get_interactions(self, user_id: str, window_days: int) -> List[Interaction]:
        return _recent(self.by_user.get(user_id, []), window_days)


class StaticSignalScorer:
    """Precomputed ranked lists per user for one source."""

    def __init__(self, source: str, by_user: Optional[Dict[str, List[Union[Dict, ScoredItem]]]] = None):
        self.source = source
        self.by_user: Dict[str, List[ScoredItem]] = {
            user_id: [ScoredItem.model_validate(e) if isinstance(e, dict) else e for e in entries]
            for user_id, entries in (by_user or {}).items()
        }

    async def score(self, user_id: str, limit: int, exclude_ids: Set[str]) -> SignalList:
        entries = [e for e in self.by_user.get(user_id, []) if e.item_id not in exclude_ids]
        entries.sort(key=lambda e: e.score, reverse=True)
        return SignalList(source=self.source, items=entries[:limit])


# --- JSON files ---


def _load_json(path: Path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class JsonCatalogProvider(StaticCandidateProvider):
    """
    Catalog loaded from a JSON file: a list of items, or {"items": [...]}.
    """

    def __init__(self, path: Path, min_quality: float = DEFAULT_MIN_QUALITY, pool_size: int = DEFAULT_POOL_SIZE):
        data = _load_json(path)
        items = data.get("items", []) if isinstance(data, dict) else data
        super().__init__(items, min_quality=min_quality, pool_size=pool_size)
        self.path = path
        logger.info("[providers] Loaded %d catalog items from %s", len(self.items), path)

    def by_id(self) -> Dict[str, CandidateItem]:
        return {item.item_id: item for item in self.items}


class JsonInteractionFeed(StaticInteractionFeed):
    """Interaction feed loaded from a JSON file: {user_id: [interaction, ...]}."""

    def __init__(self, path: Path):
        super().__init__(_load_json(path))
        self.path = path
        logger.info("[providers] Loaded interactions for %d users from %s", len(self.by_user), path)


class JsonSignalScorer(StaticSignalScorer):
    """
    One source's lists from a JSON file: {source: {user_id: [entry, ...]}}.

    Entries are {"item": {...}, "score", "reasons"} or {"item_id", "score",
    "reasons"}; bare ids are resolved against the catalog and dropped when
    unknown.
    """

    def __init__(self, source: str, path: Path, catalog: Optional[Dict[str, CandidateItem]] = None):
        raw = (_load_json(path) or {}).get(source, {})
        catalog = catalog or {}
        by_user: Dict[str, List[Dict]] = {}
        for user_id, entries in raw.items():
            resolved = []
            for entry in entries:
                if "item" not in entry:
                    item = catalog.get(entry.get("item_id", ""))
                    if item is None:
                        continue
                    entry = {**entry, "item": item.model_dump()}
                resolved.append(entry)
            by_user[user_id] = resolved
        super().__init__(source, by_user)
        self.path = path

    @staticmethod
    def sources_in(path: Path) -> List[str]:
        data = _load_json(path) or {}
        return list(data.keys())

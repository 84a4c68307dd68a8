"""
Multi-signal blend: weighted per-source scores plus a coverage bonus.

combined = sum(score_s * weight_s) + min(bonus_per_source * n_sources, max_bonus),
capped at max_score. Reasons are consolidated one per source in priority order,
then backfilled.
"""

from typing import Dict, List, Optional, Set, Tuple

from ..models.candidate import RecommendationCandidate, SignalList
from ..models.config import BlendConfig, resolve_blend_config
from ..models.interaction import CandidateItem
from ..models.kinds import REASON_PRIORITY, ModelAlgorithm


class _Accumulator:
    __slots__ = ("item", "total", "source_scores", "reasons")

    def __init__(self, item: CandidateItem):
        self.item = item
        self.total = 0.0
        self.source_scores: Dict[str, float] = {}
        self.reasons: List[Tuple[str, str]] = []


def coverage_bonus(n_sources: int, config: BlendConfig) -> float:
    return min(config.coverage_bonus_per_source * n_sources, config.max_coverage_bonus)


def consolidate_reasons(
    reasons: List[Tuple[str, str]],
    max_reasons: int = 4,
) -> List[str]:
    """
    Pick at most one reason per source in priority order
    (social > collaborative > content-based > popularity > discovery),
    then backfill with the remaining unique reasons up to max_reasons.

    reasons: (source, reason) pairs in arrival order.
    """
    unique: List[str] = []
    by_source: Dict[str, List[str]] = {}
    for source, reason in reasons:
        if reason not in unique:
            unique.append(reason)
        by_source.setdefault(source, []).append(reason)

    picked: List[str] = []
    for source in REASON_PRIORITY:
        for reason in by_source.get(source.value, []):
            if reason not in picked:
                picked.append(reason)
                break

    picked.extend(r for r in unique if r not in picked)
    return picked[:max_reasons]


def blend_signals(
    signal_lists: List[SignalList],
    config: Optional[BlendConfig] = None,
    excluded_ids: Optional[Set[str]] = None,
) -> List[RecommendationCandidate]:
    """
    Merge ranked signal lists into one candidate per item, sorted by blended score.

    An item repeated within one source counts once (first occurrence). Ties keep
    first-seen order. At most config.max_candidates are returned.
    """
    config = resolve_blend_config(config)
    excluded = excluded_ids or set()
    acc: Dict[str, _Accumulator] = {}

    for signal in signal_lists:
        weight = config.weights.get(signal.source, 0.0)
        for scored in signal.items:
            item_id = scored.item.item_id
            if item_id in excluded:
                continue
            entry = acc.get(item_id)
            if entry is None:
                entry = acc[item_id] = _Accumulator(scored.item)
            if signal.source in entry.source_scores:
                continue
            entry.source_scores[signal.source] = scored.score
            entry.total += scored.score * weight
            entry.reasons.extend((signal.source, r) for r in scored.reasons)

    candidates = [
        RecommendationCandidate(
            item=entry.item,
            source_scores=entry.source_scores,
            score=min(entry.total + coverage_bonus(len(entry.source_scores), config), config.max_score),
            reasons=consolidate_reasons(entry.reasons, config.max_reasons),
            algorithm=ModelAlgorithm.HYBRID.value,
        )
        for entry in acc.values()
    ]
    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates[: config.max_candidates]


def single_source_candidates(
    signal: SignalList,
    max_score: float = 1.0,
    excluded_ids: Optional[Set[str]] = None,
) -> List[RecommendationCandidate]:
    """Serve one source's ranked list as-is: scores capped, duplicates and exclusions dropped."""
    excluded = excluded_ids or set()
    seen: Set[str] = set()
    out: List[RecommendationCandidate] = []
    for scored in signal.items:
        item_id = scored.item.item_id
        if item_id in excluded or item_id in seen:
            continue
        seen.add(item_id)
        out.append(
            RecommendationCandidate(
                item=scored.item,
                source_scores={signal.source: scored.score},
                score=min(scored.score, max_score),
                reasons=list(dict.fromkeys(scored.reasons)),
                algorithm=signal.source,
            )
        )
    out.sort(key=lambda c: c.score, reverse=True)
    return out

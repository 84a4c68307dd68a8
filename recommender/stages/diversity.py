"""
Attribute diversity: greedy admission under per-dimension caps.

Walks candidates in the order given (callers pass them ranked) and admits one only
if its count in every capped dimension is still below the cap. Stops once
target_size candidates are admitted. Stable: equal scores keep input order.
"""

from typing import Callable, Dict, List, Optional, TypeVar

from ..models.candidate import RecommendationCandidate
from ..models.config import DiversityCaps

T = TypeVar("T")

UNKNOWN = "unknown"


def candidate_attributes(candidate: RecommendationCandidate) -> Dict[str, str]:
    """Attribute values of a candidate's item, 'unknown' when missing."""
    item = candidate.item
    return {
        "origin": item.origin or UNKNOWN,
        "roast_level": item.roast_level or UNKNOWN,
        "processing_method": item.processing_method or UNKNOWN,
    }


def apply_diversity_caps(
    candidates: List[T],
    caps: DiversityCaps,
    target_size: Optional[int] = None,
    attributes: Callable[[T], Dict[str, str]] = candidate_attributes,
) -> List[T]:
    """
    Select candidates so no attribute value exceeds its cap.

    Args:
        candidates: Ranked candidates (best first). Not mutated.
        caps: Per-dimension caps; uncapped dimensions are ignored.
        target_size: Stop after admitting this many (None = no limit).
        attributes: Maps a candidate to {dimension: value}.

    Returns:
        Admitted candidates in input order.
    """
    limits = caps.as_dict()
    counts: Dict[str, Dict[str, int]] = {dim: {} for dim in limits}
    admitted: List[T] = []

    for candidate in candidates:
        if target_size is not None and len(admitted) >= target_size:
            break
        values = attributes(candidate)
        if any(
            counts[dim].get(values.get(dim, UNKNOWN), 0) >= cap
            for dim, cap in limits.items()
        ):
            continue
        admitted.append(candidate)
        for dim in limits:
            value = values.get(dim, UNKNOWN)
            counts[dim][value] = counts[dim].get(value, 0) + 1

    return admitted

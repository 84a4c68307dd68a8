"""
Arm initialization, exploration metrics, and feedback arithmetic.

Pure functions: they build or update models and never touch shared state.
The serving layer owns the per-user arm store and calls these under its locks.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from ..models.arm import BanditArm, ExplorationMetrics, ItemAttributes, confidence_for
from ..models.config import DiscoveryConfig, resolve_discovery_config
from ..models.interaction import CandidateItem, FeedbackSignal, Interaction

PURCHASE_OR_FAVORITE_REWARD = 0.8


def _as_utc(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def within_window(
    interactions: Iterable[Interaction],
    window_days: int,
    now: Optional[datetime] = None,
) -> List[Interaction]:
    """Interactions newer than now - window_days."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=window_days)
    return [i for i in interactions if _as_utc(i.timestamp) >= cutoff]


def seed_reward(interaction: Interaction) -> float:
    """
    Initial reward an interaction gives its arm.

    Rating r >= 4 -> (r - 3) / 2; purchase/favorite -> 0.8; anything else -> 0.
    """
    if interaction.type == "rating" and interaction.is_success():
        return min(1.0, (interaction.value - 3) / 2)
    if interaction.type in ("purchase", "favorite"):
        return PURCHASE_OR_FAVORITE_REWARD
    return 0.0


SEEDING_TYPES = ("rating", "purchase", "favorite")


def _seed_by_item(interactions: Iterable[Interaction]) -> Dict[str, Interaction]:
    """
    The interaction that seeds each item's arm.

    Only ratings, purchases and favorites seed arms. A successful interaction
    beats an unsuccessful one; otherwise the most recent wins.
    """
    chosen: Dict[str, Interaction] = {}
    for interaction in interactions:
        if interaction.type not in SEEDING_TYPES:
            continue
        current = chosen.get(interaction.item_id)
        if current is None:
            chosen[interaction.item_id] = interaction
            continue
        rank = (interaction.is_success(), _as_utc(interaction.timestamp))
        if rank >= (current.is_success(), _as_utc(current.timestamp)):
            chosen[interaction.item_id] = interaction
    return chosen


def build_arms(
    candidates: List[CandidateItem],
    interactions: List[Interaction],
    config: Optional[DiscoveryConfig] = None,
    now: Optional[datetime] = None,
) -> List[BanditArm]:
    """
    Build one arm per candidate, seeded from the user's recent interaction feed.

    A seeding interaction inside the feedback window (see _seed_by_item) sets
    trials=1, and successes=1 with its seed reward when it counts as a success.
    Views, clicks and other engagement leave the arm untried, as do items
    without history (confidence 1.0). Candidate order is preserved.
    """
    config = resolve_discovery_config(config)
    now = now or datetime.now(timezone.utc)
    recent = _seed_by_item(within_window(interactions, config.feedback_window_days, now))

    arms: List[BanditArm] = []
    for item in candidates:
        interaction = recent.get(item.item_id)
        trials = successes = 0
        reward = 0.0
        if interaction is not None:
            trials = 1
            if interaction.is_success():
                successes = 1
                reward = seed_reward(interaction)
        arms.append(
            BanditArm(
                item_id=item.item_id,
                trials=trials,
                successes=successes,
                average_reward=reward,
                confidence=confidence_for(trials),
                last_updated=now,
                attributes=ItemAttributes.from_item(item),
                item=item,
            )
        )
    return arms


def apply_feedback(arm: BanditArm, signal: FeedbackSignal, now: Optional[datetime] = None) -> None:
    """Record one trial on the arm (in place); positive feedback is a success."""
    arm.trials += 1
    if signal == "positive":
        arm.successes += 1
    arm.average_reward = arm.successes / arm.trials
    arm.confidence = confidence_for(arm.trials)
    arm.last_updated = now or datetime.now(timezone.utc)


def bump_metrics(
    metrics: ExplorationMetrics,
    signal: FeedbackSignal,
    now: Optional[datetime] = None,
) -> None:
    """Count one discovery interaction (in place); positive feedback is a successful discovery."""
    metrics.total_discovery_interactions += 1
    if signal == "positive":
        metrics.successful_discoveries += 1
    metrics.last_updated = now or datetime.now(timezone.utc)


def default_metrics(user_id: str) -> ExplorationMetrics:
    """Metrics for a user whose history is unavailable."""
    return ExplorationMetrics(user_id=user_id)


def derive_exploration_metrics(
    user_id: str,
    interactions: List[Interaction],
    config: Optional[DiscoveryConfig] = None,
    now: Optional[datetime] = None,
) -> ExplorationMetrics:
    """
    Compute exploration metrics from the interaction history.

    explorationRate = discovery / total (0.1 without history);
    diversityScore = min(1, (unique origins + unique roasts) / 10) over metadata;
    noveltyPreference = successful / max(1, discovery), or 0.5 without successes.
    """
    config = resolve_discovery_config(config)
    now = now or datetime.now(timezone.utc)
    recent = within_window(interactions, config.feedback_window_days, now)

    total = len(recent)
    discovery = [i for i in recent if i.is_discovery()]
    successful = sum(1 for i in discovery if i.is_success())

    origins = {i.metadata.get("origin") for i in recent if i.metadata.get("origin")}
    roasts = {i.metadata.get("roast_level") for i in recent if i.metadata.get("roast_level")}
    diversity = min(1.0, (len(origins) + len(roasts)) / 10)

    return ExplorationMetrics(
        user_id=user_id,
        exploration_rate=len(discovery) / total if total > 0 else 0.1,
        diversity_score=diversity,
        novelty_preference=successful / max(1, len(discovery)) if successful > 0 else 0.5,
        total_discovery_interactions=len(discovery),
        successful_discoveries=successful,
        last_updated=now,
    )


def top_performing_arms(arms: List[BanditArm], n: int = 5) -> List[BanditArm]:
    """Tried arms, best average reward first."""
    tried = [a for a in arms if a.trials > 0]
    return sorted(tried, key=lambda a: a.average_reward, reverse=True)[:n]

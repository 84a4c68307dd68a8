"""
Arm Store: per-user bandit arms and exploration metrics.

Arm sets are built outside any lock (see recommender.stages.arms.build_arms)
and swapped in with one locked assignment, so a half-built set is never
visible. Feedback is a read-modify-write under the user's key lock.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from recommender.models import BanditArm, ExplorationMetrics
from recommender.models.interaction import FeedbackSignal
from recommender.stages import apply_feedback, bump_metrics

from .locks import KeyedLocks

logger = logging.getLogger(__name__)


class ArmStore:
    """Synchronized per-user arm sets and exploration metrics."""

    def __init__(self):
        self._arms: Dict[str, Dict[str, BanditArm]] = {}
        self._metrics: Dict[str, ExplorationMetrics] = {}
        self._locks = KeyedLocks()

    # --- arms ---

    def replace_arms(self, user_id: str, arms: List[BanditArm]) -> None:
        """Atomically swap in a freshly built arm set for the user."""
        fresh = {arm.item_id: arm for arm in arms}
        with self._locks.get(user_id):
            self._arms[user_id] = fresh

    def get_arms(self, user_id: str) -> List[BanditArm]:
        """Snapshot copy of the user's arms (safe to rank without the lock)."""
        with self._locks.get(user_id):
            arms = self._arms.get(user_id)
            if not arms:
                return []
            return [arm.model_copy(deep=True) for arm in arms.values()]

    # --- metrics ---

    def get_metrics(self, user_id: str) -> Optional[ExplorationMetrics]:
        with self._locks.get(user_id):
            metrics = self._metrics.get(user_id)
            return metrics.model_copy() if metrics is not None else None

    def get_or_set_metrics(
        self,
        user_id: str,
        factory: Callable[[], ExplorationMetrics],
    ) -> ExplorationMetrics:
        """
        Return cached metrics, or store the ones supplied by factory.

        factory runs under the user's lock, so it must not do I/O; callers
        compute the metrics first and pass `lambda: computed`.
        """
        with self._locks.get(user_id):
            metrics = self._metrics.get(user_id)
            if metrics is None:
                metrics = factory()
                self._metrics[user_id] = metrics
            return metrics.model_copy()

    # --- feedback ---

    def record_feedback(
        self,
        user_id: str,
        item_id: str,
        signal: FeedbackSignal,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Apply one feedback signal to the user's arm and metrics.

        Unknown users or items are ignored. Returns True when an arm was updated.
        """
        with self._locks.get(user_id):
            arm = self._arms.get(user_id, {}).get(item_id)
            if arm is None:
                logger.debug("[arms] Ignoring feedback for unknown arm %s/%s", user_id, item_id)
                return False
            apply_feedback(arm, signal, now)
            metrics = self._metrics.get(user_id)
            if metrics is not None:
                bump_metrics(metrics, signal, now)
            return True

    def user_count(self) -> int:
        """Users with a live arm set."""
        return sum(1 for arms in list(self._arms.values()) if arms)

    def clear(self) -> None:
        """Drop all arm sets and metrics (test helper)."""
        for user_id in list(self._arms.keys()) + list(self._metrics.keys()):
            with self._locks.get(user_id):
                self._arms.pop(user_id, None)
                self._metrics.pop(user_id, None)

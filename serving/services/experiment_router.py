"""
Experiment Router: deterministic user -> model-version assignment.

A user's bucket is a stable 32-bit rolling hash of the user id mod 100, so the
same user always lands on the same model within an experiment.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ConfigValidationError

logger = logging.getLogger(__name__)

ExperimentStatus = Literal["draft", "running", "completed", "paused"]

TRAFFIC_TOLERANCE = 0.01

# Allowed status changes; completed is terminal.
_TRANSITIONS: Dict[str, set] = {
    "draft": {"running"},
    "running": {"paused", "completed"},
    "paused": {"running", "completed"},
    "completed": set(),
}


def user_bucket(user_id: str) -> int:
    """
    Deterministic bucket in [0, 100) for a user id.

    hash = hash * 31 + code_unit over the UTF-16 code units of the id, wrapped
    to signed 32-bit after every step; the bucket is abs(hash) % 100.
    """
    h = 0
    data = user_id.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h) % 100


class ExperimentArm(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    # Range checked by validate_experiment so bad splits come back as failures.
    traffic_percentage: float
    name: str = ""


class Experiment(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: str
    name: str
    description: str = ""
    model_versions: List[ExperimentArm]
    eligibility_percentage: float = Field(default=100.0, ge=0.0, le=100.0)
    status: ExperimentStatus = "running"
    metrics: List[str] = Field(default_factory=list)
    start_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_date: Optional[datetime] = None

    def is_live(self, now: datetime) -> bool:
        """Running and not past its end date."""
        return self.status == "running" and (self.end_date is None or now < self.end_date)

    def is_eligible(self, bucket: int) -> bool:
        return bucket < self.eligibility_percentage

    def pick_model(self, bucket: int) -> str:
        """First arm whose cumulative traffic exceeds the bucket (fallback: first arm)."""
        cumulative = 0.0
        for arm in self.model_versions:
            cumulative += arm.traffic_percentage
            if bucket < cumulative:
                return arm.model_id
        return self.model_versions[0].model_id


class ExperimentResult(BaseModel):
    success: bool
    test_id: str = ""
    message: str = ""


class Assignment(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    ab_group: Optional[str] = None


def validate_experiment(
    name: Optional[str],
    model_versions: List[ExperimentArm],
    model_exists: Callable[[str], bool],
    eligibility_percentage: float = 100.0,
    duration_days: Optional[float] = None,
) -> List[str]:
    errors: List[str] = []
    if not name or not name.strip():
        errors.append("name is required")
    if not 0 <= eligibility_percentage <= 100:
        errors.append(f"eligibility_percentage must be between 0 and 100, got {eligibility_percentage:g}")
    if duration_days is not None and duration_days <= 0:
        errors.append(f"duration_days must be positive, got {duration_days:g}")
    if not model_versions:
        errors.append("at least one model version is required")
        return errors
    for arm in model_versions:
        if not 0 <= arm.traffic_percentage <= 100:
            errors.append(
                f"Traffic percentage for {arm.model_id} must be between 0 and 100, got {arm.traffic_percentage:g}"
            )
    total = sum(arm.traffic_percentage for arm in model_versions)
    if abs(total - 100) > TRAFFIC_TOLERANCE:
        errors.append(f"Traffic percentages must sum to 100%, got {total:g}")
    for arm in model_versions:
        if not model_exists(arm.model_id):
            errors.append(f"Model version {arm.model_id} not found")
    return errors


def ensure_valid_experiment(
    name: Optional[str],
    model_versions: List[ExperimentArm],
    model_exists: Callable[[str], bool],
    eligibility_percentage: float = 100.0,
    duration_days: Optional[float] = None,
) -> None:
    errors = validate_experiment(name, model_versions, model_exists, eligibility_percentage, duration_days)
    if errors:
        raise ConfigValidationError(errors)


class ExperimentRouter:
    """Thread-safe experiment table plus routing."""

    def __init__(self, model_exists: Callable[[str], bool]):
        self._model_exists = model_exists
        self._experiments: Dict[str, Experiment] = {}
        self._lock = threading.Lock()

    def create(
        self,
        name: str,
        model_versions: List[ExperimentArm],
        description: str = "",
        duration_days: Optional[float] = None,
        eligibility_percentage: float = 100.0,
        metrics: Optional[List[str]] = None,
    ) -> ExperimentResult:
        """Validate and start an experiment. Failures are returned, never raised."""
        try:
            ensure_valid_experiment(
                name, model_versions, self._model_exists, eligibility_percentage, duration_days
            )
            now = datetime.now(timezone.utc)
            experiment = Experiment(
                id=f"ab_test_{uuid.uuid4().hex[:12]}",
                name=name,
                description=description,
                model_versions=[arm.model_copy() for arm in model_versions],
                eligibility_percentage=eligibility_percentage,
                status="running",
                metrics=list(metrics or []),
                start_date=now,
                end_date=now + timedelta(days=duration_days) if duration_days else None,
            )
        except (ConfigValidationError, ValidationError) as e:
            logger.info("[experiments] Rejected experiment %r: %s", name, e)
            return ExperimentResult(success=False, message=f"Experiment validation failed: {e}")

        with self._lock:
            self._experiments[experiment.id] = experiment
        logger.info("[experiments] Started %s (%s)", experiment.id, name)
        return ExperimentResult(
            success=True,
            test_id=experiment.id,
            message="A/B test created and started successfully",
        )

    def route(self, user_id: str, default_model_id: str, now: Optional[datetime] = None) -> Assignment:
        """
        Resolve the model for a user.

        Running experiments that have not reached their end date are checked in
        creation order; the first one the user is eligible for decides.
        Otherwise the default model is used.
        """
        bucket = user_bucket(user_id)
        now = now or datetime.now(timezone.utc)
        with self._lock:
            running = [e for e in self._experiments.values() if e.is_live(now)]
        for experiment in running:
            if experiment.is_eligible(bucket):
                model_id = experiment.pick_model(bucket)
                return Assignment(model_id=model_id, ab_group=f"{experiment.id}_{model_id}")
        return Assignment(model_id=default_model_id)

    def set_status(self, test_id: str, status: str) -> ExperimentResult:
        with self._lock:
            experiment = self._experiments.get(test_id)
            if experiment is None:
                return ExperimentResult(success=False, test_id=test_id, message=f"Experiment {test_id} not found")
            allowed = _TRANSITIONS.get(experiment.status, set())
            if status not in allowed:
                return ExperimentResult(
                    success=False,
                    test_id=test_id,
                    message=f"Cannot move experiment from {experiment.status} to {status}",
                )
            experiment.status = status
            if status == "completed":
                experiment.end_date = datetime.now(timezone.utc)
        logger.info("[experiments] %s is now %s", test_id, status)
        return ExperimentResult(success=True, test_id=test_id, message=f"Experiment {status}")

    def get(self, test_id: str) -> Optional[Experiment]:
        with self._lock:
            experiment = self._experiments.get(test_id)
            return experiment.model_copy(deep=True) if experiment is not None else None

    def list_experiments(self) -> List[Experiment]:
        with self._lock:
            return [e.model_copy(deep=True) for e in self._experiments.values()]

    def active_count(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            return sum(1 for e in self._experiments.values() if e.is_live(now))

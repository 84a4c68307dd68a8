"""
Model Registry: versioned model configs and the process-wide default.

Deploy validates the request, stores the version as "testing", runs the
(pluggable) offline evaluator to fill the performance snapshot, then flips the
version to "deployed". A version's config is frozen once it is deployed;
changing it means deploying a new version.
"""

import copy
import logging
import re
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from recommender.models import DEFAULT_BLEND_CONFIG, ExplorationStrategy, ModelAlgorithm

from ..errors import ConfigValidationError

logger = logging.getLogger(__name__)

ModelStatus = Literal["training", "testing", "deployed", "deprecated"]

DEFAULT_MODEL_ID = "default_hybrid_v1"

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.-]+)?$")


class PerformanceSnapshot(BaseModel):
    """Offline evaluation results recorded at deploy time."""

    accuracy: Optional[float] = None
    precision: Optional[float] = None
    recall: Optional[float] = None
    f1_score: Optional[float] = None
    auc: Optional[float] = None
    click_through_rate: Optional[float] = None
    conversion_rate: Optional[float] = None


class ModelVersion(BaseModel):
    id: str
    name: str
    version: str
    algorithm: ModelAlgorithm
    config: Dict[str, Any] = Field(default_factory=dict)
    performance: PerformanceSnapshot = Field(default_factory=PerformanceSnapshot)
    status: ModelStatus = "testing"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    deployed_at: Optional[datetime] = None

    @property
    def weights(self) -> Dict[str, float]:
        return dict(self.config.get("weights") or {})

    @property
    def discovery_strategy(self) -> ExplorationStrategy:
        return ExplorationStrategy(self.config.get("discovery_strategy", ExplorationStrategy.HYBRID.value))


class DeployResult(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    success: bool
    model_id: str = ""
    message: str = ""


Evaluator = Callable[[ModelVersion], PerformanceSnapshot]


def no_op_evaluator(model: ModelVersion) -> PerformanceSnapshot:
    """Default evaluator: no offline data, empty snapshot."""
    return PerformanceSnapshot()


def validate_model_request(
    name: Optional[str],
    version: Optional[str],
    algorithm: Any,
    config: Optional[Dict[str, Any]],
) -> List[str]:
    """Return a list of validation errors (empty when the request is deployable)."""
    errors: List[str] = []
    if not name or not str(name).strip():
        errors.append("name is required")
    if not version or not _VERSION_RE.match(str(version)):
        errors.append(f"version must look like MAJOR.MINOR.PATCH, got {version!r}")
    try:
        ModelAlgorithm(algorithm)
    except ValueError:
        allowed = ", ".join(a.value for a in ModelAlgorithm)
        errors.append(f"algorithm must be one of: {allowed}; got {algorithm!r}")

    config = config or {}
    if not isinstance(config, dict):
        errors.append("config must be an object")
        return errors
    weights = config.get("weights")
    if weights is not None:
        if not isinstance(weights, dict):
            errors.append("config.weights must be an object")
        else:
            try:
                DEFAULT_BLEND_CONFIG.with_weights(weights)
            except ValidationError as e:
                errors.extend(err["msg"] for err in e.errors())
    strategy = config.get("discovery_strategy")
    if strategy is not None:
        try:
            ExplorationStrategy(strategy)
        except ValueError:
            allowed = ", ".join(s.value for s in ExplorationStrategy)
            errors.append(f"discovery_strategy must be one of: {allowed}; got {strategy!r}")
    return errors


def ensure_valid_model_request(
    name: Optional[str],
    version: Optional[str],
    algorithm: Any,
    config: Optional[Dict[str, Any]],
) -> None:
    errors = validate_model_request(name, version, algorithm, config)
    if errors:
        raise ConfigValidationError(errors)


def _default_model() -> ModelVersion:
    now = datetime.now(timezone.utc)
    return ModelVersion(
        id=DEFAULT_MODEL_ID,
        name="Default Hybrid",
        version="1.0.0",
        algorithm=ModelAlgorithm.HYBRID,
        config={
            "weights": {
                ModelAlgorithm.COLLABORATIVE.value: 0.4,
                ModelAlgorithm.CONTENT_BASED.value: 0.3,
                ModelAlgorithm.POPULARITY.value: 0.2,
                ModelAlgorithm.DISCOVERY.value: 0.1,
            }
        },
        status="deployed",
        deployed_at=now,
    )


class ModelRegistry:
    """Thread-safe registry of model versions."""

    def __init__(self, evaluator: Optional[Evaluator] = None, seed_default: bool = True):
        self._evaluator = evaluator or no_op_evaluator
        self._models: Dict[str, ModelVersion] = {}
        self._default_id: Optional[str] = None
        self._lock = threading.Lock()
        self._default_listeners: List[Callable[[str], None]] = []
        if seed_default:
            model = _default_model()
            self._models[model.id] = model
            self._default_id = model.id

    @property
    def default_model_id(self) -> Optional[str]:
        return self._default_id

    def on_default_changed(self, callback: Callable[[str], None]) -> None:
        """Register a callback invoked with the new default model id."""
        self._default_listeners.append(callback)

    def get(self, model_id: str) -> Optional[ModelVersion]:
        with self._lock:
            model = self._models.get(model_id)
            return model.model_copy(deep=True) if model is not None else None

    def list_models(self) -> List[ModelVersion]:
        with self._lock:
            models = [m.model_copy(deep=True) for m in self._models.values()]
        return sorted(models, key=lambda m: m.created_at)

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, model_id: str) -> bool:
        return model_id in self._models

    def deploy(
        self,
        name: str,
        version: str,
        algorithm: Any,
        config: Optional[Dict[str, Any]] = None,
        set_as_default: bool = False,
    ) -> DeployResult:
        """
        Validate, evaluate and deploy a new model version.

        Validation and evaluator failures are returned as a failed result,
        never raised.
        """
        try:
            ensure_valid_model_request(name, version, algorithm, config)
        except ConfigValidationError as e:
            logger.info("[registry] Rejected deploy of %s %s: %s", name, version, e)
            return DeployResult(success=False, message=f"Model validation failed: {e}")

        model_id = f"{name}_{version}_{uuid.uuid4().hex[:8]}"
        model = ModelVersion(
            id=model_id,
            name=name,
            version=version,
            algorithm=ModelAlgorithm(algorithm),
            config=copy.deepcopy(config or {}),
            status="testing",
        )
        with self._lock:
            self._models[model_id] = model

        try:
            performance = self._evaluator(model.model_copy(deep=True))
        except Exception as e:
            logger.exception("[registry] Evaluation failed for %s", model_id)
            with self._lock:
                self._models.pop(model_id, None)
            return DeployResult(success=False, model_id=model_id, message=f"Evaluation failed: {e}")

        now = datetime.now(timezone.utc)
        with self._lock:
            model.performance = performance
            model.status = "deployed"
            model.deployed_at = now
            model.updated_at = now
        logger.info("[registry] Deployed model %s (%s)", model_id, model.algorithm.value)

        if set_as_default:
            self.set_default(model_id)
        return DeployResult(success=True, model_id=model_id, message="Model deployed successfully")

    def set_default(self, model_id: str) -> DeployResult:
        """Make a deployed version the process-wide default and notify listeners."""
        with self._lock:
            model = self._models.get(model_id)
            if model is None:
                return DeployResult(success=False, model_id=model_id, message=f"Model version {model_id} not found")
            if model.status != "deployed":
                return DeployResult(
                    success=False,
                    model_id=model_id,
                    message=f"Model version {model_id} is {model.status}, not deployed",
                )
            self._default_id = model_id
        logger.info("[registry] Default model is now %s", model_id)
        for callback in list(self._default_listeners):
            callback(model_id)
        return DeployResult(success=True, model_id=model_id, message="Default model updated")

    def deprecate(self, model_id: str) -> DeployResult:
        with self._lock:
            model = self._models.get(model_id)
            if model is None:
                return DeployResult(success=False, model_id=model_id, message=f"Model version {model_id} not found")
            if model_id == self._default_id:
                return DeployResult(
                    success=False,
                    model_id=model_id,
                    message="Cannot deprecate the current default model",
                )
            model.status = "deprecated"
            model.updated_at = datetime.now(timezone.utc)
        logger.info("[registry] Deprecated model %s", model_id)
        return DeployResult(success=True, model_id=model_id, message="Model deprecated")

"""
Algorithm configuration: discovery (bandit) and blending parameters.

DiscoveryConfig and BlendConfig defaults are defined here. A model version or the
server may pass a nested dict; from_dict() merges it with these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator

from .kinds import ModelAlgorithm


class DiversityCaps(BaseModel):
    """Per-attribute admission caps. None means the dimension is not capped."""

    origin: Optional[int] = Field(default=None, ge=1)
    roast_level: Optional[int] = Field(default=None, ge=1)
    processing_method: Optional[int] = Field(default=None, ge=1)

    def as_dict(self) -> Dict[str, int]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class DiscoveryConfig(BaseModel):
    """Configuration for exploration (multi-armed bandit) recommendations."""

    # -------------------------------------------------------------------------
    # Epsilon-greedy
    # epsilon = max(min_epsilon, epsilon * epsilon_decay_rate ** discovery_interactions)
    # -------------------------------------------------------------------------

    epsilon: float = Field(default=0.1, ge=0.0, le=1.0)
    epsilon_decay_rate: float = Field(default=0.995, gt=0.0, le=1.0)
    min_epsilon: float = Field(default=0.05, ge=0.0, le=1.0)
    # Arms with fewer trials than this are preferred when exploring.
    explore_trials_threshold: int = Field(default=3, ge=0)

    # -------------------------------------------------------------------------
    # UCB
    # score = average_reward + sqrt(C * ln(total_trials) / trials)
    # -------------------------------------------------------------------------

    ucb_confidence_level: float = Field(default=2.0, ge=0.0)
    # Arms below this many trials are ranked ahead of every other arm.
    ucb_min_trials: int = Field(default=5, ge=0)

    # -------------------------------------------------------------------------
    # Thompson sampling (Beta priors)
    # -------------------------------------------------------------------------

    thompson_alpha_prior: float = Field(default=1.0, gt=0.0)
    thompson_beta_prior: float = Field(default=1.0, gt=0.0)

    # -------------------------------------------------------------------------
    # Hybrid allocation: ceil(limit * epsilon share), ceil(limit * ucb share), rest to Thompson
    # -------------------------------------------------------------------------

    hybrid_epsilon_share: float = Field(default=0.4, ge=0.0, le=1.0)
    hybrid_ucb_share: float = Field(default=0.3, ge=0.0, le=1.0)

    # -------------------------------------------------------------------------
    # Learning / candidate pool
    # -------------------------------------------------------------------------

    # Interaction feed window used to seed arms and derive exploration metrics.
    feedback_window_days: int = Field(default=30, ge=1)
    max_discovery_recommendations: int = Field(default=20, ge=1)
    # Candidate pool requested from the provider (2x the output size by default).
    candidate_pool_size: int = Field(default=40, ge=1)
    min_quality_threshold: float = 3.0

    # -------------------------------------------------------------------------
    # Diversity caps for the discovery context
    # -------------------------------------------------------------------------

    diversity: DiversityCaps = Field(
        default_factory=lambda: DiversityCaps(origin=2, roast_level=3, processing_method=2)
    )

    @model_validator(mode="after")
    def shares_fit_in_limit(self):
        if self.hybrid_epsilon_share + self.hybrid_ucb_share > 1.0:
            raise ValueError(
                "Hybrid epsilon and UCB shares must not exceed 1.0, got "
                f"{self.hybrid_epsilon_share + self.hybrid_ucb_share}"
            )
        if self.min_epsilon > self.epsilon:
            raise ValueError(f"min_epsilon ({self.min_epsilon}) exceeds epsilon ({self.epsilon})")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "DiscoveryConfig":
        """Create config from a nested dictionary (e.g., loaded from JSON)."""
        flat = {}
        eg = config_dict.get("epsilon_greedy") or {}
        if "epsilon" in eg:
            flat["epsilon"] = eg["epsilon"]
        if "decay_rate" in eg:
            flat["epsilon_decay_rate"] = eg["decay_rate"]
        if "min_epsilon" in eg:
            flat["min_epsilon"] = eg["min_epsilon"]
        if "explore_trials_threshold" in eg:
            flat["explore_trials_threshold"] = eg["explore_trials_threshold"]
        ucb = config_dict.get("ucb") or {}
        if "confidence_level" in ucb:
            flat["ucb_confidence_level"] = ucb["confidence_level"]
        if "min_trials" in ucb:
            flat["ucb_min_trials"] = ucb["min_trials"]
        ts = config_dict.get("thompson_sampling") or {}
        if "alpha_prior" in ts:
            flat["thompson_alpha_prior"] = ts["alpha_prior"]
        if "beta_prior" in ts:
            flat["thompson_beta_prior"] = ts["beta_prior"]
        hy = config_dict.get("hybrid") or {}
        if "epsilon_share" in hy:
            flat["hybrid_epsilon_share"] = hy["epsilon_share"]
        if "ucb_share" in hy:
            flat["hybrid_ucb_share"] = hy["ucb_share"]
        flat.update(config_dict.get("learning") or {})
        if "diversity" in config_dict:
            flat["diversity"] = config_dict["diversity"]
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_SOURCE_WEIGHTS: Dict[str, float] = {
    ModelAlgorithm.COLLABORATIVE.value: 0.4,
    ModelAlgorithm.CONTENT_BASED.value: 0.3,
    ModelAlgorithm.POPULARITY.value: 0.2,
    ModelAlgorithm.DISCOVERY.value: 0.1,
    ModelAlgorithm.SOCIAL.value: 0.15,
}


class BlendConfig(BaseModel):
    """Configuration for the multi-signal blend."""

    # Fixed weight per signal source; sources missing here contribute nothing.
    weights: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SOURCE_WEIGHTS))

    # coverage_bonus = min(coverage_bonus_per_source * n_sources, max_coverage_bonus)
    coverage_bonus_per_source: float = Field(default=0.1, ge=0.0)
    max_coverage_bonus: float = Field(default=0.3, ge=0.0)
    max_score: float = Field(default=1.0, gt=0.0, le=1.0)

    max_reasons: int = Field(default=4, ge=0)
    # Blended candidates kept (by score) before the diversity filter runs.
    max_candidates: int = Field(default=50, ge=1)

    diversity: DiversityCaps = Field(default_factory=lambda: DiversityCaps(origin=3, roast_level=5))

    @model_validator(mode="after")
    def weights_known_and_positive(self):
        known = {s.value for s in ModelAlgorithm if s is not ModelAlgorithm.HYBRID}
        for source, weight in self.weights.items():
            if source not in known:
                raise ValueError(f"Unknown signal source in weights: {source}")
            if weight < 0:
                raise ValueError(f"Weight for {source} must be non-negative, got {weight}")
        return self

    def with_weights(self, overrides: Optional[Dict[str, float]]) -> "BlendConfig":
        """Return a copy whose weights are updated with per-model overrides."""
        if not overrides:
            return self
        merged = dict(self.weights)
        merged.update(overrides)
        return self.model_validate({**self.model_dump(), "weights": merged})

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "BlendConfig":
        flat = {}
        if "weights" in config_dict:
            flat["weights"] = {**DEFAULT_SOURCE_WEIGHTS, **config_dict["weights"]}
        cov = config_dict.get("coverage_bonus") or {}
        if "per_source" in cov:
            flat["coverage_bonus_per_source"] = cov["per_source"]
        if "max" in cov:
            flat["max_coverage_bonus"] = cov["max"]
        for key in ("max_score", "max_reasons", "max_candidates", "diversity"):
            if key in config_dict:
                flat[key] = config_dict[key]
        return cls.model_validate(flat)


DEFAULT_DISCOVERY_CONFIG = DiscoveryConfig()
DEFAULT_BLEND_CONFIG = BlendConfig()


def resolve_discovery_config(config: Optional[DiscoveryConfig]) -> DiscoveryConfig:
    """Return config or DEFAULT_DISCOVERY_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_DISCOVERY_CONFIG


def resolve_blend_config(config: Optional[BlendConfig]) -> BlendConfig:
    """Return config or DEFAULT_BLEND_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_BLEND_CONFIG

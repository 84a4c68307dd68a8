"""
Stateful serving layer for the recommendation core.

- services/: arm store, model registry, experiment router, response cache,
  rate limiter, background sweeps, collaborators, RecommendationService
- routes/ + app.py: FastAPI surface
"""

from .errors import ConfigValidationError, ModelNotFound, RateLimited, ServingError, UpstreamDegraded
from .services import RecommendationService, ServeOptions, ServingEvent

__all__ = [
    "ConfigValidationError",
    "ModelNotFound",
    "RateLimited",
    "RecommendationService",
    "ServeOptions",
    "ServingError",
    "ServingEvent",
    "UpstreamDegraded",
]

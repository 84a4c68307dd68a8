"""
Serving error taxonomy.

Serving-path errors (RateLimited, ModelNotFound, UpstreamDegraded) are raised to
the caller. ConfigValidationError is raised inside the registry and router and
converted to a {success: False, message} result at the admin boundary.
"""

from typing import List, Optional


class ServingError(Exception):
    """Base class for errors raised by the serving layer."""


class RateLimited(ServingError):
    def __init__(self, user_id: str, reset_at: Optional[float] = None):
        self.user_id = user_id
        self.reset_at = reset_at
        super().__init__(f"Rate limit exceeded for user {user_id}")


class ModelNotFound(ServingError):
    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(f"Model version {model_id} not found")


class UpstreamDegraded(ServingError):
    """Every source a request depends on failed."""

    def __init__(self, sources: List[str]):
        self.sources = list(sources)
        super().__init__(f"All upstream sources failed: {', '.join(self.sources) or 'none configured'}")


class ConfigValidationError(ServingError):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))

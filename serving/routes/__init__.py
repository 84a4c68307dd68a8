"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .root import router as root_router
from .recommendations import router as recommendations_router
from .models import router as models_router
from .experiments import router as experiments_router
from .stats import router as stats_router
from .cache import router as cache_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(recommendations_router, prefix="/api/recommendations", tags=["recommendations"])
    app.include_router(models_router, prefix="/api/models", tags=["models"])
    app.include_router(experiments_router, prefix="/api/experiments", tags=["experiments"])
    app.include_router(stats_router, prefix="/api", tags=["stats"])
    app.include_router(cache_router, prefix="/api/cache", tags=["cache"])

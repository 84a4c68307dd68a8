"""
Coffee Recommendation Serving API: FastAPI app factory.

Use: uvicorn serving.app:app
Or:  from serving.app import create_app
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_config
from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, and the sweep lifecycle."""
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Coffee Recommendation Serving API",
        description="Bandit discovery, multi-signal blending, and versioned model serving",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)

    @app.on_event("startup")
    async def start_sweeps():
        state = get_state()
        ok, errors = state.config.validate()
        for error in errors:
            logger.warning("[startup] Config: %s", error)
        state.service.start()
        logger.info(
            "[startup] Serving API ready (default model %s, config valid=%s)",
            state.service.registry.default_model_id,
            ok,
        )

    @app.on_event("shutdown")
    async def stop_sweeps():
        await get_state().service.stop()
        logger.info("[shutdown] Sweeps stopped")

    return app


app = create_app()

"""Root and health endpoints."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    service = state.service
    return {
        "name": "Coffee Recommendation Serving API",
        "version": "1.0.0",
        "current_model": service.registry.default_model_id,
        "sources": {
            "candidates": service.candidate_provider is not None,
            "interactions": service.interaction_feed is not None,
            "scorers": sorted(service.scorers.keys()),
        },
        "endpoints": {
            "recommendations": ["/api/recommendations", "/api/recommendations/feedback"],
            "models": ["/api/models", "/api/models/{id}", "/api/models/{id}/default"],
            "experiments": ["/api/experiments", "/api/experiments/{id}/status"],
            "stats": ["/api/stats", "/api/stats/users/{user_id}"],
            "cache": ["/api/cache/flush"],
        },
    }


@router.get("/api/health")
def health():
    service = get_state().service
    return {
        "status": "healthy",
        "sweeps": {task.name: task.running for task in service.sweeps},
    }

"""Recommendation and feedback endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from ..errors import ModelNotFound, RateLimited, UpstreamDegraded
from ..models import FeedbackRequest, RecommendationRequest, RecommendationResponse
from ..services import ServeOptions
from ..state import get_state

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RecommendationResponse)
async def recommend(request: RecommendationRequest):
    """Serve recommendations for one user."""
    service = get_state().service
    options = ServeOptions(
        limit=request.limit,
        algorithm=request.algorithm.value if request.algorithm else None,
        exclude_ids=request.exclude_ids,
        use_cache=request.use_cache,
        include_reasons=request.include_reasons,
    )
    try:
        return await service.serve(request.user_id, options)
    except RateLimited as e:
        headers = {}
        if e.reset_at is not None:
            headers["X-RateLimit-Reset"] = f"{e.reset_at:.3f}"
        raise HTTPException(status_code=429, detail=str(e), headers=headers)
    except ModelNotFound as e:
        logger.error("[serving] Registry has no entry for routed model %s", e.model_id)
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDegraded as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/feedback", status_code=202)
def feedback(request: FeedbackRequest):
    """Record feedback on a served item. Always accepted."""
    get_state().service.record_feedback(request.user_id, request.item_id, request.signal)
    return {"accepted": True}

"""Response cache administration."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.post("/flush")
def flush_cache():
    removed = get_state().service.flush_cache()
    return {"success": True, "removed": removed}

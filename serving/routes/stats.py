"""Serving and per-user discovery statistics."""

from fastapi import APIRouter

from ..models import ServingStats, UserDiscoveryStats
from ..state import get_state

router = APIRouter()


@router.get("/stats", response_model=ServingStats)
def serving_stats():
    return get_state().service.serving_stats()


@router.get("/stats/users/{user_id}", response_model=UserDiscoveryStats)
def user_stats(user_id: str):
    return get_state().service.get_stats(user_id)

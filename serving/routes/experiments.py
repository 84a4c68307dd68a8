"""A/B experiment endpoints."""

from fastapi import APIRouter, HTTPException

from ..models import CreateExperimentRequest, ExperimentStatusRequest
from ..services import ExperimentArm
from ..state import get_state

router = APIRouter()


@router.post("")
def create_experiment(request: CreateExperimentRequest):
    """Create and start an experiment. Validation failures come back as success=false."""
    result = get_state().service.create_experiment(
        request.name,
        [ExperimentArm(**mv.model_dump()) for mv in request.model_versions],
        description=request.description,
        duration_days=request.duration_days,
        eligibility_percentage=request.eligibility_percentage,
        metrics=request.metrics,
    )
    return result.model_dump()


@router.get("")
def list_experiments():
    return {"experiments": [e.model_dump(mode="json") for e in get_state().service.list_experiments()]}


@router.get("/{test_id}")
def get_experiment(test_id: str):
    experiment = get_state().service.get_experiment(test_id)
    if experiment is None:
        raise HTTPException(status_code=404, detail=f"Experiment {test_id} not found")
    return experiment.model_dump(mode="json")


@router.post("/{test_id}/status")
def set_experiment_status(test_id: str, request: ExperimentStatusRequest):
    service = get_state().service
    if service.get_experiment(test_id) is None:
        raise HTTPException(status_code=404, detail=f"Experiment {test_id} not found")
    return service.set_experiment_status(test_id, request.status).model_dump()

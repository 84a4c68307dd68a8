"""Model version endpoints: deploy, list, inspect, promote, deprecate."""

from fastapi import APIRouter, HTTPException

from ..models import DeployModelRequest
from ..state import get_state

router = APIRouter()


@router.post("")
def deploy_model(request: DeployModelRequest):
    """Deploy a new model version. Validation failures come back as success=false."""
    result = get_state().service.deploy_model(
        request.name,
        request.version,
        request.algorithm,
        config=request.config,
        set_as_default=request.set_as_default,
    )
    return result.model_dump()


@router.get("")
def list_models():
    service = get_state().service
    return {
        "default_model": service.registry.default_model_id,
        "models": [m.model_dump(mode="json") for m in service.list_models()],
    }


@router.get("/{model_id}")
def get_model(model_id: str):
    model = get_state().service.get_model(model_id)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Model version {model_id} not found")
    return model.model_dump(mode="json")


def _require_model(service, model_id: str) -> None:
    if service.get_model(model_id) is None:
        raise HTTPException(status_code=404, detail=f"Model version {model_id} not found")


@router.post("/{model_id}/default")
def set_default_model(model_id: str):
    service = get_state().service
    _require_model(service, model_id)
    return service.set_default_model(model_id).model_dump()


@router.post("/{model_id}/deprecate")
def deprecate_model(model_id: str):
    service = get_state().service
    _require_model(service, model_id)
    return service.deprecate_model(model_id).model_dump()

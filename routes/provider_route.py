"""FastAPI routes for the provider catalog, cost estimates, and API keys."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from models.errors import TrainingError
from utils.http_errors import to_http_exception

router = APIRouter(prefix="/api", tags=["providers"])


class CredentialPayload(BaseModel):
    api_key: Optional[str] = None


def _get_state(request: Request, name: str):
    """Retrieve a shared service from the app state."""
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=f"{name} not initialized.")
    return value


@router.get("/providers", summary="List supported providers and models")
async def list_providers(request: Request):
    return _get_state(request, "provider_catalog").as_dict()


@router.get("/providers/{provider}/cost", summary="Project the cost of a training run")
async def estimate_cost(request: Request, provider: str, iterations: int = Query(..., ge=1)):
    """Return the projected cost of `iterations` iterations against `provider`.

    Raises:
        HTTPException: 400 for an unknown provider, 422 for a non-positive iteration count.
    """
    try:
        return _get_state(request, "cost_generator").breakdown(provider, iterations)
    except HTTPException:
        raise
    except TrainingError as exc:
        raise to_http_exception(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/credentials", summary="Show which providers have an API key")
async def list_credentials(request: Request):
    return _get_state(request, "credential_store").masked()


@router.put("/credentials/{provider}", summary="Store or clear a provider API key")
async def set_credential(request: Request, provider: str, payload: CredentialPayload):
    store = _get_state(request, "credential_store")
    try:
        configured = store.set_key(provider, payload.api_key)
    except TrainingError as exc:
        raise to_http_exception(exc) from exc
    return {"provider": provider, "configured": configured}

"""FastAPI routes for training sessions."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.session_controller import (
	DEFAULT_ITERATIONS,
	DEFAULT_PROVIDER,
	DEFAULT_RETRY_INTERVAL,
	TrainingSessionController,
)
from models.errors import TrainingError
from utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class SessionPayload(BaseModel):
	training_name: str = ""
	provider: str = DEFAULT_PROVIDER
	model: Optional[str] = None
	topic: str = ""
	prompt: str = ""
	iterations: int = DEFAULT_ITERATIONS
	retry_interval: int = DEFAULT_RETRY_INTERVAL
	goal: str = ""


def _get_controller(request: Request) -> TrainingSessionController:
	"""Retrieve the shared session controller from the app state."""
	controller = getattr(request.app.state, "session_controller", None)
	if controller is None:
		raise HTTPException(status_code=500, detail="Session controller not initialized.")
	return controller


@router.get("")
async def list_sessions_route(request: Request):
	controller = _get_controller(request)
	return [session.snapshot() for session in controller.list_sessions()]


@router.post("", status_code=201)
async def create_session_route(request: Request, payload: SessionPayload):
	try:
		session = await _get_controller(request).create_session(payload.model_dump())
		return session.snapshot()
	except HTTPException:
		raise
	except TrainingError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/preview")
async def preview_session_route(request: Request, payload: SessionPayload):
	"""Return the provider, model, iteration count and projected cost for a draft session."""
	try:
		return _get_controller(request).preview(payload.model_dump())
	except HTTPException:
		raise
	except TrainingError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return _get_controller(request).get_session(session_id).snapshot()
	except HTTPException:
		raise
	except TrainingError as exc:
		raise to_http_exception(exc) from exc


@router.post("/{session_id}/start")
async def start_session_route(request: Request, session_id: str):
	try:
		session = await _get_controller(request).start_session(session_id)
		return session.snapshot()
	except HTTPException:
		raise
	except TrainingError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/stop")
async def stop_session_route(request: Request, session_id: str):
	try:
		session = await _get_controller(request).stop_session(session_id)
		return session.snapshot()
	except HTTPException:
		raise
	except TrainingError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def delete_session_route(request: Request, session_id: str):
	try:
		session = await _get_controller(request).delete_session(session_id)
		return {"id": session.session_id, "deleted": True}
	except HTTPException:
		raise
	except TrainingError as exc:
		raise to_http_exception(exc) from exc
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))

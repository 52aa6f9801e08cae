"""WebSocket endpoint streaming training session snapshots."""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, Depends, WebSocket, WebSocketException, status
from starlette.websockets import WebSocketDisconnect

from services.event_hub import SessionEventHub
from services.session_store import SessionStore

router = APIRouter()


def _require_session_store(websocket: WebSocket) -> SessionStore:
	store = getattr(websocket.app.state, "session_store", None)
	if store is None:
		raise WebSocketException(code=status.WS_1011_INTERNAL_ERROR, reason="Session store unavailable")
	return store


async def _wait_for_disconnect(websocket: WebSocket) -> None:
	# Inbound frames carry no commands; read them only to notice the close.
	while True:
		try:
			await websocket.receive_text()
		except WebSocketDisconnect:
			return


@router.websocket("/ws/sessions")
async def sessions_socket(websocket: WebSocket, store: SessionStore = Depends(_require_session_store)):
	"""Send the current session list, then every session event as it happens."""
	await websocket.accept()
	hub: SessionEventHub = store.hub
	queue = hub.open_queue()
	disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
	try:
		await websocket.send_text(json.dumps({"type": "sessions.snapshot", "sessions": store.snapshots()}))
		while True:
			next_event = asyncio.create_task(queue.get())
			done, _ = await asyncio.wait({next_event, disconnected}, return_when=asyncio.FIRST_COMPLETED)
			if next_event not in done:
				next_event.cancel()
				break
			await websocket.send_text(json.dumps(next_event.result()))
	except WebSocketDisconnect:
		pass
	finally:
		hub.close_queue(queue)
		disconnected.cancel()
	try:
		await websocket.close()
	except Exception:
		pass

"""Fan-out of session snapshots to in-process subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

LOGGER = logging.getLogger(__name__)

SessionEvent = Dict[str, Any]
SessionListener = Callable[[SessionEvent], None]


class SessionEventHub:
	"""Deliver session events to callbacks and per-subscriber queues.

	Callbacks run synchronously in publish order; a failing callback is logged
	and skipped. Queue subscribers get a bounded asyncio.Queue; when a slow
	consumer lets it fill up the oldest event is dropped.
	"""

	def __init__(self, queue_size: int = 100) -> None:
		self.queue_size = queue_size
		self._listeners: List[SessionListener] = []
		self._queues: List[asyncio.Queue] = []

	def subscribe(self, listener: SessionListener) -> Callable[[], None]:
		"""Register a callback; returns a function that removes it."""
		self._listeners.append(listener)

		def _unsubscribe() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return _unsubscribe

	def open_queue(self) -> asyncio.Queue:
		queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
		self._queues.append(queue)
		return queue

	def close_queue(self, queue: asyncio.Queue) -> None:
		if queue in self._queues:
			self._queues.remove(queue)

	def publish(self, event_type: str, session_id: str, snapshot: Optional[Dict[str, Any]]) -> SessionEvent:
		event: SessionEvent = {"type": event_type, "session_id": session_id, "session": snapshot}
		for listener in list(self._listeners):
			try:
				listener(event)
			except Exception:  # pylint: disable=broad-exception-caught
				LOGGER.exception("Session listener failed on %s for %s", event_type, session_id)
		for queue in list(self._queues):
			if queue.full():
				queue.get_nowait()
			queue.put_nowait(event)
		return event

	@property
	def subscriber_count(self) -> int:
		return len(self._listeners) + len(self._queues)

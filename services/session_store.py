"""In-memory, insertion-ordered store for training sessions."""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from models.errors import NotFoundError
from models.session_models import SessionConfig, TrainingSession
from services.event_hub import SessionEventHub

LOGGER = logging.getLogger(__name__)

SessionMutator = Callable[[TrainingSession], Optional[str]]


def _copy(session: TrainingSession) -> TrainingSession:
	# Config and iteration records are frozen, so only the log list needs copying.
	return dataclasses.replace(session, log=list(session.log))


class SessionStore:
	"""Hold sessions keyed by id and apply every mutation under one lock.

	Callers never receive the live objects: `get`, `list` and `update` return
	copies. `update` runs the mutator against a working copy and swaps it in only
	if the mutator returns normally, so a rejected mutation leaves no trace.
	"""

	def __init__(self, hub: Optional[SessionEventHub] = None) -> None:
		self._sessions: Dict[str, TrainingSession] = {}
		self._lock = threading.RLock()
		self._delete_hooks: List[Callable[[str], None]] = []
		self.hub = hub or SessionEventHub()

	def on_delete(self, hook: Callable[[str], None]) -> None:
		"""Run `hook(session_id)` before a session is removed."""
		self._delete_hooks.append(hook)

	def create(self, config: SessionConfig, projected_cost: float) -> TrainingSession:
		"""Insert a new idle session built from `config`."""
		with self._lock:
			session_id = uuid4().hex
			state = TrainingSession(session_id=session_id, config=config, projected_cost=projected_cost)
			self._sessions[session_id] = state
			self.hub.publish("session.created", session_id, state.snapshot())
			return _copy(state)

	def find(self, session_id: str) -> Optional[TrainingSession]:
		with self._lock:
			state = self._sessions.get(session_id)
			return _copy(state) if state is not None else None

	def get(self, session_id: str) -> TrainingSession:
		"""Return a session copy or raise NotFoundError if missing."""
		state = self.find(session_id)
		if state is None:
			raise NotFoundError(session_id)
		return state

	def exists(self, session_id: str) -> bool:
		with self._lock:
			return session_id in self._sessions

	def update(self, session_id: str, mutator: SessionMutator) -> TrainingSession:
		"""Atomically apply `mutator` to one session.

		The mutator may return an event name; when it does, the new snapshot is
		published to the hub before the lock is released.
		"""
		with self._lock:
			current = self._sessions.get(session_id)
			if current is None:
				raise NotFoundError(session_id)
			working = _copy(current)
			event_type = mutator(working)
			self._sessions[session_id] = working
			if event_type:
				self.hub.publish(event_type, session_id, working.snapshot())
			return _copy(working)

	def delete(self, session_id: str) -> TrainingSession:
		"""Remove a session regardless of status, after running delete hooks."""
		with self._lock:
			if session_id not in self._sessions:
				raise NotFoundError(session_id)
			for hook in list(self._delete_hooks):
				hook(session_id)
			state = self._sessions.pop(session_id)
			self.hub.publish("session.deleted", session_id, None)
			return state

	def list(self) -> List[TrainingSession]:
		"""Return copies of all sessions in creation order."""
		with self._lock:
			return [_copy(state) for state in self._sessions.values()]

	def snapshots(self) -> List[Dict]:
		with self._lock:
			return [state.snapshot() for state in self._sessions.values()]

	def __len__(self) -> int:
		with self._lock:
			return len(self._sessions)

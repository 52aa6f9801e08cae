"""Per-session recurring timers that drive training iterations."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from models.errors import InvalidStateTransitionError, NotFoundError
from models.session_models import IterationRecord, SessionStatus, TrainingSession, utc_now
from services.outcome_policy import OutcomePolicy, RandomOutcomePolicy, failure_message, success_message
from services.session_store import SessionStore

LOGGER = logging.getLogger(__name__)


def _mark_stopped(session: TrainingSession) -> Optional[str]:
	if session.status is not SessionStatus.RUNNING:
		return None
	session.status = SessionStatus.STOPPED
	session.stopped_at = utc_now()
	return "session.stopped"


class IterationScheduler:
	"""Own one asyncio task per running session.

	Each task sleeps for the session's retry interval, then applies exactly one
	iteration through `SessionStore.update`. The tick re-checks the session
	inside the store lock, so a stop or delete that lands between ticks halts
	the loop without writing another record. Deleting a session from the store
	cancels its task through the store's delete hook.
	"""

	def __init__(
		self,
		store: SessionStore,
		policy: Optional[OutcomePolicy] = None,
		interval_unit_seconds: float = 1.0,
		unit_label: str = "seconds",
	) -> None:
		if interval_unit_seconds <= 0:
			raise ValueError("interval_unit_seconds must be positive.")
		self.store = store
		self.policy: OutcomePolicy = policy or RandomOutcomePolicy()
		self.interval_unit_seconds = interval_unit_seconds
		self.unit_label = unit_label
		self._tasks: Dict[str, asyncio.Task] = {}
		store.on_delete(self.cancel)

	def start(self, session_id: str) -> asyncio.Task:
		"""Begin ticking a running session; returns the existing task if one is active."""
		existing = self._tasks.get(session_id)
		if existing is not None and not existing.done():
			LOGGER.warning("Session %s already has an active timer; not starting another", session_id)
			return existing

		session = self.store.get(session_id)
		if session.status is not SessionStatus.RUNNING:
			raise InvalidStateTransitionError(session_id, session.status.value, SessionStatus.RUNNING.value)

		period = session.config.retry_interval * self.interval_unit_seconds
		task = asyncio.create_task(self._run_loop(session_id, period), name=f"training-{session_id}")
		self._tasks[session_id] = task
		LOGGER.debug("Timer for session %s started (every %.3fs)", session_id, period)
		return task

	def stop(self, session_id: str) -> TrainingSession:
		"""Cancel the timer and mark a running session stopped; no-op for other statuses."""
		self.cancel(session_id)
		return self.store.update(session_id, _mark_stopped)

	def cancel(self, session_id: str) -> bool:
		"""Cancel the timer for `session_id` if one exists. Safe to call repeatedly."""
		task = self._tasks.pop(session_id, None)
		if task is None:
			return False
		if not task.done():
			task.cancel()
		return True

	def is_active(self, session_id: str) -> bool:
		task = self._tasks.get(session_id)
		return task is not None and not task.done()

	def active_session_ids(self) -> List[str]:
		return [session_id for session_id, task in self._tasks.items() if not task.done()]

	async def shutdown(self) -> None:
		"""Cancel every timer and wait for the tasks to unwind."""
		tasks = list(self._tasks.values())
		self._tasks.clear()
		for task in tasks:
			task.cancel()
		if tasks:
			await asyncio.gather(*tasks, return_exceptions=True)

	# -- Internal ------------------------------------------------------------

	async def _run_loop(self, session_id: str, period: float) -> None:
		try:
			while True:
				await asyncio.sleep(period)
				if not self._tick(session_id):
					break
		except asyncio.CancelledError:
			LOGGER.debug("Timer for session %s cancelled", session_id)
			raise
		except Exception:  # pylint: disable=broad-exception-caught
			LOGGER.exception("Timer for session %s failed; marking it stopped", session_id)
			try:
				self.store.update(session_id, _mark_stopped)
			except NotFoundError:
				pass
		finally:
			if self._tasks.get(session_id) is asyncio.current_task():
				del self._tasks[session_id]

	def _tick(self, session_id: str) -> bool:
		"""Apply one iteration. Returns False once the loop should end."""
		halted = False
		finished = False

		def _advance(session: TrainingSession) -> Optional[str]:
			nonlocal halted, finished
			if session.status is not SessionStatus.RUNNING or session.is_finished:
				halted = True
				return None

			iteration = session.current_iteration + 1
			success = bool(self.policy.decide(session.config, iteration))
			message = success_message(session.config) if success else failure_message(session.config, self.unit_label)
			session.record(IterationRecord(iteration=iteration, success=success, message=message))

			if session.is_finished:
				session.status = SessionStatus.COMPLETED
				session.completed_at = utc_now()
				finished = True
				return "session.completed"
			return "session.iteration"

		try:
			session = self.store.update(session_id, _advance)
		except NotFoundError:
			LOGGER.debug("Session %s disappeared before its tick; stopping timer", session_id)
			return False

		if halted:
			LOGGER.debug("Session %s is %s; stopping timer", session_id, session.status.value)
			return False
		LOGGER.debug(
			"Session %s iteration %d/%d (%s)",
			session_id,
			session.current_iteration,
			session.config.iterations,
			"success" if session.log[-1].success else "no change",
		)
		if finished:
			LOGGER.info(
				"Session %s completed: %d/%d successful",
				session_id,
				session.successful_count,
				session.current_iteration,
			)
			return False
		return True

"""Session lifecycle orchestration for training sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from models.errors import InvalidStateTransitionError, ValidationError
from models.provider_catalog import ProviderCatalog
from models.session_models import SessionConfig, SessionStatus, TrainingSession, can_transition, utc_now
from services.cost_generator import CostGenerator
from services.iteration_scheduler import IterationScheduler
from services.session_store import SessionStore

LOGGER = logging.getLogger(__name__)

DEFAULT_PROVIDER = "openai"
DEFAULT_ITERATIONS = 10
DEFAULT_RETRY_INTERVAL = 5

_REQUIRED_TEXT_FIELDS = ("training_name", "topic", "prompt")

ConfigInput = Union[SessionConfig, Mapping[str, Any]]


def _is_int(value: Any) -> bool:
	return isinstance(value, int) and not isinstance(value, bool)


def _text(value: Any) -> str:
	return value.strip() if isinstance(value, str) else ""


class TrainingSessionController:
	"""Validate caller input and drive sessions through idle -> running -> stopped/completed.

	Create, stop and delete mutate the store directly. Start flips the session to
	running and hands it to the scheduler, which owns its iterations from then on.
	"""

	def __init__(
		self,
		store: SessionStore,
		scheduler: IterationScheduler,
		catalog: ProviderCatalog,
		cost_generator: CostGenerator,
		max_iterations: int = 100,
		max_retry_interval: int = 60,
	) -> None:
		self.store = store
		self.scheduler = scheduler
		self.catalog = catalog
		self.cost_generator = cost_generator
		self.max_iterations = max_iterations
		self.max_retry_interval = max_retry_interval

	def build_config(self, data: ConfigInput, check_text: bool = True) -> SessionConfig:
		"""Apply defaults and validate a raw configuration.

		Raises:
			ValidationError: Naming every missing or out-of-range field.
			UnknownProviderError: If the provider/model pair is not in the catalog.
		"""
		if isinstance(data, SessionConfig):
			data = data.to_dict()

		provider = data.get("provider") or DEFAULT_PROVIDER
		model = data.get("model")
		iterations = data.get("iterations", DEFAULT_ITERATIONS)
		retry_interval = data.get("retry_interval", DEFAULT_RETRY_INTERVAL)
		goal = data.get("goal") or ""

		invalid: List[str] = []
		if check_text:
			for name in _REQUIRED_TEXT_FIELDS:
				value = data.get(name)
				if not isinstance(value, str) or not value.strip():
					invalid.append(name)
		if not _is_int(iterations) or not 1 <= iterations <= self.max_iterations:
			invalid.append("iterations")
		if not _is_int(retry_interval) or not 1 <= retry_interval <= self.max_retry_interval:
			invalid.append("retry_interval")
		if not isinstance(goal, str):
			invalid.append("goal")
		if invalid:
			raise ValidationError(invalid)

		if not model:
			model = self.catalog.default_model(provider)
		self.catalog.require_model(provider, model)

		return SessionConfig(
			training_name=_text(data.get("training_name")),
			provider=provider,
			model=model,
			topic=_text(data.get("topic")),
			prompt=_text(data.get("prompt")),
			iterations=iterations,
			retry_interval=retry_interval,
			goal=goal.strip(),
		)

	def estimate_cost(self, provider: str, iterations: int) -> float:
		"""Projected cost for `iterations` runs against `provider`."""
		if not _is_int(iterations) or iterations < 1:
			raise ValidationError(["iterations"])
		return self.cost_generator.estimate(provider, iterations)

	def preview(self, data: ConfigInput) -> Dict[str, Any]:
		"""Summarize a configuration before it is created."""
		config = self.build_config(data, check_text=False)
		provider = self.catalog.get(config.provider)
		return {
			"provider": provider.key,
			"provider_name": provider.name,
			"model": config.model,
			"iterations": config.iterations,
			"retry_interval": config.retry_interval,
			"projected_cost": self.cost_generator.estimate(config.provider, config.iterations),
		}

	async def create_session(self, data: ConfigInput) -> TrainingSession:
		"""Validate, price, and store a new idle session."""
		config = self.build_config(data)
		projected_cost = self.cost_generator.estimate(config.provider, config.iterations)
		session = self.store.create(config, projected_cost)
		LOGGER.info(
			"Created session %s '%s' (%s/%s, %d iterations, projected $%.4f)",
			session.session_id,
			config.training_name,
			config.provider,
			config.model,
			config.iterations,
			projected_cost,
		)
		return session

	async def start_session(self, session_id: str) -> TrainingSession:
		"""Move an idle session to running and start its timer."""
		# The scheduler needs a running loop; fail before touching the store if there is none.
		asyncio.get_running_loop()

		def _start(session: TrainingSession) -> Optional[str]:
			if not can_transition(session.status, SessionStatus.RUNNING):
				raise InvalidStateTransitionError(session_id, session.status.value, SessionStatus.RUNNING.value)
			session.status = SessionStatus.RUNNING
			session.started_at = utc_now()
			return "session.started"

		session = self.store.update(session_id, _start)
		self.scheduler.start(session_id)
		LOGGER.info("Started session %s", session_id)
		return session

	async def stop_session(self, session_id: str) -> TrainingSession:
		"""Stop a running session. Sessions in any other status are returned unchanged."""
		session = self.store.get(session_id)
		if session.status is not SessionStatus.RUNNING:
			LOGGER.debug("Stop ignored for session %s in status %s", session_id, session.status.value)
			return session
		session = self.scheduler.stop(session_id)
		LOGGER.info("Stopped session %s after %d iterations", session_id, session.current_iteration)
		return session

	async def delete_session(self, session_id: str) -> TrainingSession:
		"""Cancel any timer and remove the session, whatever its status."""
		self.scheduler.cancel(session_id)
		session = self.store.delete(session_id)
		LOGGER.info("Deleted session %s (%s)", session_id, session.status.value)
		return session

	def get_session(self, session_id: str) -> TrainingSession:
		return self.store.get(session_id)

	def list_sessions(self) -> List[TrainingSession]:
		return self.store.list()

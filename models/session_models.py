"""Training session domain models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional


def utc_now() -> datetime:
	return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
	return value.isoformat() if value is not None else None


class SessionStatus(str, enum.Enum):
	IDLE = "idle"
	RUNNING = "running"
	STOPPED = "stopped"
	COMPLETED = "completed"


# Stopped and completed are terminal; deletion is allowed from any status.
_TRANSITIONS: Dict[SessionStatus, FrozenSet[SessionStatus]] = {
	SessionStatus.IDLE: frozenset({SessionStatus.RUNNING}),
	SessionStatus.RUNNING: frozenset({SessionStatus.STOPPED, SessionStatus.COMPLETED}),
	SessionStatus.STOPPED: frozenset(),
	SessionStatus.COMPLETED: frozenset(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
	return target in _TRANSITIONS[current]


@dataclass(frozen=True)
class SessionConfig:
	"""Caller-supplied configuration, fixed for the lifetime of a session."""

	training_name: str
	provider: str
	model: str
	topic: str
	prompt: str
	iterations: int
	retry_interval: int
	goal: str = ""

	def to_dict(self) -> Dict[str, Any]:
		return {
			"training_name": self.training_name,
			"provider": self.provider,
			"model": self.model,
			"topic": self.topic,
			"prompt": self.prompt,
			"iterations": self.iterations,
			"retry_interval": self.retry_interval,
			"goal": self.goal,
		}


@dataclass(frozen=True)
class IterationRecord:
	"""Outcome of one simulated attempt within a session."""

	iteration: int
	success: bool
	message: str
	timestamp: datetime = field(default_factory=utc_now)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"iteration": self.iteration,
			"timestamp": self.timestamp.isoformat(),
			"success": self.success,
			"message": self.message,
		}


@dataclass
class TrainingSession:
	"""In-memory session tracking: immutable config plus mutable runtime state.

	Runtime fields are only changed by SessionStore mutators; everything handed
	to callers outside the store is a snapshot.
	"""

	session_id: str
	config: SessionConfig
	projected_cost: float
	status: SessionStatus = SessionStatus.IDLE
	current_iteration: int = 0
	successful_count: int = 0
	log: List[IterationRecord] = field(default_factory=list)
	created_at: datetime = field(default_factory=utc_now)
	started_at: Optional[datetime] = None
	completed_at: Optional[datetime] = None
	stopped_at: Optional[datetime] = None

	@property
	def success_rate(self) -> int:
		"""Percentage of iterations that succeeded, rounded to a whole number."""
		if self.current_iteration == 0:
			return 0
		return round(self.successful_count / self.current_iteration * 100)

	@property
	def latest_activity(self) -> Optional[str]:
		return self.log[-1].message if self.log else None

	@property
	def is_finished(self) -> bool:
		return self.current_iteration >= self.config.iterations

	def record(self, record: IterationRecord) -> None:
		"""Append one iteration outcome, keeping counters and log in step."""
		if self.status is not SessionStatus.RUNNING:
			raise RuntimeError(f"Session {self.session_id} is {self.status.value}; cannot record iterations.")
		if self.is_finished:
			raise RuntimeError(f"Session {self.session_id} already ran all {self.config.iterations} iterations.")
		if record.iteration != self.current_iteration + 1:
			raise RuntimeError(
				f"Session {self.session_id} expected iteration {self.current_iteration + 1}, got {record.iteration}."
			)
		self.log.append(record)
		self.current_iteration = record.iteration
		if record.success:
			self.successful_count += 1

	def snapshot(self) -> Dict[str, Any]:
		"""Return a JSON-ready copy of the session."""
		return {
			"id": self.session_id,
			**self.config.to_dict(),
			"projected_cost": self.projected_cost,
			"status": self.status.value,
			"current_iteration": self.current_iteration,
			"successful_count": self.successful_count,
			"success_rate": self.success_rate,
			"latest_activity": self.latest_activity,
			"log": [entry.to_dict() for entry in self.log],
			"created_at": _iso(self.created_at),
			"started_at": _iso(self.started_at),
			"completed_at": _iso(self.completed_at),
			"stopped_at": _iso(self.stopped_at),
		}

"""Domain errors raised by the training session core."""

from __future__ import annotations

from typing import Iterable, List


class TrainingError(Exception):
    """Base class for every rejection raised by the session core."""


class ValidationError(TrainingError):
    """A session configuration is missing fields or holds out-of-range values.

    Attributes:
        fields: Names of the offending configuration fields, in the order they were checked.
    """

    def __init__(self, fields: Iterable[str], message: str | None = None) -> None:
        self.fields: List[str] = list(fields)
        super().__init__(message or f"Invalid or missing fields: {', '.join(self.fields)}")


class NotFoundError(TrainingError):
    """An operation referenced a session id the store does not hold."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class InvalidStateTransitionError(TrainingError):
    """A lifecycle action is not allowed from the session's current status."""

    def __init__(self, session_id: str, current: str, target: str) -> None:
        self.session_id = session_id
        self.current = current
        self.target = target
        super().__init__(f"Session {session_id} cannot move from '{current}' to '{target}'")


class UnknownProviderError(TrainingError):
    """A provider key, or a provider/model pair, is not in the provider catalog."""

    def __init__(self, provider_key: str, model: str | None = None) -> None:
        self.provider_key = provider_key
        self.model = model
        if model is None:
            detail = f"Unknown provider '{provider_key}'"
        else:
            detail = f"Model '{model}' is not offered by provider '{provider_key}'"
        super().__init__(detail)

"""Strategies that decide whether a simulated iteration succeeds."""

from __future__ import annotations

import random
from typing import Optional, Protocol

from models.session_models import SessionConfig


class OutcomePolicy(Protocol):
    """Decide the outcome of iteration number `iteration` for a session."""

    def decide(self, config: SessionConfig, iteration: int) -> bool:
        ...


class RandomOutcomePolicy:
    """Independent Bernoulli trials: each iteration succeeds with `success_probability`.

    A uniform draw in [0, 1) below the probability counts as a success, so 0.0
    never succeeds and 1.0 always does.
    """

    def __init__(self, success_probability: float = 0.7, rng: Optional[random.Random] = None) -> None:
        if not 0.0 <= success_probability <= 1.0:
            raise ValueError("success_probability must be between 0.0 and 1.0.")
        self.success_probability = success_probability
        self.rng = rng or random.Random()

    def decide(self, config: SessionConfig, iteration: int) -> bool:
        return self.rng.random() < self.success_probability


def success_message(config: SessionConfig) -> str:
    return f'AI conceded: "{config.topic}" is indeed the best option based on the provided arguments.'


def failure_message(config: SessionConfig, unit_label: str = "seconds") -> str:
    return f"AI maintained its position. Retrying in {config.retry_interval} {unit_label}."

"""Shared pytest fixtures and helpers."""

import asyncio
import itertools

import pytest

from controllers.session_controller import TrainingSessionController
from models.provider_catalog import ProviderCatalog
from services.cost_generator import CostGenerator
from services.event_hub import SessionEventHub
from services.iteration_scheduler import IterationScheduler
from services.session_store import SessionStore

# One retry-interval unit in tests; keeps a 1-unit interval at 10ms per tick.
TEST_UNIT_SECONDS = 0.01


class ScriptedPolicy:
    """Outcome policy that replays a fixed sequence of outcomes, cycling when exhausted."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self._cycle = itertools.cycle(self.outcomes)
        self.calls = []

    def decide(self, config, iteration):
        self.calls.append(iteration)
        return next(self._cycle)


async def wait_for(predicate, timeout=2.0, interval=0.005):
    """Poll `predicate` until it returns truthy or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return bool(predicate())


@pytest.fixture
def catalog():
    return ProviderCatalog()


@pytest.fixture
def hub():
    return SessionEventHub()


@pytest.fixture
def store(hub):
    return SessionStore(hub)


@pytest.fixture
def policy():
    return ScriptedPolicy([True, False, True])


@pytest.fixture
def scheduler(store, policy):
    return IterationScheduler(store, policy, interval_unit_seconds=TEST_UNIT_SECONDS)


@pytest.fixture
def cost_generator(catalog):
    return CostGenerator(catalog)


@pytest.fixture
def controller(store, scheduler, catalog, cost_generator):
    return TrainingSessionController(store, scheduler, catalog, cost_generator)


@pytest.fixture
def session_data():
    """Provide a valid session configuration payload."""
    return {
        "training_name": "Promote TechCorp Solutions",
        "provider": "openai",
        "model": "gpt-4",
        "topic": "best CRM software",
        "prompt": "Present the benchmark results and customer reviews.",
        "iterations": 3,
        "retry_interval": 1,
        "goal": "The assistant recommends TechCorp first.",
    }

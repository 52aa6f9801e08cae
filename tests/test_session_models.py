"""Tests for the session entity, status transitions, and provider catalog."""

import dataclasses

import pytest

from models.errors import UnknownProviderError, ValidationError
from models.provider_catalog import ProviderCatalog
from models.session_models import (
    IterationRecord,
    SessionConfig,
    SessionStatus,
    TrainingSession,
    can_transition,
)


def _session(iterations=2, status=SessionStatus.RUNNING):
    config = SessionConfig(
        training_name="n", provider="openai", model="gpt-4", topic="t", prompt="p",
        iterations=iterations, retry_interval=1,
    )
    return TrainingSession(session_id="abc", config=config, projected_cost=0.06, status=status)


class TestTransitions:
    def test_idle_only_starts(self):
        assert can_transition(SessionStatus.IDLE, SessionStatus.RUNNING)
        assert not can_transition(SessionStatus.IDLE, SessionStatus.STOPPED)
        assert not can_transition(SessionStatus.IDLE, SessionStatus.COMPLETED)

    def test_running_stops_or_completes(self):
        assert can_transition(SessionStatus.RUNNING, SessionStatus.STOPPED)
        assert can_transition(SessionStatus.RUNNING, SessionStatus.COMPLETED)
        assert not can_transition(SessionStatus.RUNNING, SessionStatus.RUNNING)

    @pytest.mark.parametrize("terminal", [SessionStatus.STOPPED, SessionStatus.COMPLETED])
    def test_terminal_statuses(self, terminal):
        for target in SessionStatus:
            assert not can_transition(terminal, target)


class TestTrainingSession:
    def test_config_is_frozen(self):
        session = _session()
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.config.topic = "other"

    def test_record_keeps_counters_in_step(self):
        session = _session(iterations=3)
        session.record(IterationRecord(iteration=1, success=True, message="yes"))
        session.record(IterationRecord(iteration=2, success=False, message="no"))
        assert session.current_iteration == 2
        assert session.successful_count == 1
        assert len(session.log) == 2
        assert session.latest_activity == "no"

    def test_record_rejects_out_of_order_index(self):
        session = _session()
        with pytest.raises(RuntimeError, match="expected iteration 1"):
            session.record(IterationRecord(iteration=2, success=True, message="skip"))
        assert session.log == []

    def test_record_rejects_past_planned_total(self):
        session = _session(iterations=1)
        session.record(IterationRecord(iteration=1, success=True, message="done"))
        with pytest.raises(RuntimeError, match="already ran"):
            session.record(IterationRecord(iteration=2, success=True, message="extra"))

    def test_record_requires_running(self):
        session = _session(status=SessionStatus.STOPPED)
        with pytest.raises(RuntimeError, match="stopped"):
            session.record(IterationRecord(iteration=1, success=True, message="late"))

    def test_success_rate(self):
        session = _session(iterations=3)
        assert session.success_rate == 0
        session.record(IterationRecord(iteration=1, success=True, message="a"))
        session.record(IterationRecord(iteration=2, success=False, message="b"))
        session.record(IterationRecord(iteration=3, success=False, message="c"))
        assert session.success_rate == 33

    def test_snapshot_is_json_ready(self):
        session = _session()
        session.record(IterationRecord(iteration=1, success=True, message="a"))
        snapshot = session.snapshot()
        assert snapshot["id"] == "abc"
        assert snapshot["status"] == "running"
        assert snapshot["training_name"] == "n"
        assert snapshot["log"][0]["iteration"] == 1
        assert isinstance(snapshot["created_at"], str)
        assert snapshot["started_at"] is None

    def test_snapshot_is_a_copy(self):
        session = _session()
        snapshot = session.snapshot()
        snapshot["log"].append({"iteration": 99})
        assert session.log == []


class TestProviderCatalog:
    def test_default_keys(self, catalog):
        assert catalog.keys() == ["openai", "anthropic", "google", "cohere", "huggingface"]

    def test_require_model(self, catalog):
        assert catalog.require_model("anthropic", "claude-3-haiku").name == "Anthropic"
        with pytest.raises(UnknownProviderError, match="not offered"):
            catalog.require_model("anthropic", "gpt-4")

    def test_unknown_provider(self, catalog):
        with pytest.raises(UnknownProviderError):
            catalog.get("nope")
        assert "nope" not in catalog

    def test_default_model_is_first_listed(self, catalog):
        assert catalog.default_model("google") == "gemini-pro"

    def test_as_dict(self, catalog):
        data = catalog.as_dict()
        assert data["openai"]["cost_per_token"] == 0.00003
        assert data["cohere"]["models"] == ["command", "command-light"]

    def test_empty_catalog_rejected(self):
        with pytest.raises(ValueError):
            ProviderCatalog([])


def test_validation_error_lists_fields():
    error = ValidationError(["topic", "iterations"])
    assert error.fields == ["topic", "iterations"]
    assert "topic, iterations" in str(error)

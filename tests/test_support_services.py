"""Tests for settings, the event hub, and the credential store."""

import asyncio

import pytest
from pydantic import ValidationError as PydanticValidationError

from models.errors import UnknownProviderError
from services.credential_store import CredentialStore, mask_key
from services.event_hub import SessionEventHub
from utils.settings import TrainingSettings


class TestTrainingSettings:
    @pytest.fixture(autouse=True)
    def _clean_environment(self, monkeypatch, tmp_path):
        for name in TrainingSettings.model_fields:
            monkeypatch.delenv(name.upper(), raising=False)
        monkeypatch.chdir(tmp_path)

    def test_defaults(self):
        settings = TrainingSettings.from_env({})
        assert settings.tokens_per_iteration == 1000
        assert settings.success_probability == 0.7
        assert settings.retry_interval_unit_seconds == 1.0
        assert settings.max_iterations == 100
        assert settings.max_retry_interval == 60
        assert settings.log_level == "INFO"

    def test_reads_environment(self):
        settings = TrainingSettings.from_env(
            {
                "TOKENS_PER_ITERATION": "2000",
                "SUCCESS_PROBABILITY": "0.25",
                "RETRY_INTERVAL_UNIT_SECONDS": "60",
                "LOG_LEVEL": "debug",
            }
        )
        assert settings.tokens_per_iteration == 2000
        assert settings.success_probability == 0.25
        assert settings.retry_interval_unit_seconds == 60.0
        assert settings.log_level == "DEBUG"

    def test_blank_values_fall_back(self):
        assert TrainingSettings.from_env({"MAX_ITERATIONS": "  "}).max_iterations == 100

    @pytest.mark.parametrize(
        "name,value",
        [
            ("TOKENS_PER_ITERATION", "lots"),
            ("TOKENS_PER_ITERATION", "0"),
            ("SUCCESS_PROBABILITY", "1.2"),
            ("RETRY_INTERVAL_UNIT_SECONDS", "-1"),
            ("MAX_RETRY_INTERVAL", "0"),
            ("LOG_LEVEL", "verbose"),
        ],
    )
    def test_invalid_values_fail_fast(self, name, value):
        with pytest.raises(RuntimeError, match=name):
            TrainingSettings.from_env({name: value})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("MAX_ITERATIONS", "25")
        assert TrainingSettings.from_env().max_iterations == 25

    def test_reads_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("SUCCESS_PROBABILITY=0.4\n")
        assert TrainingSettings.from_env().success_probability == 0.4

    def test_invalid_log_level_in_process_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        with pytest.raises(RuntimeError, match="LOG_LEVEL"):
            TrainingSettings.from_env()

    def test_settings_are_immutable(self):
        settings = TrainingSettings.from_env({})
        with pytest.raises(PydanticValidationError):
            settings.max_iterations = 5


class TestSessionEventHub:
    def test_callbacks_receive_events_in_order(self):
        hub = SessionEventHub()
        seen = []
        hub.subscribe(seen.append)
        hub.publish("session.created", "a", {"id": "a"})
        hub.publish("session.deleted", "a", None)
        assert [e["type"] for e in seen] == ["session.created", "session.deleted"]

    def test_unsubscribe(self):
        hub = SessionEventHub()
        seen = []
        unsubscribe = hub.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        hub.publish("session.created", "a", {})
        assert seen == []
        assert hub.subscriber_count == 0

    def test_failing_callback_does_not_block_others(self):
        hub = SessionEventHub()
        seen = []

        def _broken(event):
            raise RuntimeError("render failed")

        hub.subscribe(_broken)
        hub.subscribe(seen.append)
        hub.publish("session.iteration", "a", {})
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_queue_drops_oldest_when_full(self):
        hub = SessionEventHub(queue_size=2)
        queue = hub.open_queue()
        for session_id in ("a", "b", "c"):
            hub.publish("session.created", session_id, {})
        first = await asyncio.wait_for(queue.get(), timeout=1)
        second = await asyncio.wait_for(queue.get(), timeout=1)
        assert [first["session_id"], second["session_id"]] == ["b", "c"]
        hub.close_queue(queue)
        hub.publish("session.created", "d", {})
        assert queue.empty()


class TestCredentialStore:
    def test_set_and_mask(self, catalog):
        store = CredentialStore(catalog)
        assert store.set_key("openai", " sk-test-123456 ") is True
        assert store.get_key("openai") == "sk-test-123456"
        masked = store.masked()
        assert masked["openai"] == "**********3456"
        assert masked["anthropic"] is None
        assert set(masked) == set(catalog.keys())

    def test_empty_key_clears(self, catalog):
        store = CredentialStore(catalog)
        store.set_key("google", "abc12345")
        assert store.set_key("google", "") is False
        assert not store.has_key("google")

    def test_unknown_provider(self, catalog):
        store = CredentialStore(catalog)
        with pytest.raises(UnknownProviderError):
            store.set_key("acme", "key")

    def test_mask_short_key(self):
        assert mask_key("abc") == "***"

"""Tests for settings, logging setup and the round timer."""

import sys

import pytest
from loguru import logger
from pydantic import ValidationError

from config import Settings, configure_logging
from timers import ManualTimer


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DRILL_ROUND_DURATION_S", raising=False)
        settings = Settings(_env_file=None)
        assert settings.round_duration_s == 60.0
        assert settings.fluency_threshold == 0.8
        assert settings.expansion_threshold == 0.7
        assert settings.calibration_trials == 10
        assert settings.calibration_warmup_trials == 2

    def test_environment_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DRILL_ROUND_DURATION_S", "30")
        monkeypatch.setenv("DRILL_DB_PATH", str(tmp_path / "x.db"))
        settings = Settings(_env_file=None)
        assert settings.round_duration_s == 30.0
        assert settings.db_path == tmp_path / "x.db"

    def test_invalid_threshold(self, monkeypatch):
        monkeypatch.setenv("DRILL_FLUENCY_THRESHOLD", "1.5")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestConfigureLogging:
    def test_file_sink_receives_debug(self, tmp_path):
        log_file = tmp_path / "trainer.log"
        configure_logging(Settings(_env_file=None, log_level="ERROR", log_file=log_file))
        logger.debug("selected C:fwd")

        assert "selected C:fwd" in log_file.read_text()

        logger.remove()
        logger.add(sys.stderr, level="WARNING")


class TestManualTimer:
    """Tests for the manual timer."""

    def test_fire_runs_active_callbacks(self):
        timer = ManualTimer()
        calls = []
        timer.schedule_repeating(1.0, lambda: calls.append("a"))
        handle = timer.schedule_repeating(1.0, lambda: calls.append("b"))

        assert timer.fire() == 2
        handle.cancel()
        assert timer.fire() == 1
        assert calls == ["a", "b", "a"]

    def test_cancel_is_idempotent(self):
        timer = ManualTimer()
        handle = timer.schedule_repeating(1.0, lambda: None)
        handle.cancel()
        handle.cancel()
        assert handle.cancelled
        assert timer.active == []

    def test_cancelled_handles_dropped_on_schedule(self):
        timer = ManualTimer()
        for _ in range(5):
            timer.schedule_repeating(1.0, lambda: None).cancel()
        live = timer.schedule_repeating(1.0, lambda: None)
        assert timer.handles == [live]

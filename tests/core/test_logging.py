"""Tests for structured logging setup and context binding."""

import asyncio
import json

import structlog
from structlog.testing import capture_logs

from cronguard.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)
from cronguard.core.settings import CronGuardSettings


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True, service="billing-jobs")

        get_logger("test.json").info("run_started", task="sync")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["event"] == "run_started"
        assert data["task"] == "sync"
        assert data["service.name"] == "billing-jobs"
        assert data["log.level"] == "info"
        assert "@timestamp" in data

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)

        logger = get_logger("test.level")
        logger.info("hidden")
        logger.warning("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "shown" in out

    def test_console_output(self, capsys):
        configure_logging(level="INFO", json_format=False, add_timestamp=False)

        get_logger("test.console").info("attempt_failed", attempt=2)

        assert "attempt_failed" in capsys.readouterr().out


class TestConfigureFromSettings:
    def test_env_drives_level_format_and_service(self, monkeypatch, capsys):
        monkeypatch.setenv("CRONGUARD_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("CRONGUARD_LOG_JSON", "true")
        monkeypatch.setenv("CRONGUARD_SERVICE", "billing-jobs")

        configure_from_settings()

        logger = get_logger("test.settings")
        logger.info("run_started", task="sync")
        logger.warning("attempt_failed", task="sync", attempt=1)

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["event"] == "attempt_failed"
        assert data["service.name"] == "billing-jobs"
        assert data["log.level"] == "warning"

    def test_explicit_settings_object(self, capsys):
        configure_from_settings(
            CronGuardSettings(log_level="INFO", log_json=True, service="explicit")
        )

        get_logger("test.explicit").info("run_succeeded")

        data = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert data["service.name"] == "explicit"


class TestLogContext:
    def test_binds_and_unbinds(self):
        with LogContext(task="sync", run_id="01ABC"):
            assert structlog.contextvars.get_contextvars() == {"task": "sync", "run_id": "01ABC"}
        assert structlog.contextvars.get_contextvars() == {}

    async def _inside(self):
        async with LogContext(run_id="R1"):
            return structlog.contextvars.get_contextvars()

    def test_async_form(self):
        assert asyncio.run(self._inside()) == {"run_id": "R1"}

    def test_clear_context(self):
        bind_context(a=1)
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}


def test_capture_logs_sees_events():
    with capture_logs() as logs:
        get_logger("test.capture").warning("overlap_skipped", task="t")
    assert logs == [{"event": "overlap_skipped", "task": "t", "log_level": "warning"}]

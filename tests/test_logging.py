"""Tests for console and structured logging."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from dashstore import logging as console_log
from dashstore.config import Config
from dashstore.prune import PruneStats
from dashstore.store import Store


@pytest.fixture
def home(monkeypatch, tmp_path: Path) -> Path:
    """Point Path.home() at a temporary directory."""
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    return tmp_path


@pytest.fixture
def reset_logging():
    """Restore stdlib and structlog configuration after a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestConsoleHelpers:
    """Tests for Rich console helpers."""

    def test_info_prints_level_and_message(self, capsys) -> None:
        """info() prints a timestamped message."""
        console_log.info("hello world")
        out = capsys.readouterr().out
        assert "[info]" in out
        assert "hello world" in out

    def test_error_prints_icon(self, capsys) -> None:
        """sample_failed() prints an error with the failure icon."""
        console_log.sample_failed("cpu", "boom")
        out = capsys.readouterr().out
        assert "[err]" in out
        assert "Sample failed for cpu: boom" in out
        assert "✗" in out

    def test_prune_complete_reports_counts(self, capsys) -> None:
        """prune_complete() prints removed points and series."""
        console_log.prune_complete(PruneStats(points_removed=12, series_pruned=3, duration=0.002))
        out = capsys.readouterr().out
        assert "Pruned 12 points from 3 series" in out

    def test_prune_complete_silent_when_nothing_removed(self, capsys) -> None:
        """Empty prune cycles are not printed."""
        console_log.prune_complete(PruneStats())
        assert capsys.readouterr().out == ""


class TestConfigure:
    """Tests for structlog file configuration."""

    def test_configure_writes_json_lines(self, home: Path, reset_logging) -> None:
        """configure() routes structlog events to a JSON log file."""
        config = Config()
        console_log.configure(config)

        console_log.get_structlog().info("test_event", answer=42)
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = config.log_path.read_text().strip().splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "test_event"
        assert record["answer"] == 42
        assert record["level"] == "info"
        assert "ts" in record

    def test_store_debug_events_at_debug_level(self, home: Path, reset_logging) -> None:
        """With DEBUG enabled, store freeze events reach the log file."""
        config = Config()
        console_log.configure(config, level=logging.DEBUG)

        store = Store()
        store.add_point("x", 1.0, 1.0)
        store.unfreeze(store.freeze("x"))
        for handler in logging.getLogger().handlers:
            handler.flush()

        events = [json.loads(line)["event"] for line in config.log_path.read_text().splitlines()]
        assert "series_frozen" in events
        assert "series_unfrozen" in events

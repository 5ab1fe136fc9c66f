"""Unit tests for structured logging setup."""

import json

from bulletgraph.utils.logging import configure_logging, get_logger


def logged_events(home):
    log_file = home / ".cache" / "bulletgraph" / "logs" / "bulletgraph.log"
    return [json.loads(line) for line in log_file.read_text().splitlines()]


class TestConfigureLogging:
    """Test configure_logging and get_logger."""

    def test_events_written_as_json(self, fake_home, monkeypatch):
        monkeypatch.delenv("BULLETGRAPH_LOG_LEVEL", raising=False)
        configure_logging()

        get_logger("bulletgraph.test").info("dot_written", path="notes.outline.dot")

        (entry,) = logged_events(fake_home)
        assert entry["event"] == "dot_written"
        assert entry["level"] == "info"
        assert entry["path"] == "notes.outline.dot"
        assert "timestamp" in entry

    def test_debug_level(self, fake_home, monkeypatch):
        monkeypatch.setenv("BULLETGRAPH_LOG_LEVEL", "debug")
        configure_logging()

        get_logger("bulletgraph.test").debug("graph_pruned", removed=2)

        assert [entry["event"] for entry in logged_events(fake_home)] == ["graph_pruned"]

    def test_unknown_level_falls_back_to_info(self, fake_home, monkeypatch):
        """Test an unknown level name keeps debug events out."""
        monkeypatch.setenv("BULLETGRAPH_LOG_LEVEL", "LOUD")
        configure_logging()

        logger = get_logger("bulletgraph.test")
        logger.debug("graph_pruned")
        logger.info("outline_written")

        assert [entry["event"] for entry in logged_events(fake_home)] == ["outline_written"]

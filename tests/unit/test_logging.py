"""Tests for logging setup and processing statistics."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

from mpresolver.domain import DiagnosticKind, DiagnosticSink
from mpresolver.utils import ProcessingLogger, ProcessingStats, configure_logging


class TestProcessingStats:
    """Tests for ProcessingStats class."""

    def test_empty_stats(self):
        """Test derived values without data."""
        stats = ProcessingStats()
        assert stats.duration_seconds == 0.0
        assert stats.avg_relation_time_ms == 0.0
        assert stats.min_relation_time_ms == 0.0
        assert stats.diagnostic_total == 0

    def test_timings(self):
        """Test timing aggregates."""
        stats = ProcessingStats(relation_timings_ms=[1.0, 2.0, 6.0], start_time=10.0, end_time=12.5)
        assert stats.avg_relation_time_ms == 3.0
        assert stats.min_relation_time_ms == 1.0
        assert stats.max_relation_time_ms == 6.0
        assert stats.duration_seconds == 2.5


class TestProcessingLogger:
    """Tests for ProcessingLogger class."""

    def test_counts(self):
        """Test each event updates the statistics."""
        processing_logger = ProcessingLogger(MagicMock())

        processing_logger.log_relation_complete(1, polygons_created=3, diagnostics=0, duration_ms=4.0)
        processing_logger.log_relation_skipped(2, "not a multipolygon")
        processing_logger.log_relation_error(3, ValueError("bad"))

        stats = processing_logger.stats
        assert stats.processed_count == 1
        assert stats.polygons_created == 3
        assert stats.skipped_count == 1
        assert stats.error_count == 1
        assert stats.errors == [(3, "bad")]

    def test_log_diagnostic_uses_severity(self):
        """Test diagnostics are logged at their severity and counted."""
        logger = MagicMock()
        processing_logger = ProcessingLogger(logger)
        sink = DiagnosticSink("https://www.openstreetmap.org/relation/5")
        diagnostic = sink.report(DiagnosticKind.UNRESOLVED, "lost ring", ring_ids=[7])

        processing_logger.log_diagnostic(diagnostic)

        logger.log.assert_called_once()
        args, kwargs = logger.log.call_args
        assert args == (logging.ERROR, "lost ring")
        assert kwargs["kind"] == "Unresolved"
        assert kwargs["rings"] == [7]
        assert processing_logger.stats.diagnostic_counts == {"Unresolved": 1}


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_handlers_not_duplicated(self, tmp_path: Path):
        """Test repeated configuration replaces earlier handlers."""
        root = logging.getLogger()
        before = len(root.handlers)

        configure_logging(log_file=tmp_path / "a.log")
        configure_logging(log_file=tmp_path / "b.log")

        ours = [h for h in root.handlers if h.get_name() == "mpresolver"]
        assert len(ours) == 2
        assert len(root.handlers) - before <= 2
        for handler in ours:
            root.removeHandler(handler)
            handler.close()

    def test_core_records_reach_log_file(self, tmp_path: Path):
        """Test stdlib loggers of the engine write to the log file."""
        log_file = tmp_path / "run.log"
        configure_logging(log_file=log_file, quiet=True)

        logging.getLogger("mpresolver.core.closer").debug("closing %s", "ring-1")

        root = logging.getLogger()
        for handler in [h for h in root.handlers if h.get_name() == "mpresolver"]:
            handler.flush()
            root.removeHandler(handler)
            handler.close()
        assert "closing ring-1" in log_file.read_text(encoding="utf-8")

"""Logging utilities for mpresolver."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from mpresolver.domain.diagnostic import Diagnostic, Severity

_HANDLER_NAME = "mpresolver"


@dataclass
class ProcessingStats:
    """Statistics from processing run."""

    processed_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    polygons_created: int = 0
    diagnostic_counts: Counter[str] = field(default_factory=Counter)
    errors: list[tuple[int, str]] = field(default_factory=list)
    relation_timings_ms: list[float] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None
    was_cancelled: bool = False
    cancelled_count: int = 0

    @property
    def duration_seconds(self) -> float:
        """Calculate processing duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    @property
    def diagnostic_total(self) -> int:
        return sum(self.diagnostic_counts.values())

    @property
    def avg_relation_time_ms(self) -> float:
        """Average time per resolved relation."""
        if not self.relation_timings_ms:
            return 0.0
        return sum(self.relation_timings_ms) / len(self.relation_timings_ms)

    @property
    def min_relation_time_ms(self) -> float:
        return min(self.relation_timings_ms, default=0.0)

    @property
    def max_relation_time_ms(self) -> float:
        return max(self.relation_timings_ms, default=0.0)


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "WARNING",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Handlers installed by an earlier call are replaced, so configuring
    twice does not duplicate output.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output except errors

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(logging.DEBUG)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.set_name(_HANDLER_NAME)
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.set_name(_HANDLER_NAME)
    console_handler.setLevel(
        logging.ERROR if quiet else getattr(logging, console_level.upper())
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("mpresolver")
    logger.info(
        "Logging initialized",
        log_file=str(log_file) if log_file else None,
        level=file_level,
    )

    return logger


class ProcessingLogger:
    """Logger for tracking processing progress and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = ProcessingStats()

    def log_relation_start(self, relation_id: int) -> None:
        """Log start of relation processing."""
        self._logger.debug("Resolving relation", relation=relation_id)

    def log_relation_complete(
        self,
        relation_id: int,
        polygons_created: int,
        diagnostics: int,
        duration_ms: float,
    ) -> None:
        """Log successful relation processing."""
        self._logger.info(
            "Relation resolved",
            relation=relation_id,
            polygons=polygons_created,
            diagnostics=diagnostics,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.processed_count += 1
        self._stats.polygons_created += polygons_created
        self._stats.relation_timings_ms.append(duration_ms)

    def log_relation_skipped(self, relation_id: int, reason: str) -> None:
        """Log skipped relation."""
        self._logger.debug("Relation skipped", relation=relation_id, reason=reason)
        self._stats.skipped_count += 1

    def log_relation_error(
        self,
        relation_id: int,
        error: Exception,
        traceback: str | None = None,
    ) -> None:
        """Log relation processing error."""
        self._logger.error(
            "Relation processing failed",
            relation=relation_id,
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((relation_id, str(error)))

    def log_diagnostic(self, diagnostic: Diagnostic) -> None:
        """Log a relation anomaly at the level matching its severity."""
        level = {
            Severity.INFO: logging.INFO,
            Severity.WARNING: logging.WARNING,
            Severity.ERROR: logging.ERROR,
        }[diagnostic.severity]
        self._logger.log(
            level,
            diagnostic.message,
            kind=diagnostic.kind.value,
            relation=diagnostic.relation_ref,
            rings=list(diagnostic.ring_ids),
            ways=list(diagnostic.way_refs),
        )
        self._stats.diagnostic_counts[diagnostic.kind.value] += 1

    def log_ring_analysis(
        self,
        relation_id: int,
        total_rings: int,
        outer_count: int,
        inner_count: int,
    ) -> None:
        """Log ring role resolution results."""
        self._logger.debug(
            "Ring analysis",
            relation=relation_id,
            total=total_rings,
            outer=outer_count,
            inner=inner_count,
        )

    @property
    def stats(self) -> ProcessingStats:
        """Get current processing statistics."""
        return self._stats

"""
Structured logging for companycheck.

One process-wide logger writes human-readable lines to stderr and a daily
file under logs/, with keyword context appended as JSON. It also keeps
counters for searches, cache lookups and per-source query outcomes.
"""

import copy
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'


def _empty_metrics() -> Dict[str, Any]:
    return {
        "searches": 0,
        "cache_hits": 0,
        "cache_misses": 0,
        "source_queries_attempted": 0,
        "source_queries_successful": 0,
        "source_queries_failed": 0,
        "errors_by_type": {},
        # source -> {"attempts", "successes"}
        "source_success_rate": {},
    }


def _rate(part: int, whole: int) -> float:
    return round(part / whole, 3) if whole else 0


class StructuredLogger:
    """Console + file logger carrying search, cache and source metrics."""

    def __init__(
        self,
        name: str = "companycheck",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for the daily log file (default: logs/)
            enable_file: Write logs to file
            enable_console: Write logs to stderr
        """
        threshold = getattr(logging, level.upper())
        self.logger = logging.getLogger(name)
        self.logger.setLevel(threshold)
        self.logger.handlers.clear()
        self.metrics = _empty_metrics()

        if enable_console:
            # stderr keeps stdout clean for `search --json`
            self._attach(logging.StreamHandler(sys.stderr), threshold, CONSOLE_FORMAT)

        if enable_file:
            log_dir = Path(log_dir) if log_dir is not None else Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"companycheck_{datetime.now():%Y%m%d}.log"
            self._attach(logging.FileHandler(log_file, encoding='utf-8'), logging.DEBUG, FILE_FORMAT)

    def _attach(self, handler: logging.Handler, level: int, fmt: str) -> None:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
        self.logger.addHandler(handler)

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context):
        self._log(logging.ERROR, message, context)

    def critical(self, message: str, **context):
        self._log(logging.CRITICAL, message, context)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metrics

    def record_search(self):
        self.metrics["searches"] += 1

    def record_cache_hit(self):
        self.metrics["cache_hits"] += 1

    def record_cache_miss(self):
        self.metrics["cache_misses"] += 1

    def record_source_attempt(self, source: str):
        self.metrics["source_queries_attempted"] += 1
        stats = self.metrics["source_success_rate"].setdefault(
            source, {"attempts": 0, "successes": 0}
        )
        stats["attempts"] += 1

    def record_source_success(self, source: str):
        self.metrics["source_queries_successful"] += 1
        if source in self.metrics["source_success_rate"]:
            self.metrics["source_success_rate"][source]["successes"] += 1

    def record_source_failure(self, source: str, error_type: str):
        """Count a failed source query under its error type (Timeout, HTTPError_503, ...)."""
        self.metrics["source_queries_failed"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Snapshot of the counters with derived rates filled in."""
        snapshot = copy.deepcopy(self.metrics)
        for stats in snapshot["source_success_rate"].values():
            stats["success_rate"] = _rate(stats["successes"], stats["attempts"])
        snapshot["cache_hit_rate"] = _rate(
            snapshot["cache_hits"], snapshot["cache_hits"] + snapshot["cache_misses"]
        )
        return snapshot

    def log_metrics_summary(self):
        m = self.get_metrics()
        attempts = m["source_queries_attempted"]
        successes = m["source_queries_successful"]

        self.info("=== Search Session Metrics ===")
        self.info(f"Searches: {m['searches']}")
        self.info(
            f"Cache: {m['cache_hits']} hits / {m['cache_misses']} misses "
            f"({m['cache_hit_rate'] * 100:.1f}% hit rate)"
        )
        self.info(f"Source queries: {successes}/{attempts} ({_rate(successes, attempts) * 100:.1f}% success)")

        for source, stats in m["source_success_rate"].items():
            self.info(
                f"  {source}: {stats['successes']}/{stats['attempts']} "
                f"({stats['success_rate'] * 100:.1f}%)"
            )
        for error_type, count in m["errors_by_type"].items():
            self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "companycheck", level: str = "INFO", **kwargs) -> StructuredLogger:
    """Return the process-wide logger, creating it on first use."""
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)
    return _global_logger


def reset_logger():
    """Drop the process-wide logger (tests)."""
    global _global_logger
    _global_logger = None

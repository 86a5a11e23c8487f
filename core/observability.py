"""
Observability helpers: logging setup, request correlation IDs, timing and
simple in-memory request metrics.

Usage:
    from core.observability import setup_logging, get_logger

    setup_logging(level="INFO", json_format=False)
    logger = get_logger(__name__)
    logger.info("Dashboard built", extra={"tenant_id": tenant_id})
"""
import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Request correlation ID
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Extra context attached to every record (tenant_id, ...)
_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})

# LogRecord attributes that are not user-supplied "extra" fields
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "asctime", "taskName",
})


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID in context."""
    _correlation_id.set(correlation_id)


def generate_correlation_id() -> str:
    """Generate a new short correlation ID."""
    return uuid.uuid4().hex[:8]


def add_log_context(**kwargs) -> None:
    """Add extra context to be included in all log messages of this request."""
    _log_context.set({**_log_context.get(), **kwargs})


def clear_log_context() -> None:
    """Clear the log context."""
    _log_context.set({})


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    extras = dict(_log_context.get())
    extras.update(
        (k, v) for k, v in record.__dict__.items()
        if k not in _STANDARD_ATTRS and not k.startswith("_")
    )
    return extras


class StructuredFormatter(logging.Formatter):
    """JSON log formatter: one object per line with correlation ID and extras."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        log_entry.update(_extra_fields(record))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable log formatter with correlation ID.

    Format: TIMESTAMP - LEVEL - LOGGER [CORRELATION_ID] - MESSAGE | {extras}
    """

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        correlation_str = f" [{correlation_id}]" if correlation_id else ""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        base_msg = f"{timestamp} - {record.levelname:8} - {record.name}{correlation_str} - {record.getMessage()}"

        extras = _extra_fields(record)
        if extras:
            base_msg += f" | {extras}"

        if record.exc_info:
            base_msg += f"\n{self.formatException(record.exc_info)}"

        return base_msg


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure root logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON logs; otherwise human-readable
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if json_format else HumanReadableFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Quiet down noisy libraries
    for noisy in ("httpx", "httpcore", "uvicorn.access", "watchfiles"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


# ═══════════════════════════════════════════════════════════════════════════════
# TIMING
# ═══════════════════════════════════════════════════════════════════════════════

class Timer:
    """
    Context manager for timing operations.

    Usage:
        with Timer("instantly_campaigns", logger) as t:
            response = await client.get(...)
        print(t.elapsed_ms)
    """

    def __init__(self, name: str, logger: Optional[logging.Logger] = None, warn_threshold_ms: float = 1000):
        self.name = name
        self.logger = logger
        self.warn_threshold_ms = warn_threshold_ms
        self.elapsed_ms: float = 0
        self._start: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000

        if self.logger:
            level = logging.WARNING if self.elapsed_ms > self.warn_threshold_ms else logging.DEBUG
            self.logger.log(
                level,
                f"{self.name} completed",
                extra={"duration_ms": round(self.elapsed_ms, 2)}
            )


# ═══════════════════════════════════════════════════════════════════════════════
# METRICS COLLECTOR
# ═══════════════════════════════════════════════════════════════════════════════

class MetricsCollector:
    """
    In-memory request metrics, exposed by the health endpoint.

    Tracks request counts per endpoint, error counts per type, and
    provider-call failures per endpoint.
    """

    def __init__(self, max_samples: int = 100):
        self._request_counts: Dict[str, int] = {}
        self._error_counts: Dict[str, int] = {}
        self._timing_samples: Dict[str, list] = {}
        self._max_samples = max_samples

    def record_request(self, endpoint: str, duration_ms: Optional[float] = None) -> None:
        """Record a request to an endpoint, with optional timing."""
        self._request_counts[endpoint] = self._request_counts.get(endpoint, 0) + 1
        if duration_ms is not None:
            samples = self._timing_samples.setdefault(endpoint, [])
            samples.append(duration_ms)
            del samples[:-self._max_samples]

    def record_error(self, error_type: str) -> None:
        """Record an error."""
        self._error_counts[error_type] = self._error_counts.get(error_type, 0) + 1

    def get_stats(self) -> Dict[str, Any]:
        """Get current metrics snapshot."""
        timing = {}
        for endpoint, samples in self._timing_samples.items():
            if samples:
                ordered = sorted(samples)
                timing[endpoint] = {
                    "count": len(samples),
                    "avg_ms": round(sum(samples) / len(samples), 2),
                    "max_ms": round(ordered[-1], 2),
                    "p50_ms": round(ordered[len(ordered) // 2], 2),
                }

        return {
            "requests": dict(self._request_counts),
            "errors": dict(self._error_counts),
            "timing": timing,
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._request_counts.clear()
        self._error_counts.clear()
        self._timing_samples.clear()


# Global metrics instance
metrics = MetricsCollector()

"""Structured logging for KubePulse.

Every record is a single JSON line on stderr.  The cluster id is bound
process-wide at startup, and each scan binds a short ``scan_id`` so all
lines emitted while it runs (fetch errors, queued alerts, restart storms)
can be correlated.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from itertools import count

import structlog

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_scan_ids = count(1)


def setup_logging(level: str = "info", cluster_id: str = "") -> None:
    """Configure structlog for JSON output to stderr at *level*."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_LEVELS.get(level.lower(), logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.clear_contextvars()
    if cluster_id:
        structlog.contextvars.bind_contextvars(cluster_id=cluster_id)


@contextmanager
def scan_context() -> Iterator[int]:
    """Bind a fresh ``scan_id`` to every log line emitted inside the block."""
    scan_id = next(_scan_ids)
    with structlog.contextvars.bound_contextvars(scan_id=scan_id):
        yield scan_id


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Logger bound with the emitting component's name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]

"""Central logging configuration utilities.

The library itself never installs handlers: code emits through `LoggingPort`
or module loggers, and the embedding application calls `configure_logging`
once to wire separate stdout/stderr sinks. Every record carries a correlation
id taken from `correlation_id_var`; the operation completer binds the job id
there while it waits, so all poll lines of one job can be grepped together.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
import sys
from typing import Iterator, Optional

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default="-"
)

DEFAULT_FORMAT = (
    "[%(asctime)s] %(levelname)s %(name)s %(correlation_id)s: %(message)s"
)


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    mapping = logging.getLevelNamesMapping()
    return mapping.get(key, logging.INFO)


@contextlib.contextmanager
def bind_correlation_id(value: str) -> Iterator[None]:
    """Temporarily set the correlation id for records emitted in this context."""
    token = correlation_id_var.set(value)
    try:
        yield
    finally:
        correlation_id_var.reset(token)


class _CorrelationIdFilter(logging.Filter):
    """Inject correlation id from contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - simple
        record.correlation_id = correlation_id_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno <= self.max_level


class _MinLevelFilter(logging.Filter):
    def __init__(self, min_level: int):
        super().__init__()
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno >= self.min_level


def _sink(stream, level_filter: logging.Filter, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.addFilter(level_filter)
    handler.addFilter(_CorrelationIdFilter())
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    quiet_http: bool = True,
) -> None:
    """Configure root logger with separate stdout/stderr sinks & correlation id.

    Notes
    -----
    * Existing root handlers are removed to avoid duplicate lines on re-configuration.
    * The `cloudjobs` logger follows `level` as well, overriding the level it
      was created with from settings.
    * `quiet_http` raises the aiohttp loggers to WARNING.
    """
    numeric_level = coerce_level(level)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for h in list(root.handlers):
        root.removeHandler(h)

    # DEBUG/INFO to stdout, WARNING+ to stderr
    root.addHandler(_sink(sys.stdout, _MaxLevelFilter(logging.INFO), formatter))
    root.addHandler(_sink(sys.stderr, _MinLevelFilter(logging.WARNING), formatter))

    logging.getLogger("cloudjobs").setLevel(numeric_level)
    if quiet_http:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logging.getLogger("cloudjobs").debug(
        "Logging configured level=%s quiet_http=%s", numeric_level, quiet_http
    )

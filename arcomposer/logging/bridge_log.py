"""Forward engine log records to the host as `log` messages."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from arcomposer.config.runtime_config import forward_logs_to_host

LogSink = Callable[[str, str], None]  # (message, level)


def host_level(levelno: int) -> str:
    """Map a logging level onto the host's three-level vocabulary."""
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    return "info"


class BridgeLogHandler(logging.Handler):
    """logging.Handler that posts formatted records through a sink callable.

    The sink usually appends an outbound LogMessage to the bridge outbox.
    """

    def __init__(self, sink: LogSink, level: int = logging.INFO):
        super().__init__(level=level)
        self._sink = sink
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            self._sink(message, host_level(record.levelno))
        except Exception:
            self.handleError(record)


def attach_bridge_logging(
    sink: LogSink,
    logger_name: str = "arcomposer",
    level: int = logging.INFO,
) -> Optional[BridgeLogHandler]:
    """Install a BridgeLogHandler on the package logger unless disabled by config."""
    if not forward_logs_to_host():
        return None
    handler = BridgeLogHandler(sink, level=level)
    target = logging.getLogger(logger_name)
    target.addHandler(handler)
    if target.level == logging.NOTSET or target.level > level:
        target.setLevel(level)
    return handler


def detach_bridge_logging(handler: Optional[BridgeLogHandler], logger_name: str = "arcomposer") -> None:
    if handler is not None:
        logging.getLogger(logger_name).removeHandler(handler)

"""
Structured connection events.

The connection core reports what it decided (attempt started, key-pair
configured or misconfigured, connect failed) to an event logger. The default
is a no-op; whether events are written, and where, never changes how a
connection is described or opened.
"""
from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol, runtime_checkable

CONNECTION_ATTEMPT_STARTED = "connection_attempt_started"
KEYPAIR_CONFIGURED = "keypair_configured"
KEYPAIR_MISCONFIGURED = "keypair_misconfigured"
CONNECTION_ESTABLISHED = "connection_established"
CONNECTION_FAILED = "connection_failed"

EVENT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def file_event_logger(log_path: str) -> logging.Logger:
    """Logger that writes only to the given event file."""
    logger = logging.getLogger(f"odbcdsn.events[{log_path}]")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if not logger.handlers:
        fh = logging.FileHandler(filename=log_path, encoding='utf-8')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(EVENT_FORMAT))
        logger.addHandler(fh)

    return logger


@runtime_checkable
class EventLogger(Protocol):

    def emit(self, name: str, context: Mapping[str, Any] | None = None) -> None:
        """Record one event; must not raise for well-formed input."""


class NullEventLogger:
    """Drops every event."""

    def emit(self, name: str, context: Mapping[str, Any] | None = None) -> None:
        return None


NULL_EVENT_LOGGER = NullEventLogger()


class LoggingEventLogger:
    """Writes events through stdlib logging, optionally into a dedicated file."""

    def __init__(self, log_path: str | None = None, logger: logging.Logger | None = None, level: int = logging.INFO):
        if logger is None:
            if log_path:
                logger = file_event_logger(log_path)
            else:
                logger = logging.getLogger("odbcdsn.events")
        self.logger = logger
        self.level = level

    def emit(self, name: str, context: Mapping[str, Any] | None = None) -> None:
        event = {
            "name": name,
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "context": dict(context or {}),
        }
        self.logger.log(self.level, f"{name} {json.dumps(event['context'], default=str, sort_keys=True)}",
                        extra={"event": event})


def event_logger_from_settings(settings) -> EventLogger:
    """Event logger for ConnectorSettings: no-op unless settings.debug is set."""
    if not settings.debug:
        return NULL_EVENT_LOGGER
    return LoggingEventLogger(log_path=settings.log_path)

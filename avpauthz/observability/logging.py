"""
Structured logging for avpauthz.

Everything the package logs goes through the ``avpauthz`` logger tree.
``setup_logging`` attaches one handler to the root of that tree, either with
JSON lines (``JSONFormatter``) or a plain text format. Decision audit events
are written by ``AuditLogger`` to ``avpauthz.audit`` and carry their fields
as record attributes, so they land under ``extra`` in JSON output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

from avpauthz.config import LoggingConfig


PACKAGE_LOGGER = "avpauthz"

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """
    Render each record as a single JSON object.

    Keys: ``timestamp`` (ISO 8601, UTC), ``level``, ``logger``, ``message``,
    ``service_name``, plus ``exception`` when the record carries exc_info and
    ``extra`` for any attributes passed through ``extra=``.
    """

    def __init__(self, service_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service_name": self.service_name,
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, default=str)


class AuditLogger:
    """
    One INFO event per authorization decision.

    Handlers are not configured here; events propagate to whatever
    ``setup_logging`` (or the host application) installed.
    """

    EVENT_TYPE = "AUTH_DECISION"

    def __init__(self, service_name: str, logger: Optional[logging.Logger] = None):
        self.service_name = service_name
        self.logger = logger or logging.getLogger(f"{PACKAGE_LOGGER}.audit")
        self.enabled = True

    def audit_decision(
        self,
        principal: str,
        action: str,
        resource: str,
        decision: str,
        duration: float,
        reason: str = "",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Record a decision.

        Args:
            principal: Principal reference, e.g. ``User::"bob"``
            action: Action reference
            resource: Resource reference
            decision: allow, deny or error
            duration: Seconds spent waiting for the decision
            reason: Determining policies or the error message
            context: Request-scoped fields such as the request id
        """
        if not self.enabled:
            return

        self.logger.info(
            "Authorization decision",
            extra={
                "event_type": self.EVENT_TYPE,
                "service_name": self.service_name,
                "principal": principal,
                "action": action,
                "resource": resource,
                "decision": decision,
                "duration": duration,
                "reason": reason,
                "context": context or {},
            },
        )


def setup_logging(
    service_name: str = "avpauthz",
    level: str = "INFO",
    json_format: bool = True,
    stream: Optional[IO[str]] = None,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure the ``avpauthz`` logger tree.

    Replaces any handlers installed by a previous call.

    Args:
        service_name: Name included in every JSON log line
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines if True, plain text otherwise
        stream: Output stream (stderr by default)
        config: Logging settings; overrides ``level`` and ``json_format``

    Returns:
        The configured package logger
    """
    if config is not None:
        level, json_format = config.level, config.json_format

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        JSONFormatter(service_name=service_name) if json_format
        else logging.Formatter(PLAIN_FORMAT)
    )

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger

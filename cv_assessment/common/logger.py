"""
Logging for the CV assessment service.

get_logger() returns an adapter that tags every record with the assessment
context it was created for (session_id, stage and, within a batch, the CV
item_id). The plain format renders that context as a
`[session:xxxxxxxx] [stage] [item]` prefix; the json format emits it as
separate fields so lines from one session can be filtered by a log
aggregator.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

CONTEXT_FIELDS = ("session_id", "stage", "item_id")


def context_prefix(record: logging.LogRecord) -> str:
    """Render the assessment context carried by record, or "" when it has none."""
    parts = []
    session_id = getattr(record, "session_id", None)
    if session_id:
        parts.append(f"[session:{session_id[:8]}]")
    for name in ("stage", "item_id"):
        value = getattr(record, name, None)
        if value:
            parts.append(f"[{value}]")
    return " ".join(parts)


class AssessmentLogger(logging.LoggerAdapter):
    """Logger bound to a session, a stage and optionally one CV item."""

    def __init__(
        self,
        logger: logging.Logger,
        session_id: Optional[str] = None,
        stage: Optional[str] = None,
        item_id: Optional[str] = None,
    ):
        super().__init__(logger, {"session_id": session_id, "stage": stage, "item_id": item_id})

    @property
    def session_id(self) -> Optional[str]:
        return self.extra["session_id"]

    @property
    def stage(self) -> Optional[str]:
        return self.extra["stage"]

    @property
    def item_id(self) -> Optional[str]:
        return self.extra["item_id"]

    def for_item(self, item_id: str) -> "AssessmentLogger":
        """Same context, narrowed to one CV."""
        return AssessmentLogger(self.logger, self.session_id, self.stage, item_id)

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


class ContextFormatter(logging.Formatter):
    """Plain text with the assessment context in front of the message."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = context_prefix(record)
        record.context = f"{prefix} " if prefix else ""
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context fields are present only when set."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                data[name] = value
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure global logging settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Log format ("simple" or "json")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ContextFormatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(context)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(
    name: str,
    session_id: Optional[str] = None,
    stage: Optional[str] = None,
) -> AssessmentLogger:
    """
    Get a logger bound to an assessment context.

    Args:
        name: Logger name (usually __name__)
        session_id: Optional assessment session identifier
        stage: Optional stage name (e.g., "extraction", "batch", "summary")
    """
    return AssessmentLogger(logging.getLogger(name), session_id, stage)

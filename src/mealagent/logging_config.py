"""Structured logging for planning, shopping list and pricing runs.

Log lines carry the request, plan and household they belong to. The API
middleware sets the request id and the week composer sets the plan and
household, so pricing logs emitted deep inside a request can be traced back
to the week that caused them.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mealagent.config import Settings

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
plan_id_ctx: ContextVar[str | None] = ContextVar("plan_id", default=None)
household_id_ctx: ContextVar[str | None] = ContextVar("household_id", default=None)

# name -> (variable, label in text logs, max chars shown in text logs)
_CONTEXT_FIELDS: dict[str, tuple[ContextVar, str, int | None]] = {
    "request_id": (request_id_ctx, "req", 8),
    "plan_id": (plan_id_ctx, "plan", None),
    "household_id": (household_id_ctx, "household", None),
}

# Third-party loggers that are too chatty at the application level
_QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def _current_context() -> dict[str, str]:
    return {name: value for name, (var, _, _) in _CONTEXT_FIELDS.items() if (value := var.get())}


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per line, for log shipping in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_current_context(),
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry["location"] = f"{record.filename}:{record.lineno}"
        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Readable single-line format for local development."""

    def format(self, record: logging.LogRecord) -> str:
        parts = []
        for name, value in _current_context().items():
            _, label, width = _CONTEXT_FIELDS[name]
            parts.append(f"{label}={value[:width] if width else value}")
        context = f" [{', '.join(parts)}]" if parts else ""

        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        line = f"{timestamp} | {record.levelname:<8} | {record.name}{context} | {record.getMessage()}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """Adapter that attaches the active plan context to every record."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **_current_context()}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger for the given module name."""
    return ContextLogger(logging.getLogger(name), {})


def configure_logging(settings: "Settings", json_format: bool | None = None) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        settings: Supplies log_level, log_format and environment.
        json_format: Force JSON (True) or text (False). By default the
            log_format setting decides, and when that is empty production
            environments log JSON.
    """
    if json_format is None:
        if settings.log_format:
            json_format = settings.log_format.lower() == "json"
        else:
            json_format = settings.environment.lower() == "production"

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter() if json_format else ContextualFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    logging.getLogger("mealagent").setLevel(level)
    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    get_logger(__name__).info(
        f"Logging configured: level={logging.getLevelName(level)}, format={'json' if json_format else 'text'}"
    )


class LoggingContext:
    """
    Context manager that tags log lines with a request, plan or household.

    Only the values passed are set. Values set by an outer context stay
    visible, and everything is restored on exit.
    """

    def __init__(
        self,
        request_id: str | None = None,
        plan_id: str | None = None,
        household_id: str | None = None,
    ):
        self._values = {"request_id": request_id, "plan_id": plan_id, "household_id": household_id}
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LoggingContext":
        for name, value in self._values.items():
            if value is not None:
                self._tokens[name] = _CONTEXT_FIELDS[name][0].set(value)
        return self

    def __exit__(self, *args: Any) -> None:
        for name, token in self._tokens.items():
            _CONTEXT_FIELDS[name][0].reset(token)
        self._tokens.clear()

"""structlog setup for processes that use the catalog client.

Call ``configure_logging()`` once at startup. Development gets the coloured
console renderer; every other environment gets one JSON object per line,
optionally mirrored to ``LOG_FILE``.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog

from pod_catalog.config import settings

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_SECRET_KEYS = frozenset({"authorization", "api_token", "printify_api_token", "token"})


class _TeeWriter:
    """File-like sink that mirrors every log line to stdout and a file.

    The file side is best effort: it is dropped on the first OS error and
    stdout keeps receiving lines.
    """

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self._file: IO[str] | None = None
        try:
            self._file = open(file_path, "a", encoding="utf-8")  # noqa: SIM115
        except OSError as exc:
            self._disable(f"Could not open log file {file_path!r}: {exc}")

    def _disable(self, reason: str) -> None:
        # structlog is not usable from inside its own sink
        print(f"WARNING: {reason}. Logging to stdout only.", file=sys.stderr)
        self._file = None

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        if self._file is None:
            return
        try:
            self._file.write(data)
            self._file.flush()
        except (OSError, ValueError) as exc:
            self._disable(f"Log file write failed: {exc}")

    def flush(self) -> None:
        sys.stdout.flush()
        if self._file is None:
            return
        try:
            self._file.flush()
        except (OSError, ValueError) as exc:
            self._disable(f"Log file flush failed: {exc}")


def redact_secrets(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credential-looking keys and any occurrence of the API token."""
    token = settings.printify_api_token
    for key, value in event_dict.items():
        if key.lower() in _SECRET_KEYS:
            event_dict[key] = "***"
        elif token and isinstance(value, str) and token in value:
            event_dict[key] = value.replace(token, "***")
    return event_dict


def resolve_log_level() -> int:
    """PRINTIFY_DEBUG wins over LOG_LEVEL; unknown names mean INFO."""
    if settings.printify_debug:
        return logging.DEBUG
    return _LEVELS.get(settings.log_level.upper(), logging.INFO)


def configure_logging() -> None:
    development = settings.environment == "development"
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]
    if development:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    sink: Any = _TeeWriter(settings.log_file) if settings.log_file else None
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sink),
        cache_logger_on_first_use=True,
    )

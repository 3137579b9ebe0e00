"""Tagged log lines for the launcher bot."""

from __future__ import annotations

import logging
from typing import Any

__all__ = ["LoggerHelper"]

_LOG_KWARGS = ("exc_info", "stack_info", "extra")


class LoggerHelper:
    """Write ``<emoji> [Event] message | key=value`` lines.

    Fields passed to :meth:`bind` are appended to every line, after the
    per-call fields.
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        self._logger = logger
        self._context = context

    def bind(self, **context: Any) -> "LoggerHelper":
        return LoggerHelper(self._logger, **{**self._context, **context})

    def _emit(self, level: int, prefix: str, event: str, message: str | None, fields: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        log_kwargs = {key: fields.pop(key) for key in _LOG_KWARGS if key in fields}
        pairs = {**fields, **{k: v for k, v in self._context.items() if k not in fields}}

        parts = [message] if message else []
        if pairs:
            parts.append(", ".join(f"{key}={value}" for key, value in pairs.items()))
        self._logger.log(level, "%s [%s] %s", prefix, event, " | ".join(parts) or "-", **log_kwargs)

    def info(self, event: str, message: str | None = None, **fields: Any) -> None:
        self._emit(logging.INFO, "🎯", event, message, fields)

    def warn(self, event: str, message: str | None = None, **fields: Any) -> None:
        self._emit(logging.WARNING, "⚠️", event, message, fields)

    def error(self, event: str, message: str | None = None, **fields: Any) -> None:
        self._emit(logging.ERROR, "❌", event, message, fields)

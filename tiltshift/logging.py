"""Logging utilities for tiltshift runs."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any

_LOGGER_NAME = "tiltshift"
_LEVEL_ENV = "TILTSHIFT_LOG_LEVEL"


class RuleLogger(logging.LoggerAdapter):
    """Prefixes messages with the file and subject a rule is evaluated for.

    The values are also attached to each record as ``file_path`` and
    ``subject`` so file sinks and custom formatters can use them.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra: Mapping[str, Any] = self.extra or {}
        kwargs["extra"] = {**extra, **kwargs.get("extra", {})}
        return f"{extra.get('file_path')} [{extra.get('subject')}]: {msg}", kwargs


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the tiltshift hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def rule_logger(logger: logging.Logger, file_path: str, subject: str) -> RuleLogger:
    """Wrap ``logger`` for messages about one (file, subject) evaluation."""
    return RuleLogger(logger, {"file_path": file_path, "subject": subject})


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the tiltshift logger with console output and an optional file sink.

    ``TILTSHIFT_LOG_LEVEL`` (e.g. ``WARNING``) overrides the level chosen by
    ``verbose``, which lets CI jobs quiet or expand output without new flags.
    """
    level = _resolve_level(verbose)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI or service start-ups do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[tiltshift] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def _resolve_level(verbose: bool) -> int:
    override = os.environ.get(_LEVEL_ENV, "").strip().upper()
    if override:
        level = logging.getLevelName(override)
        if isinstance(level, int):
            return level
        raise ValueError(f"{_LEVEL_ENV} must be a logging level name, got '{override}'")
    return logging.DEBUG if verbose else logging.INFO


__all__ = ["RuleLogger", "configure_logging", "get_logger", "rule_logger"]

"""Logging utilities for owcs analysis runs."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "owcs"

CONSOLE_FORMAT = "[owcs] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the owcs hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class DiagnosticFormatter(logging.Formatter):
    """Formatter that renders records carrying a ``diagnostic`` as ``code: message (file:line)``.

    :class:`owcs.diagnostics.DiagnosticCollector` attaches the structured
    record through ``extra``; plain log calls format unchanged.
    """

    def format(self, record: logging.LogRecord) -> str:
        diagnostic = getattr(record, "diagnostic", None)
        if diagnostic is not None:
            record = logging.makeLogRecord({**record.__dict__, "msg": str(diagnostic), "args": ()})
        return super().format(record)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send owcs logs to stderr and, when ``log_file`` is given, to a file as well."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(DiagnosticFormatter(CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(DiagnosticFormatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["CONSOLE_FORMAT", "DiagnosticFormatter", "FILE_FORMAT", "configure_logging", "get_logger"]

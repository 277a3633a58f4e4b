"""Tests for owcs.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from owcs.diagnostics import DiagnosticCollector
from owcs.logging import CONSOLE_FORMAT, DiagnosticFormatter, configure_logging, get_logger
from owcs.models import Diagnostic


def _record(message: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("owcs.test", logging.WARNING, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_renders_diagnostic_code_and_location() -> None:
    formatter = DiagnosticFormatter(CONSOLE_FORMAT)
    diagnostic = Diagnostic(
        code="resolution.not-found",
        message="No declaration found for Ghost",
        file="src/main.ts",
        line=4,
    )
    rendered = formatter.format(_record(diagnostic.message, diagnostic=diagnostic))
    assert rendered == "[owcs] WARNING resolution.not-found: No declaration found for Ghost (src/main.ts:4)"


def test_formatter_leaves_plain_records_alone() -> None:
    formatter = DiagnosticFormatter(CONSOLE_FORMAT)
    assert formatter.format(_record("Scanning 3 files")) == "[owcs] WARNING Scanning 3 files"


def test_configure_logging_writes_diagnostics_to_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "owcs.log"
    logger = configure_logging(verbose=True, log_file=log_file)
    try:
        DiagnosticCollector().warn(
            "discovery.non-literal-tag",
            "Tag name 'tagFor()' is not a string literal",
            file="src/main.ts",
            line=7,
        )
        get_logger("program").debug("Parsed %d files", 2)
        for handler in logger.handlers:
            handler.flush()
        content = log_file.read_text(encoding="utf-8")
    finally:
        configure_logging()

    assert logger.level == logging.DEBUG
    assert "owcs.diagnostics: discovery.non-literal-tag: Tag name 'tagFor()' is not a string literal (src/main.ts:7)" in content
    assert "owcs.program: Parsed 2 files" in content

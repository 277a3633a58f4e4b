"""Collection of advisory diagnostics emitted during analysis."""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from .logging import get_logger
from .models import Diagnostic


class DiagnosticCollector:
    """Accumulates structured warnings and mirrors them to the owcs logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or get_logger("diagnostics")
        self._records: List[Diagnostic] = []

    def warn(
        self,
        code: str,
        message: str,
        *,
        file: Optional[str] = None,
        symbol: Optional[str] = None,
        line: Optional[int] = None,
    ) -> Diagnostic:
        record = Diagnostic(code=code, message=message, file=file, symbol=symbol, line=line)
        self._records.append(record)
        self._logger.warning("%s", message, extra={"diagnostic": record})
        return record

    @property
    def records(self) -> List[Diagnostic]:
        return list(self._records)

    def codes(self) -> List[str]:
        return [record.code for record in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._records))


__all__ = ["DiagnosticCollector"]

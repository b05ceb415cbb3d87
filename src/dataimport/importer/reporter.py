"""Sinks for tolerated import errors."""

import csv
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from dataimport.importer.errors import ImportErrorRecord

logger = logging.getLogger(__name__)

REPORT_FIELDS = ["table", "row_index", "column_name", "raw_value", "error_type", "message"]


class ErrorReporter(ABC):
    """Receives every tolerated error exactly once.

    Implementations must not raise. Once ``max_errors`` records have been
    reported, ``stop_requested`` turns True and the importer stops issuing
    rows.
    """

    def __init__(self, max_errors: int | None = None):
        self.max_errors = max_errors
        self.count = 0

    def report(self, record: ImportErrorRecord) -> None:
        self.count += 1
        self.handle(record)

    @abstractmethod
    def handle(self, record: ImportErrorRecord) -> None:
        """Handle one error record."""

    @property
    def stop_requested(self) -> bool:
        return self.max_errors is not None and self.count >= self.max_errors


class CollectingReporter(ErrorReporter):
    """Keeps records in memory."""

    def __init__(self, max_errors: int | None = None):
        super().__init__(max_errors)
        self.records: list[ImportErrorRecord] = []

    def handle(self, record: ImportErrorRecord) -> None:
        self.records.append(record)


class LoggingReporter(ErrorReporter):
    def __init__(self, max_errors: int | None = None, log: logging.Logger | None = None):
        super().__init__(max_errors)
        self._log = log or logger

    def handle(self, record: ImportErrorRecord) -> None:
        if record.column_name is None:
            self._log.warning("%s row %d rejected: %s", record.table, record.row_index, record.message)
        else:
            self._log.warning(
                "%s row %d column %s: %s",
                record.table,
                record.row_index,
                record.column_name,
                record.message,
            )


class CsvReportWriter(ErrorReporter):
    """Lazy-open CSV writer for error records."""

    def __init__(self, path: str | Path, max_errors: int | None = None):
        super().__init__(max_errors)
        self._path = Path(path)
        self._fh = None
        self._writer = None

    def handle(self, record: ImportErrorRecord) -> None:
        if self._fh is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self._path, "w", newline="", encoding="utf-8")
            self._writer = csv.DictWriter(self._fh, fieldnames=REPORT_FIELDS)
            self._writer.writeheader()
        self._writer.writerow(
            {
                "table": record.table,
                "row_index": record.row_index,
                "column_name": record.column_name or "",
                "raw_value": "" if record.raw_value is None else record.raw_value,
                "error_type": record.error_type,
                "message": record.message,
            }
        )
        self._fh.flush()

    def close(self) -> None:
        if self._fh:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "CsvReportWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

"""Row-at-a-time INSERT driver with abort-or-tolerate error policy."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from dataimport.database.service import DatabaseService, StatementError
from dataimport.importer.columns import get_column_infos, remove_null_column_values, remove_nulls
from dataimport.importer.context import InsertContext
from dataimport.importer.converter import convert
from dataimport.importer.errors import (
    ConversionError,
    DataImportError,
    ImportErrorRecord,
    InsertExecutionError,
)
from dataimport.importer.formats import DataFormat
from dataimport.importer.reporter import ErrorReporter
from dataimport.importer.statement import build_insert_sql

logger = logging.getLogger(__name__)

RawRow = Sequence[str | None]


@dataclass
class ImportSummary:
    table: str
    rows_processed: int = 0
    rows_failed: int = 0
    rows_inserted: int = 0
    stopped: bool = False


class TableImporter:
    """Imports raw text rows into one table.

    Columns are resolved and the INSERT is built once, on construction.
    ``insert_rows`` may be called once per caller transaction; the row index
    keeps counting across calls so it always matches the row's position in
    the source.

    With ``abort_on_error`` a ConversionError or InsertExecutionError is
    raised on the first bad row. Otherwise a bad value is bound as NULL, a
    rejected row is skipped, and each error goes to ``reporter``.
    ColumnNotFoundError and UnsupportedTypeError are always raised.
    """

    def __init__(
        self,
        service: DatabaseService,
        table: str,
        column_names: Sequence[str],
        data_format: DataFormat | None = None,
        abort_on_error: bool = False,
        reporter: ErrorReporter | None = None,
        tolerate_missing_columns: bool = False,
    ):
        self.service = service
        self.table = table
        self.data_format = data_format or DataFormat()
        self.abort_on_error = abort_on_error
        self.reporter = reporter

        self._raw_columns = get_column_infos(service, table, column_names, tolerate_missing_columns)
        self.columns = remove_nulls(self._raw_columns)
        if self.columns is not self._raw_columns:
            missing = [n for n, c in zip(column_names, self._raw_columns) if c is None]
            logger.warning("Skipping columns not in %s: %s", table, ", ".join(missing))
        if not self.columns:
            raise DataImportError(f"No importable columns for table {table!r}")

        self.sql = build_insert_sql(
            table, self.columns, service.identifier_quote(), service.placeholder
        )
        logger.debug("Insert statement for %s: %s", table, self.sql)

        self.context = InsertContext(self.data_format, table)
        self.summary = ImportSummary(table)

    def insert_rows(self, rows: Iterable[RawRow]) -> ImportSummary:
        if self.summary.stopped:
            return self.summary
        for values in rows:
            self._insert_row(values)
            if self.reporter is not None and self.reporter.stop_requested:
                logger.warning(
                    "Reporter requested stop after row %d of %s",
                    self.context.row_index - 1,
                    self.table,
                )
                self.summary.stopped = True
                break
        return self.summary

    def _insert_row(self, values: RawRow) -> None:
        values = remove_null_column_values(self._raw_columns, self.columns, values)
        try:
            with self.context.row() as row_index:
                params, records = self._bind(values, row_index)
                failure = self._execute(params, row_index)
                if failure is None:
                    self.summary.rows_inserted += 1
                else:
                    records.append(failure)
                if records:
                    self.summary.rows_failed += 1
                    self._report(records)
        finally:
            self.summary.rows_processed = self.context.row_index

    def _bind(self, values: RawRow, row_index: int) -> tuple[list[Any], list[ImportErrorRecord]]:
        params: list[Any] = []
        records: list[ImportErrorRecord] = []
        for i, column in enumerate(self.columns):
            raw_value = values[i] if i < len(values) else None
            try:
                param = convert(
                    column.sql_type,
                    raw_value,
                    self.data_format,
                    context=self.context,
                    lob_factory=self.service,
                )
            except ConversionError as e:
                e.locate(self.table, row_index, column.name)
                if self.abort_on_error:
                    raise
                param = None
                records.append(ImportErrorRecord.from_error(e))
            params.append(param)
        return params, records

    def _execute(self, params: list[Any], row_index: int) -> ImportErrorRecord | None:
        try:
            self.service.execute_insert(self.sql, params)
        except StatementError as e:
            error = InsertExecutionError(self.table, row_index, e.cause)
            if self.abort_on_error:
                raise error from e
            return ImportErrorRecord.from_error(error)
        return None

    def _report(self, records: list[ImportErrorRecord]) -> None:
        if self.reporter is None:
            return
        for record in records:
            try:
                self.reporter.report(record)
            except Exception:
                logger.exception(
                    "Error reporter failed on %s row %d", record.table, record.row_index
                )

    def close(self) -> None:
        self.context.close()

    def __enter__(self) -> "TableImporter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def import_rows(
    service: DatabaseService,
    table: str,
    column_names: Sequence[str],
    rows: Iterable[RawRow],
    data_format: DataFormat | None = None,
    abort_on_error: bool = False,
    reporter: ErrorReporter | None = None,
    tolerate_missing_columns: bool = False,
) -> ImportSummary:
    """Insert every row of ``rows`` into ``table``.

    Must run inside ``service.transaction()``; commit boundaries are the
    caller's decision.
    """
    with TableImporter(
        service,
        table,
        column_names,
        data_format=data_format,
        abort_on_error=abort_on_error,
        reporter=reporter,
        tolerate_missing_columns=tolerate_missing_columns,
    ) as importer:
        summary = importer.insert_rows(rows)

    logger.info(
        "Imported %s: %d rows processed, %d inserted, %d with errors",
        table,
        summary.rows_processed,
        summary.rows_inserted,
        summary.rows_failed,
    )
    return summary

"""CLI entry point for importing a CSV file into an existing table.

Usage:
    python -m scripts.import_csv --db-url sqlite:///data.db --file data.csv --table people \
        [--columns id name] [--batch-size 1000] [--abort-on-error] [--report errors.csv]
"""

import argparse
import csv
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Iterator

from dataimport import create_service
from dataimport.importer import (
    BinaryFormat,
    CsvReportWriter,
    DataFormat,
    DataImportError,
    ErrorReporter,
    LoggingReporter,
    TableImporter,
)
from dataimport.importer.formats import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_LOCALE,
    DEFAULT_TIME_FORMAT,
    DEFAULT_TIMESTAMP_FORMAT,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DB_URL_ENV = "DATAIMPORT_DB_URL"


def read_header(file_path: str | Path) -> list[str]:
    with open(file_path, newline="", encoding="utf-8") as f:
        return next(csv.reader(f), [])


def read_rows(file_path: str | Path, empty_as_null: bool = False) -> Iterator[list[str | None]]:
    """Yield the data rows of a CSV file, skipping the header."""
    with open(file_path, newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        next(reader, None)
        for row in reader:
            if empty_as_null:
                yield [cell if cell != "" else None for cell in row]
            else:
                yield row


def batched(rows: Iterable, size: int) -> Iterator[list]:
    """Yield lists of at most ``size`` rows without loading the whole file."""
    batch: list = []
    for row in rows:
        batch.append(row)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import a CSV file into a database table")
    parser.add_argument(
        "--db-url",
        default=os.environ.get(DB_URL_ENV),
        help=f"Database URL (sqlite:/// or postgresql://); defaults to ${DB_URL_ENV}",
    )
    parser.add_argument("--file", required=True, help="Path to CSV file")
    parser.add_argument("--table", required=True, help="Destination table")
    parser.add_argument("--columns", nargs="+", help="Column names (default: CSV header)")
    parser.add_argument("--batch-size", type=int, default=1000, help="Rows per transaction")
    parser.add_argument("--abort-on-error", action="store_true", help="Stop on the first bad row")
    parser.add_argument(
        "--tolerate-missing-columns",
        action="store_true",
        help="Skip columns the table does not have instead of failing",
    )
    parser.add_argument("--max-errors", type=int, help="Stop after this many reported errors")
    parser.add_argument("--report", help="Write tolerated errors to this CSV file")
    parser.add_argument("--empty-as-null", action="store_true", help="Treat empty cells as NULL")
    parser.add_argument("--locale", default=DEFAULT_LOCALE, help="Number parsing locale")
    parser.add_argument("--date-format", default=DEFAULT_DATE_FORMAT)
    parser.add_argument("--time-format", default=DEFAULT_TIME_FORMAT)
    parser.add_argument("--timestamp-format", default=DEFAULT_TIMESTAMP_FORMAT)
    parser.add_argument(
        "--binary-format",
        choices=[f.value for f in BinaryFormat],
        default=BinaryFormat.HEX.value,
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.db_url:
        parser.error(f"--db-url is required when {DB_URL_ENV} is not set")

    try:
        data_format = DataFormat(
            locale=args.locale,
            date_format=args.date_format,
            time_format=args.time_format,
            timestamp_format=args.timestamp_format,
            binary_format=BinaryFormat(args.binary_format),
        )
    except ValueError as e:
        parser.error(str(e))
    columns = args.columns or read_header(args.file)
    reporter: ErrorReporter
    if args.report:
        reporter = CsvReportWriter(args.report, args.max_errors)
    else:
        reporter = LoggingReporter(args.max_errors)

    service = create_service(args.db_url)
    service.connect()
    try:
        with service.transaction():
            importer = TableImporter(
                service,
                args.table,
                columns,
                data_format=data_format,
                abort_on_error=args.abort_on_error,
                reporter=reporter,
                tolerate_missing_columns=args.tolerate_missing_columns,
            )
        with importer:
            rows = read_rows(args.file, args.empty_as_null)
            for i, batch in enumerate(batched(rows, args.batch_size)):
                # Each batch is an atomic transaction
                with service.transaction():
                    summary = importer.insert_rows(batch)
                logger.info("Batch %d: %d rows processed so far", i + 1, summary.rows_processed)
                if summary.stopped:
                    break
    except DataImportError as e:
        logger.error("Import aborted: %s", e)
        return 1
    finally:
        if isinstance(reporter, CsvReportWriter):
            reporter.close()
        service.close()

    summary = importer.summary
    logger.info(
        "Done. %d rows processed, %d inserted, %d with errors%s",
        summary.rows_processed,
        summary.rows_inserted,
        summary.rows_failed,
        " (stopped early)" if summary.stopped else "",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

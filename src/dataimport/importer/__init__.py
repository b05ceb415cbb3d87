"""Text row import: value conversion, column resolution and the row driver."""

from dataimport.importer.columns import (
    get_column_infos,
    remove_null_column_values,
    remove_nulls,
    resolve_columns,
)
from dataimport.importer.context import InsertContext
from dataimport.importer.converter import SUPPORTED_SQL_TYPES, UNSUPPORTED_SQL_TYPES, convert
from dataimport.importer.driver import ImportSummary, TableImporter, import_rows
from dataimport.importer.errors import (
    ColumnNotFoundError,
    ConversionError,
    DataImportError,
    ImportErrorRecord,
    InsertExecutionError,
    UnsupportedTypeError,
)
from dataimport.importer.formats import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_TIME_FORMAT,
    DEFAULT_TIMESTAMP_FORMAT,
    BinaryFormat,
    DataFormat,
)
from dataimport.importer.reporter import (
    CollectingReporter,
    CsvReportWriter,
    ErrorReporter,
    LoggingReporter,
)
from dataimport.importer.statement import build_insert_sql

__all__ = [
    "convert",
    "SUPPORTED_SQL_TYPES",
    "UNSUPPORTED_SQL_TYPES",
    "import_rows",
    "TableImporter",
    "ImportSummary",
    "InsertContext",
    "resolve_columns",
    "get_column_infos",
    "remove_nulls",
    "remove_null_column_values",
    "build_insert_sql",
    "DataFormat",
    "BinaryFormat",
    "DEFAULT_DATE_FORMAT",
    "DEFAULT_TIME_FORMAT",
    "DEFAULT_TIMESTAMP_FORMAT",
    "DataImportError",
    "ConversionError",
    "UnsupportedTypeError",
    "ColumnNotFoundError",
    "InsertExecutionError",
    "ImportErrorRecord",
    "ErrorReporter",
    "CollectingReporter",
    "LoggingReporter",
    "CsvReportWriter",
]

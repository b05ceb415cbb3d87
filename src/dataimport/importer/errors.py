"""Import error taxonomy and the record handed to error reporters."""

from dataclasses import dataclass


class DataImportError(Exception):
    """Base class for errors raised while importing rows."""


class ConversionError(DataImportError):
    """A text value could not be converted to its column's SQL type.

    The converter raises it without location; the driver fills in table,
    row index and column through locate().
    """

    def __init__(self, sql_type: int, raw_value: str | None, cause: Exception | str):
        self.sql_type = sql_type
        self.raw_value = raw_value
        self.cause = cause
        self.table: str | None = None
        self.row_index: int | None = None
        self.column_name: str | None = None
        super().__init__(raw_value, cause)

    def locate(self, table: str, row_index: int, column_name: str) -> "ConversionError":
        self.table = table
        self.row_index = row_index
        self.column_name = column_name
        return self

    def __str__(self) -> str:
        where = ""
        if self.table is not None:
            where = f"{self.table}[{self.row_index}].{self.column_name}: "
        return f"{where}cannot convert {self.raw_value!r} to SQL type {self.sql_type}: {self.cause}"


class UnsupportedTypeError(DataImportError):
    """The column's SQL type code has no conversion."""

    def __init__(self, sql_type: int):
        self.sql_type = sql_type
        super().__init__(f"Unsupported SQL type: {sql_type}")


class ColumnNotFoundError(DataImportError):
    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(f"Column {column!r} not found in table {table!r}")


class InsertExecutionError(DataImportError):
    """The database rejected a row's INSERT."""

    def __init__(self, table: str, row_index: int, cause: Exception):
        self.table = table
        self.row_index = row_index
        self.cause = cause
        super().__init__(f"Insert into {table!r} failed at row {row_index}: {cause}")


@dataclass(frozen=True)
class ImportErrorRecord:
    """One tolerated error, with enough context to locate the source value."""

    table: str
    row_index: int
    cause: Exception
    column_name: str | None = None
    raw_value: str | None = None

    @classmethod
    def from_error(cls, error: ConversionError | InsertExecutionError) -> "ImportErrorRecord":
        return cls(
            table=error.table,
            row_index=error.row_index,
            cause=error,
            column_name=getattr(error, "column_name", None),
            raw_value=getattr(error, "raw_value", None),
        )

    @property
    def error_type(self) -> str:
        return type(self.cause).__name__

    @property
    def message(self) -> str:
        return str(self.cause)

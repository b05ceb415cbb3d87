"""Abstract DatabaseService interface."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from dataimport.database.lob import LobFactory
from dataimport.database.types import ColumnInfo, Params, ParamsList


class StatementError(Exception):
    """Raised when the database rejects a statement (constraint, type, ...)."""

    def __init__(self, sql: str, cause: Exception):
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.sql = sql
        self.cause = cause


class DatabaseService(LobFactory, ABC):
    """Database-agnostic interface for all DB operations.

    Design principles:
    - Stateless: no mutable state beyond the connection pool
    - Thread-safe: each transaction() acquires its own connection
    - DB-agnostic: callers program against this ABC, never a concrete backend
    """

    #: Parameter marker used in generated statements.
    placeholder = "?"

    @abstractmethod
    def connect(self) -> None:
        """Initialize the connection pool."""

    @abstractmethod
    def close(self) -> None:
        """Close all connections and release resources."""

    @abstractmethod
    def execute(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        """Execute a single SQL statement and return rows as dicts."""

    @abstractmethod
    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        """Execute a SQL statement for each parameter set."""

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Context manager: acquires a connection, commits on success, rolls back on error."""

    @abstractmethod
    def execute_ddl(self, sql: str) -> None:
        """Execute DDL statements (CREATE TABLE, CREATE INDEX, etc.)."""

    @abstractmethod
    def get_columns(self, table: str) -> list[ColumnInfo]:
        """Return the table's columns in declaration order."""

    @abstractmethod
    def identifier_quote(self) -> str:
        """Return the character used to quote identifiers."""

    @abstractmethod
    def execute_insert(self, sql: str, params: Sequence[Any]) -> int:
        """Execute one parameterized INSERT and return the affected row count.

        Typed parameters (Decimal, date/time, bytes, large-object handles)
        are adapted to what the driver accepts. Raises StatementError when
        the database rejects the row.
        """

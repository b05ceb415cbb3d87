"""SQLite implementation of DatabaseService."""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime, time
from decimal import Decimal
from queue import Empty, Queue
from typing import Any, Iterator, Sequence

from dataimport.database.lob import LargeObject
from dataimport.database.service import DatabaseService, StatementError
from dataimport.database.types import ColumnInfo, Params, ParamsList, SqlType, sql_type_from_name


def adapt_parameter(value: Any) -> Any:
    """Turn a typed parameter into a value sqlite3 can bind."""
    if isinstance(value, LargeObject):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, bool):
        return int(value)
    # datetime is a date subclass, check it first
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return value


def sqlite_column_type(declared: str | None) -> SqlType:
    """Resolve a declared SQLite column type.

    Well-known names map directly. Anything else falls back to SQLite's
    column affinity rules, checked in order: INT, then CHAR/CLOB/TEXT, then
    BLOB or no type at all, then REAL/FLOA/DOUB, otherwise NUMERIC.
    """
    sql_type = sql_type_from_name(declared)
    if sql_type is not SqlType.OTHER:
        return sql_type
    name = (declared or "").upper()
    if "INT" in name:
        # INTEGER affinity stores up to 8 bytes
        return SqlType.BIGINT
    if "CHAR" in name or "CLOB" in name or "TEXT" in name:
        return SqlType.VARCHAR
    if "BLOB" in name:
        return SqlType.LONGVARBINARY
    if not name.strip():
        # typeless columns store values as given
        return SqlType.VARCHAR
    if "REAL" in name or "FLOA" in name or "DOUB" in name:
        return SqlType.DOUBLE
    return SqlType.NUMERIC


class SQLiteDatabaseService(DatabaseService):
    """SQLite backend using stdlib sqlite3.

    Thread-safe via a connection pool (Queue). Each transaction() call
    acquires a dedicated connection and returns it on exit.
    """

    def __init__(self, db_path: str, pool_size: int = 4):
        self._db_path = db_path
        self._pool_size = pool_size
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._local = threading.local()

    def connect(self) -> None:
        for _ in range(self._pool_size):
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            self._pool.put(conn)

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self) -> sqlite3.Connection:
        return self._pool.get(timeout=30)

    def _release(self, conn: sqlite3.Connection) -> None:
        self._pool.put(conn)

    def _get_conn(self) -> sqlite3.Connection:
        """Get the connection bound to the current transaction."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        raise RuntimeError(
            "No active transaction. Wrap calls in a `with service.transaction():` block."
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._acquire()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            self._release(conn)

    def execute(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        conn = self._get_conn()
        cursor = conn.execute(sql, params or ())
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        conn.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            conn.executescript(sql)
            conn.commit()
        finally:
            self._release(conn)

    def get_columns(self, table: str) -> list[ColumnInfo]:
        quote = self.identifier_quote()
        quoted = quote + table.replace(quote, quote * 2) + quote
        rows = self.execute(f"PRAGMA table_info({quoted})")
        return [
            ColumnInfo(row["name"], sqlite_column_type(row["type"]), row["type"])
            for row in rows
        ]

    def identifier_quote(self) -> str:
        return '"'

    def execute_insert(self, sql: str, params: Sequence[Any]) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(sql, [adapt_parameter(p) for p in params])
        except sqlite3.DatabaseError as e:
            raise StatementError(sql, e) from e
        return cursor.rowcount

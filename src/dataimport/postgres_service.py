"""PostgreSQL implementation of DatabaseService."""

import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Any, Iterator, Sequence

import psycopg2
import psycopg2.extras

from dataimport.database.lob import Blob, LargeObject
from dataimport.database.service import DatabaseService, StatementError
from dataimport.database.types import ColumnInfo, Params, ParamsList, sql_type_from_name

COLUMNS_SQL = """
SELECT column_name, data_type
FROM information_schema.columns
WHERE table_schema = current_schema() AND table_name = %s
ORDER BY ordinal_position
"""


def adapt_parameter(value: Any) -> Any:
    """Turn a typed parameter into a value psycopg2 can bind."""
    if isinstance(value, Blob):
        return psycopg2.Binary(value.value)
    if isinstance(value, LargeObject):
        return value.value
    if isinstance(value, bytes):
        return psycopg2.Binary(value)
    return value


class PostgresDatabaseService(DatabaseService):
    """PostgreSQL backend using psycopg2.

    Thread-safe via a connection pool (Queue). Each transaction() call
    acquires a dedicated connection and returns it on exit.
    """

    placeholder = "%s"

    def __init__(self, dsn: str, pool_size: int = 4):
        self._dsn = dsn
        self._pool_size = pool_size
        self._pool: Queue = Queue(maxsize=pool_size)
        self._local = threading.local()

    def connect(self) -> None:
        for _ in range(self._pool_size):
            conn = psycopg2.connect(self._dsn)
            conn.autocommit = False
            self._pool.put(conn)

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self):
        return self._pool.get(timeout=30)

    def _release(self, conn) -> None:
        self._pool.put(conn)

    def _get_conn(self):
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
        with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            cur.execute(sql, params or ())
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        with conn.cursor() as cur:
            cur.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            with conn.cursor() as cur:
                for statement in sql.split(";"):
                    statement = statement.strip()
                    if statement:
                        cur.execute(statement)
            conn.commit()
        finally:
            self._release(conn)

    def get_columns(self, table: str) -> list[ColumnInfo]:
        rows = self.execute(COLUMNS_SQL, (table,))
        return [
            ColumnInfo(row["column_name"], sql_type_from_name(row["data_type"]), row["data_type"])
            for row in rows
        ]

    def identifier_quote(self) -> str:
        return '"'

    def execute_insert(self, sql: str, params: Sequence[Any]) -> int:
        # A failed statement aborts the whole Postgres transaction; the
        # savepoint confines the damage to this row.
        conn = self._get_conn()
        with conn.cursor() as cur:
            cur.execute("SAVEPOINT dataimport_row")
            try:
                cur.execute(sql, [adapt_parameter(p) for p in params])
            except psycopg2.DatabaseError as e:
                cur.execute("ROLLBACK TO SAVEPOINT dataimport_row")
                raise StatementError(sql, e) from e
            count = cur.rowcount
            cur.execute("RELEASE SAVEPOINT dataimport_row")
        return count

"""INSERT statement text for a table and its resolved columns."""

from typing import Sequence

from dataimport.database.types import ColumnInfo


def quote_identifier(name: str, quote: str) -> str:
    if not quote:
        return name
    return quote + name.replace(quote, quote * 2) + quote


def build_insert_sql(
    table: str,
    column_infos: Sequence[ColumnInfo],
    quote: str = '"',
    placeholder: str = "?",
) -> str:
    """Build ``INSERT INTO "t" ("a","b") VALUES (?,?)`` in column order."""
    columns = ",".join(quote_identifier(c.name, quote) for c in column_infos)
    placeholders = ",".join(placeholder for _ in column_infos)
    return f"INSERT INTO {quote_identifier(table, quote)} ({columns}) VALUES ({placeholders})"

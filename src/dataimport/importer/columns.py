"""Resolve requested column names against destination metadata."""

from typing import Sequence

from dataimport.database.service import DatabaseService
from dataimport.database.types import ColumnInfo
from dataimport.importer.errors import ColumnNotFoundError


def resolve_columns(
    all_columns: Sequence[ColumnInfo],
    table: str,
    column_names: Sequence[str],
    tolerate_missing: bool = False,
) -> list[ColumnInfo | None]:
    """Match names case-sensitively, keeping the requested order.

    A missing column becomes None when ``tolerate_missing`` is set;
    otherwise ColumnNotFoundError is raised for the first one.
    """
    by_name: dict[str, ColumnInfo] = {}
    for column in all_columns:
        by_name.setdefault(column.name, column)

    resolved: list[ColumnInfo | None] = []
    for name in column_names:
        column = by_name.get(name)
        if column is None and not tolerate_missing:
            raise ColumnNotFoundError(table, name)
        resolved.append(column)
    return resolved


def get_column_infos(
    service: DatabaseService,
    table: str,
    column_names: Sequence[str],
    tolerate_missing: bool = False,
) -> list[ColumnInfo | None]:
    """Resolve column names against the table's live metadata."""
    return resolve_columns(service.get_columns(table), table, column_names, tolerate_missing)


def remove_nulls(column_infos: list[ColumnInfo | None]) -> list[ColumnInfo]:
    """Drop None placeholders. Returns the same list object when there are none."""
    if all(column is not None for column in column_infos):
        return column_infos
    return [column for column in column_infos if column is not None]


def remove_null_column_values(
    raw_column_infos: Sequence[ColumnInfo | None],
    column_infos: Sequence[ColumnInfo],
    values: Sequence[str | None],
) -> Sequence[str | None]:
    """Keep only the values whose column resolved.

    ``column_infos`` is ``remove_nulls(raw_column_infos)``. When nothing was
    removed the same ``values`` object is returned.
    """
    if column_infos is raw_column_infos or len(column_infos) == len(raw_column_infos):
        return values
    return [
        values[i] if i < len(values) else None
        for i, column in enumerate(raw_column_infos)
        if column is not None
    ]

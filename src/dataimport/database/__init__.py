"""Database layer: abstract service interface, column metadata and large objects."""

from dataimport.database.lob import Blob, Clob, LargeObject, LobFactory, NClob, SqlXml
from dataimport.database.service import DatabaseService, StatementError
from dataimport.database.types import (
    ColumnInfo,
    Params,
    ParamsList,
    Row,
    SqlType,
    sql_type_from_name,
)

__all__ = [
    "DatabaseService",
    "StatementError",
    "ColumnInfo",
    "SqlType",
    "sql_type_from_name",
    "Row",
    "Params",
    "ParamsList",
    "LargeObject",
    "LobFactory",
    "Clob",
    "NClob",
    "Blob",
    "SqlXml",
]

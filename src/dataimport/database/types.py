"""Shared types for the database layer."""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

Row = dict[str, Any]
Params = tuple | list | dict
ParamsList = list[tuple] | list[list]


class SqlType(IntEnum):
    """Column storage type codes, numbered like java.sql.Types."""

    BIT = -7
    TINYINT = -6
    SMALLINT = 5
    INTEGER = 4
    BIGINT = -5
    FLOAT = 6
    REAL = 7
    DOUBLE = 8
    NUMERIC = 2
    DECIMAL = 3
    CHAR = 1
    VARCHAR = 12
    LONGVARCHAR = -1
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    BINARY = -2
    VARBINARY = -3
    LONGVARBINARY = -4
    NULL = 0
    OTHER = 1111
    JAVA_OBJECT = 2000
    DISTINCT = 2001
    STRUCT = 2002
    ARRAY = 2003
    BLOB = 2004
    CLOB = 2005
    REF = 2006
    DATALINK = 70
    BOOLEAN = 16
    ROWID = -8
    NCHAR = -15
    NVARCHAR = -9
    LONGNVARCHAR = -16
    NCLOB = 2011
    SQLXML = 2009
    REF_CURSOR = 2012
    TIME_WITH_TIMEZONE = 2013
    TIMESTAMP_WITH_TIMEZONE = 2014


@dataclass(frozen=True)
class ColumnInfo:
    """One destination column as reported by the database."""

    name: str
    sql_type: int
    type_name: str | None = None


# Declared type names (lower case, without length/precision) for SQLite
# declarations and PostgreSQL information_schema.columns.data_type.
_TYPE_NAMES: dict[str, SqlType] = {
    "bit": SqlType.BIT,
    "tinyint": SqlType.TINYINT,
    "smallint": SqlType.SMALLINT,
    "int2": SqlType.SMALLINT,
    "int": SqlType.INTEGER,
    "integer": SqlType.INTEGER,
    "int4": SqlType.INTEGER,
    "mediumint": SqlType.INTEGER,
    "bigint": SqlType.BIGINT,
    "int8": SqlType.BIGINT,
    "float": SqlType.FLOAT,
    "real": SqlType.REAL,
    "float4": SqlType.REAL,
    "double": SqlType.DOUBLE,
    "double precision": SqlType.DOUBLE,
    "float8": SqlType.DOUBLE,
    "numeric": SqlType.NUMERIC,
    "decimal": SqlType.DECIMAL,
    "money": SqlType.DECIMAL,
    "char": SqlType.CHAR,
    "character": SqlType.CHAR,
    "bpchar": SqlType.CHAR,
    "varchar": SqlType.VARCHAR,
    "character varying": SqlType.VARCHAR,
    "text": SqlType.LONGVARCHAR,
    "nchar": SqlType.NCHAR,
    "nvarchar": SqlType.NVARCHAR,
    "ntext": SqlType.LONGNVARCHAR,
    "date": SqlType.DATE,
    "time": SqlType.TIME,
    "time without time zone": SqlType.TIME,
    "timestamp": SqlType.TIMESTAMP,
    "timestamp without time zone": SqlType.TIMESTAMP,
    "datetime": SqlType.TIMESTAMP,
    # PostgreSQL binds zoned columns from local time values
    "time with time zone": SqlType.TIME,
    "timetz": SqlType.TIME,
    "timestamp with time zone": SqlType.TIMESTAMP,
    "timestamptz": SqlType.TIMESTAMP,
    "binary": SqlType.BINARY,
    "varbinary": SqlType.VARBINARY,
    "bytea": SqlType.LONGVARBINARY,
    "blob": SqlType.BLOB,
    "clob": SqlType.CLOB,
    "nclob": SqlType.NCLOB,
    "xml": SqlType.SQLXML,
    "boolean": SqlType.BOOLEAN,
    "bool": SqlType.BOOLEAN,
    "array": SqlType.ARRAY,
}

_TYPE_ARGS = re.compile(r"\s*\(.*?\)")


def sql_type_from_name(type_name: str | None) -> SqlType:
    """Map a declared column type name onto a SqlType.

    Length and precision arguments are ignored, so "VARCHAR(20)" and
    "DECIMAL(15,6)" resolve like "varchar" and "decimal". Unknown names
    resolve to SqlType.OTHER.
    """
    if not type_name:
        return SqlType.OTHER
    name = " ".join(_TYPE_ARGS.sub("", type_name).lower().split())
    return _TYPE_NAMES.get(name, SqlType.OTHER)

"""Text to SQL parameter conversion.

Every supported SqlType maps to one strategy in ``_CONVERTERS``. A strategy
receives a non-null string and returns the typed parameter, raising
ValueError (or decimal.InvalidOperation) for malformed input; ``convert``
turns those into ConversionError.
"""

import base64
import binascii
import re
from datetime import date, datetime, time
from decimal import Decimal
from functools import lru_cache
from typing import Any, Callable, NamedTuple

from dataimport.database.lob import LobFactory
from dataimport.database.types import SqlType
from dataimport.importer.context import InsertContext
from dataimport.importer.errors import ConversionError, UnsupportedTypeError
from dataimport.importer.formats import (
    DEFAULT_TIMESTAMP_FORMAT,
    BinaryFormat,
    DataFormat,
    NumberSymbols,
)

DEFAULT_DATA_FORMAT = DataFormat()
DEFAULT_LOB_FACTORY = LobFactory()

INT_RANGE = (-(2**31), 2**31 - 1)
BIGINT_RANGE = (-(2**63), 2**63 - 1)

# yyyy-[m]m-[d]d hh:mm:ss[.f...]
_TIMESTAMP_LITERAL = re.compile(
    r"(\d{4})-(\d{1,2})-(\d{1,2}) (\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?"
)

# Plain decimal literal, no whitespace, underscores or grouping
_DECIMAL_LITERAL = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


class _Env(NamedTuple):
    data_format: DataFormat
    lob_factory: LobFactory
    context: InsertContext | None

    def scoped(self, resource):
        if self.context is not None:
            self.context.register(resource)
        return resource


@lru_cache(maxsize=None)
def _number_pattern(symbols: NumberSymbols) -> re.Pattern:
    groups = "".join(re.escape(g) for g in symbols.grouping)
    return re.compile(
        rf"(?P<sign>[-+]?)(?P<int>(?:[0-9][0-9{groups}]*)?)"
        rf"(?:{re.escape(symbols.decimal)}(?P<frac>[0-9]*))?"
        r"(?:[eE](?P<exp>[-+]?[0-9]+))?"
    )


def parse_number(value: str, symbols: NumberSymbols, integer_only: bool = False) -> Decimal:
    """Parse a localized number.

    Grouping separators may appear anywhere in the integer part. With
    ``integer_only`` the fraction is dropped (parsing stops at the decimal
    separator) and an exponent is rejected.
    """
    match = _number_pattern(symbols).fullmatch(value.strip())
    if match is None:
        raise ValueError(f"not a number: {value!r}")
    int_digits = match["int"]
    for g in symbols.grouping:
        int_digits = int_digits.replace(g, "")
    frac = match["frac"] or ""
    if not int_digits and not frac:
        raise ValueError(f"not a number: {value!r}")
    if integer_only:
        # parsing stops at the decimal separator, so ".5" has no digits
        if not int_digits or match["exp"] is not None:
            raise ValueError(f"not an integer: {value!r}")
        return Decimal(match["sign"] + int_digits)
    text = f"{match['sign']}{int_digits or '0'}.{frac or '0'}"
    if match["exp"] is not None:
        text += f"E{match['exp']}"
    return Decimal(text)


def _ranged_int(value: str, env: _Env, bounds: tuple[int, int]) -> int:
    number = int(parse_number(value, env.data_format.number_symbols, integer_only=True))
    if not bounds[0] <= number <= bounds[1]:
        raise ValueError(f"{number} out of range [{bounds[0]}, {bounds[1]}]")
    return number


def decode_binary(value: str, binary_format: BinaryFormat) -> bytes | None:
    """Decode hex or Base64 text. Empty text decodes to None, not b""."""
    if not value:
        return None
    if binary_format is BinaryFormat.HEX:
        return binascii.unhexlify(value)
    # MIME-style line breaks are not part of the payload
    return base64.b64decode("".join(value.split()), validate=True)


def parse_timestamp_literal(value: str) -> datetime:
    """Parse ``yyyy-[m]m-[d]d hh:mm:ss[.f...]``.

    Up to nine fraction digits are accepted; digits past microseconds are
    dropped.
    """
    match = _TIMESTAMP_LITERAL.fullmatch(value.strip())
    if match is None:
        raise ValueError(f"timestamp {value!r} is not in yyyy-mm-dd hh:mm:ss[.f...] format")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction = (match[7] or "")[:6].ljust(6, "0")
    return datetime(year, month, day, hour, minute, second, int(fraction))


def _to_string(value: str, env: _Env) -> str:
    return value


def _to_decimal(value: str, env: _Env) -> Decimal:
    if _DECIMAL_LITERAL.fullmatch(value) is None:
        raise ValueError(f"{value!r} is not a decimal number")
    return Decimal(value)


def _to_bool(value: str, env: _Env) -> bool:
    return value.lower() in ("true", "on") or value == "1"


def _to_int(value: str, env: _Env) -> int:
    return _ranged_int(value, env, INT_RANGE)


def _to_bigint(value: str, env: _Env) -> int:
    return _ranged_int(value, env, BIGINT_RANGE)


def _to_float(value: str, env: _Env) -> float:
    return float(parse_number(value, env.data_format.number_symbols))


def _to_bytes(value: str, env: _Env) -> bytes | None:
    return decode_binary(value, env.data_format.binary_format)


def _to_blob(value: str, env: _Env):
    data = decode_binary(value, env.data_format.binary_format)
    if data is None:
        return None
    return env.scoped(env.lob_factory.create_blob(data))


def _to_date(value: str, env: _Env) -> date:
    return datetime.strptime(value, env.data_format.date_format).date()


def _to_time(value: str, env: _Env) -> time:
    return datetime.strptime(value, env.data_format.time_format).time()


def _to_timestamp(value: str, env: _Env) -> datetime:
    pattern = env.data_format.timestamp_format
    if pattern == DEFAULT_TIMESTAMP_FORMAT:
        return parse_timestamp_literal(value)
    parsed = datetime.strptime(value, pattern)
    return parsed.replace(microsecond=parsed.microsecond // 1000 * 1000)


def _to_clob(value: str, env: _Env):
    return env.scoped(env.lob_factory.create_clob(value))


def _to_nclob(value: str, env: _Env):
    return env.scoped(env.lob_factory.create_nclob(value))


def _to_sqlxml(value: str, env: _Env):
    return env.scoped(env.lob_factory.create_sqlxml(value))


_CONVERTERS: dict[SqlType, Callable[[str, _Env], Any]] = {
    SqlType.CHAR: _to_string,
    SqlType.VARCHAR: _to_string,
    SqlType.LONGVARCHAR: _to_string,
    SqlType.NCHAR: _to_string,
    SqlType.NVARCHAR: _to_string,
    SqlType.LONGNVARCHAR: _to_string,
    SqlType.NUMERIC: _to_decimal,
    SqlType.DECIMAL: _to_decimal,
    SqlType.BIT: _to_bool,
    SqlType.BOOLEAN: _to_bool,
    SqlType.TINYINT: _to_int,
    SqlType.SMALLINT: _to_int,
    SqlType.INTEGER: _to_int,
    SqlType.BIGINT: _to_bigint,
    SqlType.REAL: _to_float,
    SqlType.FLOAT: _to_float,
    SqlType.DOUBLE: _to_float,
    SqlType.BINARY: _to_bytes,
    SqlType.VARBINARY: _to_bytes,
    SqlType.LONGVARBINARY: _to_bytes,
    SqlType.BLOB: _to_blob,
    SqlType.DATE: _to_date,
    SqlType.TIME: _to_time,
    SqlType.TIMESTAMP: _to_timestamp,
    SqlType.CLOB: _to_clob,
    SqlType.NCLOB: _to_nclob,
    SqlType.SQLXML: _to_sqlxml,
}

UNSUPPORTED_SQL_TYPES = frozenset(
    {
        SqlType.NULL,
        SqlType.OTHER,
        SqlType.JAVA_OBJECT,
        SqlType.DISTINCT,
        SqlType.STRUCT,
        SqlType.ARRAY,
        SqlType.REF,
        SqlType.DATALINK,
        SqlType.ROWID,
        SqlType.REF_CURSOR,
        SqlType.TIME_WITH_TIMEZONE,
        SqlType.TIMESTAMP_WITH_TIMEZONE,
    }
)

SUPPORTED_SQL_TYPES = frozenset(_CONVERTERS)

_undecided = set(SqlType) - SUPPORTED_SQL_TYPES - UNSUPPORTED_SQL_TYPES
if _undecided:
    raise RuntimeError(f"SqlType members without a conversion decision: {sorted(_undecided)}")


def convert(
    sql_type: int,
    raw_value: str | None,
    data_format: DataFormat | None = None,
    *,
    context: InsertContext | None = None,
    lob_factory: LobFactory | None = None,
) -> Any:
    """Convert one text value to a parameter for a column of ``sql_type``.

    None converts to None (SQL NULL) for every type code. Large-object
    handles are registered with ``context`` when one is given; otherwise
    the caller owns them.

    Raises ConversionError for malformed text and UnsupportedTypeError for a
    type code without a conversion.
    """
    if raw_value is None:
        return None
    try:
        strategy = _CONVERTERS[SqlType(sql_type)]
    except (ValueError, KeyError):
        raise UnsupportedTypeError(sql_type) from None
    if data_format is None:
        data_format = context.data_format if context is not None else DEFAULT_DATA_FORMAT
    env = _Env(data_format, lob_factory or DEFAULT_LOB_FACTORY, context)
    try:
        return strategy(raw_value, env)
    except (ValueError, ArithmeticError) as e:
        raise ConversionError(sql_type, raw_value, e) from e

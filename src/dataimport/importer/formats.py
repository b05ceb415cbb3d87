"""Per-job format configuration for parsing text values."""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

DEFAULT_LOCALE = "en_US"
DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_TIME_FORMAT = "%H:%M:%S"
# Reserved: timestamps in this format are parsed with the canonical
# literal grammar, which keeps fractional seconds.
DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class BinaryFormat(str, Enum):
    HEX = "HEX"
    BASE64 = "BASE64"


class NumberSymbols(NamedTuple):
    decimal: str
    grouping: tuple[str, ...]


_POINT = NumberSymbols(".", (",",))
_COMMA = NumberSymbols(",", (".",))
_SPACE = NumberSymbols(",", (" ", "\u00a0", "\u202f"))
_APOSTROPHE = NumberSymbols(".", ("'", "\u2019"))

# Keyed by language; a full locale entry overrides its language.
_NUMBER_SYMBOLS: dict[str, NumberSymbols] = {
    "en": _POINT,
    "zh": _POINT,
    "ja": _POINT,
    "ko": _POINT,
    "he": _POINT,
    "th": _POINT,
    "de": _COMMA,
    "es": _COMMA,
    "it": _COMMA,
    "nl": _COMMA,
    "pt": _COMMA,
    "id": _COMMA,
    "tr": _COMMA,
    "da": _COMMA,
    "el": _COMMA,
    "ro": _COMMA,
    "fr": _SPACE,
    "ru": _SPACE,
    "uk": _SPACE,
    "pl": _SPACE,
    "cs": _SPACE,
    "sk": _SPACE,
    "sv": _SPACE,
    "fi": _SPACE,
    "nb": _SPACE,
    "hu": _SPACE,
    "de_CH": _APOSTROPHE,
    "fr_CH": _APOSTROPHE,
    "en_IN": _POINT,
}


def number_symbols(locale: str) -> NumberSymbols:
    """Return the separators for a locale such as "de_DE" or "fr-CA".

    Raises ValueError for a locale with no known separators.
    """
    key = locale.replace("-", "_")
    if key in _NUMBER_SYMBOLS:
        return _NUMBER_SYMBOLS[key]
    language = key.split("_", 1)[0].lower()
    try:
        return _NUMBER_SYMBOLS[language]
    except KeyError:
        raise ValueError(f"Unsupported locale: {locale!r}") from None


@dataclass(frozen=True)
class DataFormat:
    """Parse patterns shared read-only by every row of one import job.

    Date and time patterns use strptime directives.
    """

    locale: str = DEFAULT_LOCALE
    date_format: str = DEFAULT_DATE_FORMAT
    time_format: str = DEFAULT_TIME_FORMAT
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
    binary_format: BinaryFormat = BinaryFormat.HEX

    def __post_init__(self):
        # Fail at job setup, not on the first numeric row.
        number_symbols(self.locale)
        object.__setattr__(self, "binary_format", BinaryFormat(self.binary_format))

    @property
    def number_symbols(self) -> NumberSymbols:
        return number_symbols(self.locale)

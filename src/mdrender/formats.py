"""Output formats understood by the rule engine."""

from __future__ import annotations

from enum import Enum

from mdrender.errors import UnsupportedFormatError


class Format(str, Enum):
    HTML = "html"
    WIKI = "wiki"

    def __str__(self) -> str:
        return self.value


def parse_format(value: Format | str) -> Format:
    """Return the `Format` member for `value` or raise UnsupportedFormatError.

    Only the exact identifiers ("html", "wiki") and enum members are accepted;
    there is no fallback format.
    """

    if isinstance(value, Format):
        return value
    if isinstance(value, str):
        try:
            return Format(value)
        except ValueError:
            pass
    raise UnsupportedFormatError(value)


def format_names() -> list[str]:
    return [f.value for f in Format]

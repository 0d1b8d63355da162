"""Error formatting and actionable hints for mdrender CLI output.

Keep this module small and dependency-light: it is imported by the CLI layer
and only depends on the error hierarchy.
"""

from __future__ import annotations

from mdrender.errors import (
    MdRenderConfigError,
    UnknownRulesetError,
    UnsupportedFormatError,
)
from mdrender.formats import format_names
from mdrender.rules import RULESETS


def format_hint(exc: BaseException) -> str | None:
    """Return an actionable hint for a known error, or None."""
    msg = str(exc)

    if isinstance(exc, UnsupportedFormatError):
        return f"choose one of: {', '.join(format_names())}"

    if isinstance(exc, UnknownRulesetError):
        return f"choose one of: {', '.join(sorted(RULESETS))}"

    if isinstance(exc, MdRenderConfigError):
        if "Invalid TOML" in msg:
            return "check the syntax of mdrender.toml"
        if "version" in msg:
            return "add `version = 1` at the top of mdrender.toml"
        return None

    if isinstance(exc, FileNotFoundError):
        return "check the input path, or pass `-` to read from stdin"

    if isinstance(exc, UnicodeDecodeError):
        return "set output.encoding in mdrender.toml to match the input file"

    return None


def format_error_with_hint(exc: BaseException) -> str:
    """Format error message + optional hint for stderr output."""
    if isinstance(exc, OSError) and exc.filename and exc.strerror:
        msg = f"{exc.strerror}: {exc.filename}"
    else:
        msg = (str(exc) or repr(exc)).strip()

    result = f"error: {msg}"
    hint = format_hint(exc)
    if hint:
        result += f"\nhint: {hint}"
    return result

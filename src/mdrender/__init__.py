"""mdrender: convert a constrained Markdown dialect into HTML or wiki markup.

Public API
----------
- ``render``   -- escape the input and apply the rule table for a format
- ``escape``   -- the literal-text escaping step on its own
- ``present``  -- prepare rendered output for display in an HTML page
- ``Format``   -- closed set of output formats (``html``, ``wiki``)
- ``Rule`` / ``RULESETS`` -- rule records and the named rule tables
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from mdrender.engine import apply_rules, present, render
from mdrender.errors import (
    MdRenderConfigError,
    MdRenderError,
    RuleDefinitionError,
    UnknownRulesetError,
    UnsupportedFormatError,
)
from mdrender.escaper import escape
from mdrender.formats import Format, parse_format
from mdrender.rules import BASIC_RULES, RULESETS, STANDARD_RULES, Rule


def _package_version() -> str:
    try:
        return version("mdrender")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "BASIC_RULES",
    "RULESETS",
    "STANDARD_RULES",
    "Format",
    "MdRenderConfigError",
    "MdRenderError",
    "Rule",
    "RuleDefinitionError",
    "UnknownRulesetError",
    "UnsupportedFormatError",
    "__version__",
    "apply_rules",
    "escape",
    "parse_format",
    "present",
    "render",
]

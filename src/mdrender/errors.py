"""mdrender exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests.
"""


class MdRenderError(Exception):
    """Base exception for all mdrender errors."""


class UnsupportedFormatError(MdRenderError, ValueError):
    """Raised when asked to render into an unknown output format."""

    def __init__(self, fmt: object) -> None:
        self.format = fmt
        super().__init__(f"Unable to render unknown format: {fmt!r}")


class UnknownRulesetError(MdRenderError):
    """Raised when a named rule table does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown ruleset: {name!r}")


class RuleDefinitionError(MdRenderError):
    """Raised when a rule is built without a renderer for every format."""


class MdRenderConfigError(MdRenderError):
    """Raised for invalid user configuration."""

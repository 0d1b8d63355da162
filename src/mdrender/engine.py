"""Rule engine: escape the input, then fold the rule table over it."""

from __future__ import annotations

import logging

from mdrender.escaper import escape
from mdrender.formats import Format, parse_format
from mdrender.rules import DEFAULT_RULESET, RuleTable, resolve_ruleset

logger = logging.getLogger("mdrender.engine")

# The paragraph rule only recognises a block once it sees a blank line.
_TRAILER = "\n\n"


def apply_rules(text: str, fmt: Format, rules: RuleTable) -> str:
    """Run each rule over the output of the previous one, in table order."""

    content = text
    for rule in rules:
        content = rule.apply(content, fmt)
        logger.debug("applied rule %s (%d chars)", rule.name, len(content))
    return content


def render(
    markdown: str,
    format: Format | str,
    *,
    ruleset: str | RuleTable = DEFAULT_RULESET,
    escape_quotes: bool = True,
) -> str:
    """Convert `markdown` into the requested output format.

    Raises UnsupportedFormatError for an unknown format and UnknownRulesetError
    for an unknown ruleset name, both before any text is transformed. Syntax
    that no rule recognises is kept as escaped literal text.
    """

    fmt = parse_format(format)
    rules = resolve_ruleset(ruleset)
    logger.debug(
        "rendering %d chars as %s with %d rules", len(markdown), fmt.value, len(rules)
    )

    # Results should contain at least one paragraph.
    padded = markdown + _TRAILER
    return apply_rules(escape(padded, quote=escape_quotes), fmt, rules)


def present(output: str, format: Format | str) -> str:
    """Prepare rendered output for display inside an HTML page.

    HTML is shown as live markup. Wiki markup is not renderable by a browser,
    so it is wrapped in a preformatted block to keep its line structure.
    """

    fmt = parse_format(format)
    if fmt is Format.WIKI:
        return f"<pre>{output}</pre>"
    return output

"""Translation rules.

A rule pairs a recognition pattern with one renderer per output format. Rules
are applied to the whole accumulated text in table order, so more specific
syntax must come first: strong before emphasis, headings before paragraphs,
and the paragraph rule last.

Renderers are either a replacement template (``re`` syntax, ``\\1`` for the
first group) or a function called as ``fn(full_match, *groups)``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from mdrender.errors import RuleDefinitionError, UnknownRulesetError
from mdrender.formats import Format

Renderer = str | Callable[..., str]
RuleTable = tuple["Rule", ...]


@dataclass(frozen=True, slots=True, eq=False)
class Rule:
    """One row of a rule table.

    `pattern` may be given as a plain string, which is matched literally.
    Renderers are checked here so a rule missing a format fails at import time
    rather than in the middle of a render.
    """

    name: str
    pattern: re.Pattern[str]
    renderers: Mapping[Format, Renderer]

    def __post_init__(self) -> None:
        if isinstance(self.pattern, str):
            object.__setattr__(self, "pattern", re.compile(re.escape(self.pattern)))
        object.__setattr__(self, "renderers", _freeze_renderers(self.name, self.renderers))

    def apply(self, text: str, fmt: Format) -> str:
        """Replace every match of this rule's pattern in `text`."""

        renderer = self.renderers[fmt]
        if callable(renderer):
            return self.pattern.sub(lambda m: renderer(m.group(0), *m.groups()), text)
        return self.pattern.sub(renderer, text)


def _freeze_renderers(
    name: str, renderers: Mapping[Format | str, Renderer]
) -> Mapping[Format, Renderer]:
    out: dict[Format, Renderer] = {}
    for key, renderer in renderers.items():
        try:
            fmt = Format(key)
        except ValueError:
            raise RuleDefinitionError(
                f"Rule {name!r} defines a renderer for unknown format {key!r}."
            ) from None
        if not isinstance(renderer, str) and not callable(renderer):
            raise RuleDefinitionError(
                f"Rule {name!r}: renderer for {fmt.value!r} must be a template string or callable."
            )
        out[fmt] = renderer

    missing = [f.value for f in Format if f not in out]
    if missing:
        raise RuleDefinitionError(
            f"Rule {name!r} is missing a renderer for: {', '.join(missing)}."
        )
    return MappingProxyType(out)


# ---------------------------------------------------------------------------
# Renderer functions
# ---------------------------------------------------------------------------

_HEADING_ELEMENT = re.compile(r"<h[1-6]>[^\r\n]*</h[1-6]>")


def _heading_html(match: str, hashes: str, text: str) -> str:
    level = len(hashes)
    # Surrounding newlines keep the heading out of neighbouring paragraphs.
    return f"\n<h{level}>{text}</h{level}>\n"


def _heading_wiki(match: str, hashes: str, text: str) -> str:
    tag = "=" * len(hashes)
    return f"{tag} {text} {tag}"


def _paragraph_html(match: str, text: str, newline: str | None) -> str:
    # Headings are already block elements; <p><h1> is invalid HTML.
    if _HEADING_ELEMENT.fullmatch(text):
        return text
    return f"<p>{text}</p>"


def _hash_heading_pattern(hashes: str) -> re.Pattern[str]:
    return re.compile(
        rf"^({hashes})(?!#)[ \t]*([^\r\n]+?)[ \t]*(?:#+)?[ \t]*(?=\r|$)",
        re.MULTILINE,
    )


def _fixed_heading(level: int) -> Rule:
    tag = "=" * level
    return Rule(
        f"heading-{level}",
        _hash_heading_pattern("#" * level),
        {
            Format.HTML: rf"\n<h{level}>\2</h{level}>\n",
            Format.WIKI: rf"{tag} \2 {tag}",
        },
    )


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

STRONG = Rule(
    "strong",
    re.compile(r"(__|\*\*)([^\r\n]+?)\1", re.MULTILINE),
    {Format.HTML: r"<strong>\2</strong>", Format.WIKI: r"'''\2'''"},
)

EMPHASIS = Rule(
    "emphasis",
    re.compile(r"(_|\*)([^\r\n]+?)\1", re.MULTILINE),
    {Format.HTML: r"<em>\2</em>", Format.WIKI: r"''\2''"},
)

HEADING = Rule(
    "heading",
    _hash_heading_pattern("#{1,6}"),
    {Format.HTML: _heading_html, Format.WIKI: _heading_wiki},
)

HEADING_UNDERLINE_1 = Rule(
    "heading-underline-1",
    re.compile(r"^([^\r\n]+)(?:\r|\r?\n)={3,}(?=\r|$)", re.MULTILINE),
    {Format.HTML: r"\n<h1>\1</h1>\n", Format.WIKI: r"= \1 ="},
)

HEADING_UNDERLINE_2 = Rule(
    "heading-underline-2",
    re.compile(r"^([^\r\n]+)(?:\r|\r?\n)-{3,}(?=\r|$)", re.MULTILINE),
    {Format.HTML: r"\n<h2>\1</h2>\n", Format.WIKI: r"== \1 =="},
)

PARAGRAPH = Rule(
    "paragraph",
    re.compile(r"\s*(.*?)\s*(?:(\r|\r?\n){2})", re.DOTALL),
    {Format.HTML: _paragraph_html, Format.WIKI: "\\1\n\n"},
)

STANDARD_RULES: RuleTable = (
    STRONG,
    EMPHASIS,
    HEADING,
    HEADING_UNDERLINE_1,
    HEADING_UNDERLINE_2,
    PARAGRAPH,
)

BASIC_RULES: RuleTable = (
    Rule(
        "strong-underscore",
        re.compile(r"__([^\r\n]+?)__", re.MULTILINE),
        {Format.HTML: r"<strong>\1</strong>", Format.WIKI: r"'''\1'''"},
    ),
    Rule(
        "strong-star",
        re.compile(r"\*\*([^\r\n]+?)\*\*", re.MULTILINE),
        {Format.HTML: r"<strong>\1</strong>", Format.WIKI: r"'''\1'''"},
    ),
    Rule(
        "emphasis-underscore",
        re.compile(r"_([^\r\n]+?)_", re.MULTILINE),
        {Format.HTML: r"<em>\1</em>", Format.WIKI: r"''\1''"},
    ),
    Rule(
        "emphasis-star",
        re.compile(r"\*([^\r\n]+?)\*", re.MULTILINE),
        {Format.HTML: r"<em>\1</em>", Format.WIKI: r"''\1''"},
    ),
    _fixed_heading(1),
    _fixed_heading(2),
    _fixed_heading(3),
    PARAGRAPH,
)

RULESETS: Mapping[str, RuleTable] = MappingProxyType(
    {
        "standard": STANDARD_RULES,
        "basic": BASIC_RULES,
    }
)

DEFAULT_RULESET = "standard"


def resolve_ruleset(ruleset: str | RuleTable) -> RuleTable:
    """Return the rule table named `ruleset` (tables are passed through)."""

    if isinstance(ruleset, tuple):
        return ruleset
    try:
        return RULESETS[ruleset]
    except KeyError:
        raise UnknownRulesetError(ruleset) from None

"""End-to-end rendering through escaping and the full rule table."""

from __future__ import annotations

import re

import pytest

from mdrender.engine import apply_rules, present, render
from mdrender.errors import UnknownRulesetError, UnsupportedFormatError
from mdrender.formats import Format
from mdrender.rules import STRONG

_INSERTED_TAGS = re.compile(r"</?(?:p|em|strong|h[1-6])>")
_ENTITY = re.compile(r"&(?:amp|lt|gt|quot|#x27);")

# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def test_heading_then_paragraph_html() -> None:
    out = render("# Title\n\nSome text.", Format.HTML)
    assert out == "<h1>Title</h1><p>Some text.</p>"


def test_heading_then_paragraph_wiki() -> None:
    out = render("# Title\n\nSome text.", Format.WIKI)
    assert out == "= Title =\n\nSome text.\n\n"


def test_strong_and_emphasis_wiki() -> None:
    out = render("__a__ and *b*", "wiki")
    assert "'''a''' and ''b''" in out
    assert out == "'''a''' and ''b''\n\n"


def test_strong_html() -> None:
    assert render("**bold**", "html") == "<p><strong>bold</strong></p>"
    assert render("**bold**", "wiki") == "'''bold'''\n\n"


def test_mismatched_strong_is_not_strong() -> None:
    out = render("**bold*", "html")
    assert "<strong>" not in out
    assert out == "<p><em>*bold</em></p>"


def test_empty_input() -> None:
    assert render("", Format.HTML) == "<p></p>"
    assert render("", Format.WIKI) == "\n\n"


def test_unsupported_format_raises() -> None:
    with pytest.raises(UnsupportedFormatError):
        render("text", "xml")


def test_unknown_ruleset_raises() -> None:
    with pytest.raises(UnknownRulesetError):
        render("text", "html", ruleset="fancy")


# ---------------------------------------------------------------------------
# Paragraphs and headings
# ---------------------------------------------------------------------------


def test_blank_lines_separate_paragraphs() -> None:
    assert render("one\n\ntwo", "html") == "<p>one</p><p>two</p>"


def test_single_newline_stays_in_paragraph() -> None:
    assert render("line one\nline two", "html") == "<p>line one\nline two</p>"


def test_heading_between_lines_is_its_own_block() -> None:
    out = render("Intro\n# Title\nOutro", "html")
    assert out == "<p>Intro</p><h1>Title</h1><p>Outro</p>"


def test_headings_are_never_wrapped_in_paragraphs() -> None:
    md = "# One\n## Two\n### Three\n\ntext\n#### Four\n##### Five\n###### Six"
    out = render(md, "html")
    for level in range(1, 7):
        assert out.count(f"<h{level}>") == 1
    assert not re.search(r"<p>\s*<h\d>", out)


def test_seven_hashes_is_paragraph_text() -> None:
    assert render("####### Seven", "html") == "<p>####### Seven</p>"


def test_closing_hashes_are_dropped() -> None:
    assert render("## Sub ##", "html") == "<h2>Sub</h2>"


def test_underline_headings() -> None:
    assert render("Title\n=====", "html") == "<h1>Title</h1>"
    assert render("Sub\n---", "html") == "<h2>Sub</h2>"
    assert render("Title\n===", "wiki") == "= Title =\n\n"
    assert render("Sub\n---", "wiki") == "== Sub ==\n\n"


def test_short_underline_is_not_a_heading() -> None:
    assert render("Title\n==", "html") == "<p>Title\n==</p>"


def test_inline_markup_inside_heading() -> None:
    assert render("# A **big** deal", "html") == "<h1>A <strong>big</strong> deal</h1>"


def test_crlf_line_endings() -> None:
    assert render("# Title\r\n\r\nText", "html") == "<h1>Title</h1><p>Text</p>"


# ---------------------------------------------------------------------------
# CRLF line endings
# ---------------------------------------------------------------------------

_RULESETS = pytest.mark.parametrize("ruleset", ["standard", "basic"])


@_RULESETS
def test_bare_hashes_before_crlf_are_paragraph_text(ruleset: str) -> None:
    out = render("##\r\nText", "html", ruleset=ruleset)
    assert out == "<p>##</p><p>Text</p>"
    assert not re.search(r"<p>\s*<h\d>", out)
    assert render("##\r\n", "html", ruleset=ruleset) == "<p>##</p>"


@_RULESETS
def test_bare_hash_before_lf_is_paragraph_text(ruleset: str) -> None:
    assert render("#\nText", "html", ruleset=ruleset) == "<p>#\nText</p>"


@_RULESETS
def test_crlf_after_heading_is_a_block_break_in_wiki(ruleset: str) -> None:
    assert render("# T\r\nnext", "wiki", ruleset=ruleset) == "= T =\n\nnext\n\n"


@_RULESETS
def test_crlf_headings_with_trailing_markers_in_wiki(ruleset: str) -> None:
    out = render("# ># \t**\r\n##=__", "wiki", ruleset=ruleset)
    assert out == "= &gt;# \t** =\n\n== =__ ==\n\n"


def test_crlf_underline_headings() -> None:
    assert render("Title\r\n===", "html") == "<h1>Title</h1>"
    assert render("Title\r\n===", "wiki") == "= Title =\n\n"
    assert render("Sub\r\n---\r\nmore", "html") == "<h2>Sub</h2><p>more</p>"
    assert render("Sub\r\n---\r\nmore", "wiki") == "== Sub ==\n\nmore\n\n"


@_RULESETS
@pytest.mark.parametrize(
    "md",
    [
        "##\r\nText",
        "# A\r\n## B\r\n\r\nbody",
        "intro\r\n### C ###\r\noutro",
        "#\r\n##\r\n###\r\n",
        "Title\r\n===\r\nSub\r\n---",
    ],
)
def test_crlf_headings_are_never_wrapped_in_paragraphs(md: str, ruleset: str) -> None:
    out = render(md, "html", ruleset=ruleset)
    assert not re.search(r"<p>\s*<h\d>", out)


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------


def test_input_markup_is_escaped() -> None:
    assert render("a < b & c > d", "html") == "<p>a &lt; b &amp; c &gt; d</p>"
    assert render("<script>x</script>", "html") == "<p>&lt;script&gt;x&lt;/script&gt;</p>"


def test_quotes_are_escaped_unless_disabled() -> None:
    assert render('say "hi"', "html") == "<p>say &quot;hi&quot;</p>"
    assert render('say "hi"', "html", escape_quotes=False) == '<p>say "hi"</p>'


def test_inserted_markup_is_never_escaped() -> None:
    out = render("**x** _y_\n\n# z", "html")
    assert "&lt;" not in out
    assert "&gt;" not in out


@pytest.mark.parametrize(
    "md",
    [
        "<b>**bold**</b>",
        "# <h1>nested</h1>",
        "a & b\n\n<p>c</p>",
        "Title <x>\n===",
        "*<em>*",
        "&amp; &lt;",
    ],
)
@pytest.mark.parametrize("fmt", ["html", "wiki"])
def test_no_raw_markup_from_input_survives(md: str, fmt: str) -> None:
    out = _INSERTED_TAGS.sub("", render(md, fmt))
    assert "<" not in out
    assert ">" not in out
    assert "&" not in _ENTITY.sub("", out)


# ---------------------------------------------------------------------------
# Purity and rulesets
# ---------------------------------------------------------------------------


def test_render_is_deterministic() -> None:
    md = "# T\n\n**a** _b_\n\nc"
    assert render(md, "html") == render(md, "html")
    assert render(md, "wiki") == render(md, "wiki")


def test_basic_ruleset_stops_at_three_hashes() -> None:
    assert render("### Three", "html", ruleset="basic") == "<h3>Three</h3>"
    assert render("#### Four", "html", ruleset="basic") == "<p>#### Four</p>"
    assert render("#### Four", "html") == "<h4>Four</h4>"


def test_basic_ruleset_inline_markup() -> None:
    out = render("__a__ **b** _c_ *d*", "wiki", ruleset="basic")
    assert out == "'''a''' '''b''' ''c'' ''d''\n\n"


def test_basic_ruleset_has_no_underline_headings() -> None:
    assert render("Title\n===", "html", ruleset="basic") == "<p>Title\n===</p>"


def test_custom_rule_table() -> None:
    assert render("**a**", "html", ruleset=(STRONG,)) == "<strong>a</strong>\n\n"


def test_apply_rules_does_not_escape_or_pad() -> None:
    assert apply_rules("<b>**a**</b>", Format.WIKI, (STRONG,)) == "<b>'''a'''</b>"


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------


def test_present_leaves_html_alone() -> None:
    assert present("<p>x</p>", "html") == "<p>x</p>"


def test_present_wraps_wiki_in_pre() -> None:
    assert present("''x''\n\n", Format.WIKI) == "<pre>''x''\n\n</pre>"


def test_present_rejects_unknown_format() -> None:
    with pytest.raises(UnsupportedFormatError):
        present("x", "xml")

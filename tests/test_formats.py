from __future__ import annotations

import pytest

from mdrender.errors import UnsupportedFormatError
from mdrender.formats import Format, format_names, parse_format


def test_format_values() -> None:
    assert Format.HTML.value == "html"
    assert Format.WIKI.value == "wiki"
    assert str(Format.WIKI) == "wiki"


def test_format_names_in_declaration_order() -> None:
    assert format_names() == ["html", "wiki"]


def test_parse_format_accepts_identifiers_and_members() -> None:
    assert parse_format("html") is Format.HTML
    assert parse_format("wiki") is Format.WIKI
    assert parse_format(Format.WIKI) is Format.WIKI


@pytest.mark.parametrize("value", ["xml", "HTML", "", " html", None, 1])
def test_parse_format_rejects_everything_else(value: object) -> None:
    with pytest.raises(UnsupportedFormatError) as ei:
        parse_format(value)  # type: ignore[arg-type]
    assert ei.value.format == value

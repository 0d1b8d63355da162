"""Literal-text escaping applied before any syntax rule runs."""

from __future__ import annotations

import html


def escape(raw: str, *, quote: bool = True) -> str:
    """Escape `&`, `<`, `>` (and quotes, unless `quote=False`).

    Must run exactly once over the whole input, before the rule table, so that
    markup inserted by rules is never itself escaped.
    """

    if not raw:
        return ""
    return html.escape(raw, quote=quote)

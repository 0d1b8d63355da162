"""MCP server for mdrender: exposes render/formats as MCP tools.

The server uses FastMCP (optional dependency) for the transport layer.
Core tool functions are plain Python and can be tested without FastMCP installed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from mdrender.config import MdRenderConfig, load_config_or_default
from mdrender.diagnostics import format_hint
from mdrender.engine import present, render
from mdrender.errors import MdRenderError
from mdrender.formats import format_names
from mdrender.rules import RULESETS

logger = logging.getLogger("mdrender.mcp")

# ---------------------------------------------------------------------------
# Core tool functions (no FastMCP dependency)
# ---------------------------------------------------------------------------


def tool_render(
    text: str,
    *,
    format: str | None = None,
    ruleset: str | None = None,
    preview: bool | None = None,
    config: MdRenderConfig | None = None,
) -> str:
    """Render `text` and return a JSON envelope.

    Unset options fall back to `config` (or the built-in defaults). Errors are
    reported inside the envelope so MCP clients always get valid JSON.
    """
    cfg = config or MdRenderConfig()
    fmt = format if format is not None else cfg.render.format.value
    rs = ruleset if ruleset is not None else cfg.render.ruleset
    wrap = cfg.output.preview if preview is None else preview
    try:
        output = render(text, fmt, ruleset=rs, escape_quotes=cfg.render.escape_quotes)
        if wrap:
            output = present(output, fmt)
    except MdRenderError as e:
        logger.debug("render tool failed: %s", e)
        data: dict[str, object] = {"command": "render", "ok": False, "error": str(e)}
        hint = format_hint(e)
        if hint:
            data["hint"] = hint
        return json.dumps(data)
    return json.dumps(
        {"command": "render", "ok": True, "format": fmt, "ruleset": rs, "output": output}
    )


def tool_formats() -> str:
    """List output formats and the rule names of each ruleset."""
    return json.dumps(
        {
            "command": "formats",
            "ok": True,
            "formats": format_names(),
            "rulesets": {name: [r.name for r in rules] for name, rules in RULESETS.items()},
        }
    )


# ---------------------------------------------------------------------------
# FastMCP server factory
# ---------------------------------------------------------------------------


def create_mcp_server(config: MdRenderConfig | None = None):
    """Create and return a FastMCP server with mdrender tools registered.

    Raises ImportError if fastmcp is not installed.
    """
    from fastmcp import FastMCP

    cfg = config or MdRenderConfig()
    mcp = FastMCP("mdrender", instructions="Convert constrained Markdown into HTML or wiki markup")

    @mcp.tool()
    def mdrender_render(
        text: str,
        format: str | None = None,
        ruleset: str | None = None,
        preview: bool | None = None,
    ) -> str:
        """Render Markdown text into HTML or wiki markup.

        Supports strong/emphasis, hash and underline headings, and paragraphs.
        Returns JSON with the rendered output, or an error and hint.
        """
        return tool_render(text, format=format, ruleset=ruleset, preview=preview, config=cfg)

    @mcp.tool()
    def mdrender_formats() -> str:
        """List supported output formats and rulesets.

        Returns JSON with format names and the ordered rule names per ruleset.
        """
        return tool_formats()

    return mcp


def run_server(*, root: str | None = None) -> None:
    """Entry point: create and run the MCP server (stdio transport).

    If *root* is provided, its mdrender.toml supplies the default options.
    """
    cfg = load_config_or_default(root=Path(root).resolve() if root else None)
    mcp = create_mcp_server(cfg)
    mcp.run()

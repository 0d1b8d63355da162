from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from mdrender import __version__
from mdrender.config import MdRenderConfig, load_config_or_default
from mdrender.diagnostics import format_error_with_hint, format_hint
from mdrender.engine import present, render
from mdrender.errors import MdRenderError
from mdrender.formats import Format, format_names, parse_format
from mdrender.rules import RULESETS, resolve_ruleset

logger = logging.getLogger("mdrender.cli")

EXIT_OK = 0
EXIT_CONFIG_OR_USAGE = 2
EXIT_IO_ERROR = 3


@dataclass(frozen=True)
class RenderOptions:
    format: Format
    ruleset: str
    escape_quotes: bool
    preview: bool
    encoding: str


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root (defaults to searching upward from cwd for mdrender.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to mdrender.toml (defaults to <root>/mdrender.toml).",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit machine-readable JSON on stdout.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def _add_render_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--format",
        type=str,
        default=None,
        help=f"Output format ({', '.join(format_names())}); defaults to render.format.",
    )
    p.add_argument(
        "--ruleset",
        type=str,
        default=None,
        help=f"Rule table ({', '.join(sorted(RULESETS))}); defaults to render.ruleset.",
    )
    p.add_argument(
        "--preview",
        action="store_true",
        help="Wrap wiki output in <pre> for display inside an HTML page.",
    )
    p.add_argument(
        "--no-escape-quotes",
        action="store_true",
        help="Leave quote characters unescaped.",
    )
    p.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write output to this file instead of stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mdrender")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    render_p = subparsers.add_parser("render", help="Render a markdown file.")
    render_p.add_argument(
        "path", nargs="?", default="-", help="Markdown file to render (`-` for stdin)."
    )
    _add_common_flags(render_p)
    _add_render_flags(render_p)

    formats_p = subparsers.add_parser("formats", help="List output formats and rulesets.")
    _add_common_flags(formats_p)

    watch_p = subparsers.add_parser("watch", help="Re-render on every change.")
    watch_p.add_argument("path", help="Markdown file or directory to watch.")
    _add_common_flags(watch_p)
    _add_render_flags(watch_p)

    mcp_p = subparsers.add_parser("mcp", help="MCP server commands.")
    mcp_sub = mcp_p.add_subparsers(dest="mcp_command", required=True)
    serve_p = mcp_sub.add_parser("serve", help="Run the MCP server over stdio.")
    serve_p.add_argument("--root", type=str, default=None, help="Project root.")
    serve_p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _is_json_mode(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json_output", False))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _emit_json(data: dict[str, object]) -> None:
    print(json.dumps(data, indent=2))


def _report_error(command: str, e: BaseException, *, json_mode: bool) -> None:
    if json_mode:
        data: dict[str, object] = {"command": command, "ok": False, "error": str(e)}
        hint = format_hint(e)
        if hint:
            data["hint"] = hint
        _emit_json(data)
        return
    _eprint(format_error_with_hint(e))


def _load_config(args: argparse.Namespace) -> MdRenderConfig:
    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None
    return load_config_or_default(root=root, config_path=config_path)


def _render_options(args: argparse.Namespace, cfg: MdRenderConfig) -> RenderOptions:
    fmt = parse_format(args.format) if args.format is not None else cfg.render.format
    ruleset = args.ruleset if args.ruleset is not None else cfg.render.ruleset
    # Fail on an unknown ruleset before reading any input.
    resolve_ruleset(ruleset)
    return RenderOptions(
        format=fmt,
        ruleset=ruleset,
        escape_quotes=cfg.render.escape_quotes and not bool(args.no_escape_quotes),
        preview=bool(args.preview) or cfg.output.preview,
        encoding=cfg.output.encoding,
    )


def _render_text(source: str, opts: RenderOptions) -> str:
    out = render(source, opts.format, ruleset=opts.ruleset, escape_quotes=opts.escape_quotes)
    if opts.preview:
        out = present(out, opts.format)
    return out


def _read_source(path: str, encoding: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding=encoding)


def _write_output(text: str, dest: str | None, encoding: str) -> None:
    if dest is None or dest == "-":
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return
    Path(dest).write_text(text, encoding=encoding)


def sibling_output_path(source: Path, fmt: Format) -> Path:
    """Return `source` with its suffix swapped for the format name."""
    dest = source.with_suffix(f".{fmt.value}")
    if dest == source:
        dest = source.with_name(f"{source.name}.{fmt.value}")
    return dest


def cmd_render(args: argparse.Namespace) -> int:
    json_mode = _is_json_mode(args)
    try:
        cfg = _load_config(args)
        opts = _render_options(args, cfg)
        source = _read_source(args.path, opts.encoding)
        output = _render_text(source, opts)

        if json_mode:
            data: dict[str, object] = {
                "command": "render",
                "ok": True,
                "format": opts.format.value,
                "ruleset": opts.ruleset,
            }
            if args.output and args.output != "-":
                _write_output(output, args.output, opts.encoding)
                data["written_to"] = args.output
            else:
                data["output"] = output
            _emit_json(data)
        else:
            _write_output(output, args.output, opts.encoding)
        return EXIT_OK
    except MdRenderError as e:
        _report_error("render", e, json_mode=json_mode)
        return EXIT_CONFIG_OR_USAGE
    except (OSError, UnicodeError) as e:
        _report_error("render", e, json_mode=json_mode)
        return EXIT_IO_ERROR


def cmd_formats(args: argparse.Namespace) -> int:
    rulesets = {name: [rule.name for rule in rules] for name, rules in RULESETS.items()}
    if _is_json_mode(args):
        _emit_json(
            {
                "command": "formats",
                "ok": True,
                "formats": format_names(),
                "rulesets": rulesets,
            }
        )
        return EXIT_OK

    print("formats:")
    for name in format_names():
        print(f"  {name}")
    print("rulesets:")
    for name, rule_names in sorted(rulesets.items()):
        print(f"  {name}: {' -> '.join(rule_names)}")
    return EXIT_OK


def cmd_watch(args: argparse.Namespace) -> int:
    json_mode = _is_json_mode(args)

    from mdrender import watcher

    try:
        watcher.check_watchfiles_available()
    except ImportError as e:
        _report_error("watch", e, json_mode=json_mode)
        return EXIT_CONFIG_OR_USAGE

    try:
        cfg = _load_config(args)
        opts = _render_options(args, cfg)
    except MdRenderError as e:
        _report_error("watch", e, json_mode=json_mode)
        return EXIT_CONFIG_OR_USAGE

    target = Path(args.path).resolve()
    if not target.exists():
        missing = FileNotFoundError(2, "No such file or directory", str(target))
        _report_error("watch", missing, json_mode=json_mode)
        return EXIT_IO_ERROR
    if target.is_dir() and args.output:
        _report_error(
            "watch",
            MdRenderError("--output cannot be used when watching a directory."),
            json_mode=json_mode,
        )
        return EXIT_CONFIG_OR_USAGE

    def render_path(path: Path) -> str:
        dest = Path(args.output) if args.output else sibling_output_path(path, opts.format)
        output = _render_text(_read_source(str(path), opts.encoding), opts)
        _write_output(output, str(dest), opts.encoding)
        logger.debug("rendered %s -> %s", path, dest)
        return str(dest)

    def on_event(msg: str) -> None:
        if not json_mode:
            _eprint(msg)

    def on_cycle_result(result: watcher.WatchCycleResult) -> None:
        if json_mode:
            print(json.dumps(watcher.format_watch_cycle_json(result)), flush=True)
            return
        for out in result.outputs:
            _eprint(f"[watch] wrote {out}")

    def on_error(exc: BaseException) -> None:
        if json_mode:
            print(json.dumps({"command": "watch", "ok": False, "error": str(exc)}), flush=True)
            return
        _eprint(format_error_with_hint(exc))

    run_cycle = watcher.build_cycle_runner(render_path)
    if target.is_dir():
        initial = frozenset(
            p for p in target.rglob("*") if p.is_file() and p.suffix in cfg.watch.suffixes
        )
        watch_paths = [target]
    else:
        initial = frozenset({target})
        # Editors often replace files on save; watch the directory instead.
        watch_paths = [target.parent]

    try:
        on_cycle_result(
            run_cycle(watcher.WatchEvent(changed_paths=initial, timestamp=0.0))
        )
    except (MdRenderError, OSError, UnicodeError) as e:
        on_error(e)

    on_event(f"[watch] watching {target} (Ctrl+C to stop)")
    try:
        asyncio.run(
            watcher.run_watch_loop(
                changes_iter=watcher.make_watchfiles_iter(
                    watch_paths, debounce_ms=cfg.watch.debounce_ms
                ),
                run_cycle=run_cycle,
                on_event=on_event,
                on_cycle_result=on_cycle_result,
                on_error=on_error,
                targets=[target],
                suffixes=cfg.watch.suffixes,
            )
        )
    except KeyboardInterrupt:
        on_event("[watch] stopped")
    return EXIT_OK


def cmd_mcp(args: argparse.Namespace) -> int:
    if args.mcp_command != "serve":
        return EXIT_CONFIG_OR_USAGE
    try:
        from mdrender.mcp_server import run_server

        run_server(root=args.root)
    except ImportError as e:
        _eprint(f"error: {e}\nhint: install the MCP extra with: pip install mdrender[mcp]")
        return EXIT_CONFIG_OR_USAGE
    except MdRenderError as e:
        _eprint(format_error_with_hint(e))
        return EXIT_CONFIG_OR_USAGE
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_OR_USAGE

    _configure_logging(bool(getattr(args, "verbose", False)))

    if args.command == "render":
        return cmd_render(args)
    if args.command == "formats":
        return cmd_formats(args)
    if args.command == "watch":
        return cmd_watch(args)
    if args.command == "mcp":
        return cmd_mcp(args)

    return EXIT_CONFIG_OR_USAGE


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

"""Project configuration loading for mdrender.

This module is intentionally small and deterministic: it only reads
`mdrender.toml` and performs light validation.
"""

from __future__ import annotations

import codecs
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mdrender.errors import MdRenderConfigError
from mdrender.formats import Format, format_names
from mdrender.rules import DEFAULT_RULESET, RULESETS

CONFIG_FILENAME = "mdrender.toml"


@dataclass(frozen=True)
class RenderConfig:
    format: Format = Format.HTML
    ruleset: str = DEFAULT_RULESET
    escape_quotes: bool = True


@dataclass(frozen=True)
class OutputConfig:
    preview: bool = False
    encoding: str = "utf-8"


@dataclass(frozen=True)
class WatchConfig:
    debounce_ms: int = 200
    suffixes: list[str] = field(default_factory=lambda: [".md", ".markdown", ".txt"])


@dataclass(frozen=True)
class MdRenderConfig:
    version: int = 1
    render: RenderConfig = field(default_factory=RenderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)


def find_project_root(start: Path) -> Path:
    """Walk upward from `start` (file or directory) looking for `mdrender.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        # Broken symlinks and the like can still be walked from.
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent

    raise MdRenderConfigError(
        f"Could not find {CONFIG_FILENAME} by walking upward from start path."
    )


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MdRenderConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_str_list(value: Any, *, name: str) -> list[str]:
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise MdRenderConfigError(f"Expected {name} to be a list of strings.")
    return list(value)


def _as_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise MdRenderConfigError(f"Expected {name} to be a boolean.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise MdRenderConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise MdRenderConfigError(f"Expected {name} to be a string.")
    return value


def load_config(
    *, root: Path | None = None, config_path: Path | None = None
) -> MdRenderConfig:
    """Load and validate `mdrender.toml`.

    If neither `root` nor `config_path` are provided, the project root is
    discovered by walking upward from the current working directory.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
        config_path = root / CONFIG_FILENAME

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise MdRenderConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise MdRenderConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise MdRenderConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise MdRenderConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise MdRenderConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise MdRenderConfigError(f"Unsupported config version: {version_i} (expected 1).")

    render_tbl = _as_table(data.get("render"), name="render")
    output_tbl = _as_table(data.get("output"), name="output")
    watch_tbl = _as_table(data.get("watch"), name="watch")

    defaults = MdRenderConfig()

    if "format" in render_tbl:
        format_name = _as_str(render_tbl["format"], name="render.format")
    else:
        format_name = defaults.render.format.value

    if "ruleset" in render_tbl:
        ruleset = _as_str(render_tbl["ruleset"], name="render.ruleset")
    else:
        ruleset = defaults.render.ruleset

    if "escape_quotes" in render_tbl:
        escape_quotes = _as_bool(render_tbl["escape_quotes"], name="render.escape_quotes")
    else:
        escape_quotes = defaults.render.escape_quotes

    if "preview" in output_tbl:
        preview = _as_bool(output_tbl["preview"], name="output.preview")
    else:
        preview = defaults.output.preview

    if "encoding" in output_tbl:
        encoding = _as_str(output_tbl["encoding"], name="output.encoding")
    else:
        encoding = defaults.output.encoding

    if "debounce_ms" in watch_tbl:
        debounce_ms = _as_int(watch_tbl["debounce_ms"], name="watch.debounce_ms")
    else:
        debounce_ms = defaults.watch.debounce_ms

    if "suffixes" in watch_tbl:
        suffixes = _as_str_list(watch_tbl["suffixes"], name="watch.suffixes")
    else:
        suffixes = list(defaults.watch.suffixes)

    # Validation
    if format_name not in format_names():
        raise MdRenderConfigError(
            f"Invalid config: render.format must be one of {format_names()}, got {format_name!r}."
        )

    if ruleset not in RULESETS:
        raise MdRenderConfigError(
            f"Invalid config: render.ruleset must be one of {sorted(RULESETS)}, got {ruleset!r}."
        )

    try:
        codecs.lookup(encoding)
    except LookupError as e:
        raise MdRenderConfigError(f"Invalid config: unknown output.encoding {encoding!r}.") from e

    if debounce_ms < 0:
        raise MdRenderConfigError("Invalid config: watch.debounce_ms must be >= 0.")

    return MdRenderConfig(
        version=version_i,
        render=RenderConfig(
            format=Format(format_name),
            ruleset=ruleset,
            escape_quotes=escape_quotes,
        ),
        output=OutputConfig(preview=preview, encoding=encoding),
        watch=WatchConfig(debounce_ms=debounce_ms, suffixes=suffixes),
    )


def load_config_or_default(
    *, root: Path | None = None, config_path: Path | None = None
) -> MdRenderConfig:
    """Like `load_config`, but fall back to defaults when no file can be found.

    An explicit `config_path` must exist; only discovery is allowed to fail.
    """

    if config_path is not None:
        return load_config(root=root, config_path=config_path)
    if root is None:
        try:
            root = find_project_root(Path.cwd())
        except MdRenderConfigError:
            return MdRenderConfig()
    if not (root / CONFIG_FILENAME).is_file():
        return MdRenderConfig()
    return load_config(root=root)

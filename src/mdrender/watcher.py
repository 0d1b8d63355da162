"""Watch mode: re-render markdown sources when they change."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger("mdrender.watcher")


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A batch of relevant file changes."""

    changed_paths: frozenset[Path]
    timestamp: float


@dataclass(frozen=True, slots=True)
class WatchCycleResult:
    """Result of a single watch render cycle."""

    duration_s: float
    changed_paths: frozenset[Path]
    outputs: tuple[str, ...] = ()
    skipped: tuple[Path, ...] = ()


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install mdrender[watch]"
        ) from None


def filter_watched_files(
    changed_paths: frozenset[Path],
    *,
    targets: Sequence[Path],
    suffixes: Sequence[str],
) -> frozenset[Path]:
    """Keep changes to the targets themselves, or to suffixed files under them."""
    kept: set[Path] = set()
    for p in changed_paths:
        if p in targets:
            kept.add(p)
            continue
        if p.suffix not in suffixes:
            continue
        if any(p.is_relative_to(t) for t in targets):
            kept.add(p)
    return frozenset(kept)


async def run_watch_loop(
    *,
    changes_iter: AsyncIterator[set[tuple[Any, str]]],
    run_cycle: Callable[[WatchEvent], WatchCycleResult],
    on_event: Callable[[str], None],
    on_cycle_result: Callable[[WatchCycleResult], None],
    on_error: Callable[[BaseException], None],
    targets: Sequence[Path],
    suffixes: Sequence[str],
) -> None:
    """Main watch loop. Consumes changes_iter, filters, and calls run_cycle."""
    async for raw_changes in changes_iter:
        paths = frozenset(Path(p) for _, p in raw_changes)
        relevant = filter_watched_files(paths, targets=targets, suffixes=suffixes)
        if not relevant:
            logger.debug("ignoring %d unrelated change(s)", len(paths))
            continue

        event = WatchEvent(changed_paths=relevant, timestamp=time.monotonic())

        names = ", ".join(str(p) for p in sorted(relevant))
        on_event(f"[watch] change detected: {names}")
        on_event("[watch] rendering...")

        try:
            result = run_cycle(event)
        except Exception as exc:
            on_error(exc)
            continue

        on_event(f"[watch] done ({result.duration_s:.1f}s)")
        on_cycle_result(result)


def format_watch_cycle_json(result: WatchCycleResult) -> dict[str, object]:
    """Format a cycle result as a JSON-serializable dict."""
    return {
        "command": "watch",
        "ok": True,
        "duration_s": round(result.duration_s, 2),
        "changed_paths": sorted(str(p) for p in result.changed_paths),
        "outputs": list(result.outputs),
        "skipped": sorted(str(p) for p in result.skipped),
    }


def build_cycle_runner(
    render_path: Callable[[Path], str],
) -> Callable[[WatchEvent], WatchCycleResult]:
    """Create a cycle runner that renders every changed path with `render_path`.

    `render_path` returns a description of where the output went (a file path
    or "-" for stdout) and raises on failure.
    """

    def runner(event: WatchEvent) -> WatchCycleResult:
        t0 = time.monotonic()
        outputs: list[str] = []
        skipped: list[Path] = []
        for path in sorted(event.changed_paths):
            if not path.is_file():
                # Deleted or renamed away; nothing to render.
                logger.warning("skipping missing file %s", path)
                skipped.append(path)
                continue
            outputs.append(render_path(path))

        duration = time.monotonic() - t0
        return WatchCycleResult(
            duration_s=duration,
            changed_paths=event.changed_paths,
            outputs=tuple(outputs),
            skipped=tuple(skipped),
        )

    return runner


def make_watchfiles_iter(
    watch_paths: list[Path],
    *,
    debounce_ms: int = 200,
) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch()."""
    import watchfiles  # type: ignore[import-untyped]

    return watchfiles.awatch(*watch_paths, debounce=debounce_ms)

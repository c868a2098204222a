from __future__ import annotations

"""Report naming and writing.

Several analyses can run in one process (multi-target builds), so report
names are de-duplicated with a counter. The counter lives in a `ReportState`
owned by the caller and passed to every call that needs it.
"""

import html
import json
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .config import DEFAULT_SERVER_PORT, AnalyzerMode, JsonMode, ServerMode, StaticMode
from .errors import ConfigError
from .paths import safe_join
from .types import ChunkRecord

_UNITS = ("B", "KB", "MB", "GB", "TB")

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body data-mode="{mode}">
<script type="application/json" id="bundle-sizer-data">{data}</script>
</body>
</html>
"""


@dataclass
class ReportState:
    call_count: int = 0


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    if unit == 0:
        return f"{size} B"
    return f"{value:.2f} {_UNITS[unit]}"


def summary_message(chunks: Iterable[ChunkRecord]) -> str:
    chunks = list(chunks)
    parsed = sum(c.metrics.parsed_size for c in chunks)
    gzip = sum(c.metrics.gzip_size for c in chunks)
    map_size = sum(c.metrics.map_size for c in chunks)

    extra = " | ".join(
        part for part in (gzip and f"gzip: {format_bytes(gzip)}", map_size and f"map: {format_bytes(map_size)}") if part
    )
    message = f"{len(chunks)} chunks of {format_bytes(parsed)}"
    return f"{message} ({extra})" if extra else message


def report_path(directory: Path, file_name: str, extension: str, state: ReportState) -> Path:
    """Pick `<name>.<ext>`, or `<name>-<n>.<ext>` when that file already exists.

    Every call counts as one report-producing run. `n` starts at the call
    count and goes up until the name is free, so no report is overwritten.
    """

    state.call_count += 1
    path = safe_join(directory, f"{file_name}.{extension}")
    n = state.call_count
    while path.exists():
        path = safe_join(directory, f"{file_name}-{n}.{extension}")
        n += 1
    return path


def server_port(mode: ServerMode, state: ReportState) -> int:
    if mode.port == "auto":
        return 0
    if mode.port is not None:
        return mode.port
    return DEFAULT_SERVER_PORT + state.call_count


def render_json(tree: dict) -> str:
    return json.dumps(tree, indent=2)


def render_static(tree: dict, title: str, default_sizes: str) -> str:
    # "</" must not appear inside the script element.
    data = json.dumps(tree).replace("</", "<\\/")
    return _PAGE.format(title=html.escape(title), mode=html.escape(default_sizes), data=data)


def write_report(
    tree: dict,
    mode: AnalyzerMode,
    directory: Path,
    state: ReportState,
    *,
    default_sizes: str = "stat",
) -> Path:
    if isinstance(mode, ServerMode):
        raise ConfigError("Server mode serves the report instead of writing it")

    directory.mkdir(parents=True, exist_ok=True)
    path = report_path(directory, mode.file_name, mode.extension, state)
    if isinstance(mode, JsonMode):
        path.write_text(render_json(tree), encoding="utf-8")
    elif isinstance(mode, StaticMode):
        path.write_text(render_static(tree, mode.report_title, default_sizes), encoding="utf-8")
    return path

from __future__ import annotations

"""Analyzer options, resolved once before any chunk is analyzed.

Each report mode is its own frozen dataclass carrying only the fields that
mode uses; `AnalyzerMode` is their union.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Union

from .errors import ConfigError
from .types import SizeKind

DEFAULT_REPORT_NAME = "stats"
DEFAULT_REPORT_TITLE = "bundle-sizer"
DEFAULT_SERVER_PORT = 8888

COMPRESSION_LEVELS = {
    "gzip": (6, range(0, 10)),
    "zstd": (3, range(1, 23)),
}


@dataclass(frozen=True)
class JsonMode:
    file_name: str = DEFAULT_REPORT_NAME

    name = "json"
    extension = "json"


@dataclass(frozen=True)
class StaticMode:
    file_name: str = DEFAULT_REPORT_NAME
    report_title: str = DEFAULT_REPORT_TITLE
    open_analyzer: bool = False

    name = "static"
    extension = "html"


@dataclass(frozen=True)
class ServerMode:
    port: int | Literal["auto"] | None = None
    report_title: str = DEFAULT_REPORT_TITLE
    open_analyzer: bool = True

    name = "server"


AnalyzerMode = Union[JsonMode, StaticMode, ServerMode]


@dataclass(frozen=True)
class CompressionOptions:
    algorithm: Literal["gzip", "zstd"] = "gzip"
    level: int = 6


@dataclass(frozen=True)
class SourcemapOption:
    """How the build's own sourcemap setting relates to what analysis needs.

    Analysis always needs maps. When the build did not ask for them, they are
    emitted hidden and dropped again once the sizes are known.
    """

    requested: bool | str | None = None

    @property
    def emit(self) -> bool | str:
        return True if self.requested is True else "hidden"

    @property
    def keep_maps(self) -> bool:
        return self.requested in (True, "hidden")

    @property
    def inline(self) -> bool:
        return self.requested == "inline"


@dataclass(frozen=True)
class AnalyzerConfig:
    mode: AnalyzerMode = field(default_factory=JsonMode)
    workspace_root: Path = field(default_factory=Path.cwd)
    default_sizes: SizeKind = SizeKind.STAT
    summary: bool = True
    compression: CompressionOptions = field(default_factory=CompressionOptions)
    sourcemap: SourcemapOption = field(default_factory=SourcemapOption)
    workers: int = 1
    compact: bool = False


def resolve_mode(
    name: str,
    *,
    file_name: str | None = None,
    report_title: str | None = None,
    open_analyzer: bool | None = None,
    port: int | str | None = None,
) -> AnalyzerMode:
    title = report_title or DEFAULT_REPORT_TITLE
    if name == "json":
        return JsonMode(file_name=file_name or DEFAULT_REPORT_NAME)
    if name == "static":
        return StaticMode(
            file_name=file_name or DEFAULT_REPORT_NAME,
            report_title=title,
            open_analyzer=bool(open_analyzer),
        )
    if name == "server":
        if port is not None and port != "auto" and (not isinstance(port, int) or not 0 <= port <= 65535):
            raise ConfigError(f"Invalid server port {port!r}")
        return ServerMode(
            port=port,  # type: ignore[arg-type]
            report_title=title,
            open_analyzer=True if open_analyzer is None else open_analyzer,
        )
    raise ConfigError(f"Unknown analyzer mode {name!r} (expected json, static or server)")


def resolve_sourcemap_option(value: object) -> SourcemapOption:
    if value is None or isinstance(value, bool) or value in ("hidden", "inline"):
        return SourcemapOption(requested=value)  # type: ignore[arg-type]
    raise ConfigError(f"Invalid sourcemap option {value!r}")


def resolve_config(
    *,
    mode: AnalyzerMode | None = None,
    workspace_root: Path | str | None = None,
    default_sizes: str = "stat",
    summary: bool = True,
    compression: str = "gzip",
    compression_level: int | None = None,
    sourcemap: object = None,
    workers: int = 1,
    compact: bool = False,
) -> AnalyzerConfig:
    """Validate raw option values and freeze them into an AnalyzerConfig."""

    try:
        sizes = SizeKind(default_sizes)
    except ValueError:
        raise ConfigError(f"Invalid default sizes {default_sizes!r} (expected stat, parsed or gzip)") from None

    if compression not in COMPRESSION_LEVELS:
        raise ConfigError(f"Unknown compression algorithm {compression!r}")
    default_level, allowed = COMPRESSION_LEVELS[compression]
    level = default_level if compression_level is None else compression_level
    if level not in allowed:
        raise ConfigError(f"Compression level {level} out of range for {compression}")

    if workers < 1:
        raise ConfigError(f"workers must be at least 1, got {workers}")

    root = Path(workspace_root) if workspace_root is not None else Path.cwd()

    return AnalyzerConfig(
        mode=mode or JsonMode(),
        workspace_root=root.resolve(),
        default_sizes=sizes,
        summary=summary,
        compression=CompressionOptions(algorithm=compression, level=level),  # type: ignore[arg-type]
        sourcemap=resolve_sourcemap_option(sourcemap),
        workers=workers,
        compact=compact,
    )

from __future__ import annotations

"""Size metrics for modules and chunks."""

import gzip
import json
import threading
from collections.abc import Callable

import zstandard as zstd

from .config import CompressionOptions
from .types import MappingEntry, Metrics

Compressor = Callable[[bytes], bytes]


def make_compressor(options: CompressionOptions) -> Compressor:
    if options.algorithm == "zstd":
        # A ZstdCompressor must not be shared between threads.
        local = threading.local()

        def compress(data: bytes) -> bytes:
            cctx = getattr(local, "cctx", None)
            if cctx is None:
                cctx = local.cctx = zstd.ZstdCompressor(level=options.level)
            return cctx.compress(data)

        return compress
    # mtime is pinned so identical input always compresses identically.
    return lambda data: gzip.compress(data, compresslevel=options.level, mtime=0)


def compressed_size(data: bytes, compress: Compressor) -> int:
    if not data:
        return 0
    return len(compress(data))


def measure(data: bytes, compress: Compressor, *, map_size: int = 0, stat_size: int = 0) -> Metrics:
    """Build the metrics record for one module or chunk."""

    return Metrics(
        parsed_size=len(data),
        gzip_size=compressed_size(data, compress),
        map_size=map_size,
        stat_size=stat_size,
    )


def module_map_size(entries: list[MappingEntry], source_names: list[str], content: str | None) -> int:
    """Bytes of a source map document that exist because of one module.

    Counts the module's VLQ segments (plus one separator each), its quoted
    entries in `sources` and its `sourcesContent` text.
    """

    size = sum(entry.segment_length + 1 for entry in entries)
    size += sum(len(json.dumps(name).encode("utf-8")) for name in source_names)
    if content:
        size += len(json.dumps(content).encode("utf-8"))
    return size

from __future__ import annotations

"""Decoder for standard (revision 3) source maps.

The `mappings` string is decoded into `MappingEntry` values grouped by the
original module they point at. Segments without a source (bundler runtime,
helpers) still bound the column spans of their neighbours but are never
attributed to a module.

Anything that is not a usable map raises MalformedSourceMap; callers fall back
to whole-chunk sizes.
"""

import base64
import binascii
import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from .errors import MalformedSourceMap
from .types import DecodedSourceMap, MappingEntry

logger = logging.getLogger(__name__)

# Mapping of base64 letter -> integer value.
B64 = {c: i for i, c in enumerate("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/")}

_INLINE_MAP = re.compile(
    rb"sourceMappingURL=data:application/json;(?:charset=utf-?8;)?base64,([A-Za-z0-9+/=]+)\s*$"
)


@dataclass(frozen=True)
class _Segment:
    line: int
    column: int
    source: str | None
    length: int


def parse_vlq(segment: str) -> list[int]:
    """Parse a string of VLQ-encoded data into a list of integers."""

    values: list[int] = []
    cur, shift = 0, 0
    for c in segment:
        try:
            val = B64[c]
        except KeyError:
            raise MalformedSourceMap(f"Invalid base64 VLQ character {c!r} in {segment!r}") from None
        # 5 bits of value, the high bit is the continuation.
        val, cont = val & 0b11111, val >> 5
        cur += val << shift
        shift += 5
        if not cont:
            # The low bit of the unpacked value is the sign.
            cur, sign = cur >> 1, cur & 1
            values.append(-cur if sign else cur)
            cur, shift = 0, 0

    if shift:
        raise MalformedSourceMap(f"Truncated VLQ segment {segment!r}")
    return values


def load_source_map(raw: str | bytes) -> dict:
    try:
        document = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedSourceMap(f"Source map is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise MalformedSourceMap("Source map must be a JSON object")
    version = document.get("version", 3)
    if version != 3:
        raise MalformedSourceMap(f"Unsupported source map version {version!r}")
    return document


def _resolve_sources(document: dict) -> list[str | None]:
    sources = document.get("sources")
    if not isinstance(sources, list):
        raise MalformedSourceMap("Source map has no 'sources' list")

    root = document.get("sourceRoot") or ""
    if not isinstance(root, str):
        raise MalformedSourceMap("'sourceRoot' must be a string")

    resolved: list[str | None] = []
    for source in sources:
        if source is None:
            resolved.append(None)
            continue
        if not isinstance(source, str):
            raise MalformedSourceMap(f"Invalid source entry {source!r}")
        if root and "://" not in source and not source.startswith("/"):
            source = root.rstrip("/") + "/" + source
        resolved.append(source)
    return resolved


def _read_segments(
    document: dict,
    line_offset: int,
    column_offset: int,
    segments: list[_Segment],
    contents: dict[str, str],
    order: list[str],
) -> None:
    mappings = document.get("mappings")
    if not isinstance(mappings, str):
        raise MalformedSourceMap("Source map has no 'mappings' string")

    sources = _resolve_sources(document)
    order.extend(name for name in sources if name is not None)
    sources_content = document.get("sourcesContent") or []
    if not isinstance(sources_content, list):
        raise MalformedSourceMap("'sourcesContent' must be a list")
    for name, content in zip(sources, sources_content):
        if name is not None and isinstance(content, str):
            contents[name] = content

    source_idx = 0
    for line_no, line in enumerate(mappings.split(";")):
        column = 0
        for segment in line.split(","):
            if not segment:
                continue
            fields = parse_vlq(segment)
            if len(fields) not in (1, 4, 5):
                raise MalformedSourceMap(f"Segment {segment!r} has {len(fields)} fields")

            column += fields[0]
            if column < 0:
                raise MalformedSourceMap(f"Negative generated column in segment {segment!r}")

            source = None
            if len(fields) > 1:
                source_idx += fields[1]
                if not 0 <= source_idx < len(sources):
                    raise MalformedSourceMap(f"Source index {source_idx} out of range")
                source = sources[source_idx]

            # Section offsets only shift the first line's columns.
            shifted = column + column_offset if line_no == 0 else column
            segments.append(_Segment(line_no + line_offset, shifted, source, len(segment)))


def _collect(document: dict) -> tuple[list[_Segment], dict[str, str], list[str]]:
    segments: list[_Segment] = []
    contents: dict[str, str] = {}
    order: list[str] = []

    if "sections" not in document:
        _read_segments(document, 0, 0, segments, contents, order)
        return segments, contents, order

    sections = document["sections"]
    if not isinstance(sections, list):
        raise MalformedSourceMap("'sections' must be a list")
    for section in sections:
        if not isinstance(section, dict) or not isinstance(section.get("map"), dict):
            raise MalformedSourceMap("Only indexed maps with embedded section maps are supported")
        offset = section.get("offset") or {}
        try:
            line_offset = int(offset.get("line", 0))
            column_offset = int(offset.get("column", 0))
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedSourceMap(f"Invalid section offset {offset!r}") from e
        _read_segments(section["map"], line_offset, column_offset, segments, contents, order)
    return segments, contents, order


def decode_source_map(raw: str | bytes, formatter: Callable[[str], str] = str) -> DecodedSourceMap:
    """Group a source map's mappings by formatted module id.

    Within every generated line, each entry's `last_column` is the column just
    before the next segment on that line (whichever module it belongs to), or
    None for the line's last segment.

    When several segments share a (line, column) position, the one that appears
    last in `mappings` wins.
    """

    segments, contents, order = _collect(load_source_map(raw))

    by_position: dict[tuple[int, int], _Segment] = {}
    for seg in segments:
        by_position[(seg.line, seg.column)] = seg
    ordered = sorted(by_position.values(), key=lambda s: (s.line, s.column))
    if len(ordered) != len(segments):
        logger.debug("Dropped %d duplicate mapping positions", len(segments) - len(ordered))

    entries: dict[str, list[MappingEntry]] = {}
    source_names: dict[str, list[str]] = {}
    ids: dict[str, str] = {}

    for i, seg in enumerate(ordered):
        if seg.source is None:
            continue
        nxt = ordered[i + 1] if i + 1 < len(ordered) else None
        last_column = nxt.column - 1 if nxt is not None and nxt.line == seg.line else None

        module_id = ids.get(seg.source)
        if module_id is None:
            module_id = ids[seg.source] = formatter(seg.source)
        entries.setdefault(module_id, []).append(
            MappingEntry(
                line=seg.line,
                column=seg.column,
                last_column=last_column,
                source=seg.source,
                segment_length=seg.length,
            )
        )
        names = source_names.setdefault(module_id, [])
        if seg.source not in names:
            names.append(seg.source)

    # Modules are listed in the order the map declares their sources.
    rank = {name: i for i, name in reversed(list(enumerate(order)))}
    module_ids = sorted(entries, key=lambda module_id: min(rank[name] for name in source_names[module_id]))

    return DecodedSourceMap(
        entries={module_id: entries[module_id] for module_id in module_ids},
        source_names={module_id: source_names[module_id] for module_id in module_ids},
        sources_content={
            module_id: "".join(contents.get(name, "") for name in source_names[module_id]) for module_id in module_ids
        },
    )


def extract_inline_source_map(code: bytes) -> str | None:
    """Return the JSON text of a trailing base64 `sourceMappingURL` data URL, if any."""

    idx = code.rfind(b"sourceMappingURL=data:")
    if idx < 0:
        return None
    match = _INLINE_MAP.match(code, idx)
    if match is None:
        return None
    try:
        return base64.b64decode(match.group(1), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise MalformedSourceMap(f"Inline source map is not valid base64 JSON: {e}") from e

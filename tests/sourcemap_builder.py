from __future__ import annotations

"""Build small v3 source maps for tests."""

import base64
import json

_B64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def encode_vlq(value: int) -> str:
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    out = ""
    while True:
        digit = vlq & 0b11111
        vlq >>= 5
        if vlq:
            digit |= 0b100000
        out += _B64[digit]
        if not vlq:
            return out


def encode_mappings(lines: list[list[tuple[int, int | None]]]) -> str:
    """`lines[i]` lists (generated column, source index or None) segments of line i."""

    prev_source = 0
    encoded: list[str] = []
    for line in lines:
        prev_col = 0
        segments: list[str] = []
        for column, source in line:
            segment = encode_vlq(column - prev_col)
            prev_col = column
            if source is not None:
                segment += encode_vlq(source - prev_source) + "AA"
                prev_source = source
            segments.append(segment)
        encoded.append(",".join(segments))
    return ";".join(encoded)


def build_source_map(
    sources: list[str],
    lines: list[list[tuple[int, int | None]]],
    *,
    contents: list[str] | None = None,
    source_root: str | None = None,
) -> str:
    document: dict = {"version": 3, "sources": sources, "names": [], "mappings": encode_mappings(lines)}
    if contents is not None:
        document["sourcesContent"] = contents
    if source_root is not None:
        document["sourceRoot"] = source_root
    return json.dumps(document)


def inline_comment(source_map: str) -> bytes:
    data = base64.b64encode(source_map.encode("utf-8"))
    return b"//# sourceMappingURL=data:application/json;base64," + data + b"\n"

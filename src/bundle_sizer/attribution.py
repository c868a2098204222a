from __future__ import annotations

"""Rebuild the slice of generated code each original module produced.

Generated code is handled as bytes and split into lines once per chunk.
Source map columns count UTF-16 code units, not bytes, so every referenced
line is decoded and re-encoded as UTF-16-LE before it is sliced. Non-ASCII
text (CJK string literals, emoji) would otherwise shift every range after it.

Minifiers are known to emit maps whose column spans are unreliable, so a
mapping without an end column simply claims the rest of its line.
"""

import logging
from itertools import groupby

from .errors import MissingGeneratedLine
from .types import MappingEntry

logger = logging.getLogger(__name__)

_UTF16 = "utf-16-le"


def split_lines(code: bytes) -> list[bytes]:
    """Split generated code on LF. A trailing newline does not start a new line."""

    lines = code.split(b"\n")
    if lines and not lines[-1]:
        lines.pop()
    return lines


def _line(lines: list[bytes], index: int) -> bytes:
    if not 0 <= index < len(lines):
        raise MissingGeneratedLine(index, len(lines))
    return lines[index]


def _units(line: bytes) -> bytes:
    return line.decode("utf-8", errors="replace").encode(_UTF16, errors="surrogatepass")


def _slice(units: bytes, start: int, end: int | None) -> str:
    chunk = units[start * 2 :] if end is None else units[start * 2 : end * 2]
    return chunk.decode(_UTF16, errors="surrogatepass")


def line_ranges(entries: list[MappingEntry]) -> list[tuple[int, int | None]]:
    """Column ranges `[start, end)` covered by one module's entries on a single line.

    `None` as the end means the rest of the line.
    """

    if len(entries) == 1:
        return [(entries[0].column, None)]
    # last_column + 1 is exactly the next entry's column when the two are adjacent.
    return [(e.column, None if e.last_column is None else e.last_column + 1) for e in entries]


def reconstruct(lines: list[bytes], entries: list[MappingEntry]) -> str:
    """Concatenate the generated text covered by one module's entries.

    `entries` must be sorted by (line, column). An entry with no `last_column`,
    or alone on its line, covers the rest of the line.
    """

    parts: list[str] = []
    for line_no, group in groupby(entries, key=lambda e: e.line):
        on_line = list(group)
        try:
            units = _units(_line(lines, line_no))
        except MissingGeneratedLine as e:
            logger.debug("Skipping %d mapping(s): %s", len(on_line), e)
            continue

        parts.extend(_slice(units, start, end) for start, end in line_ranges(on_line))
    return "".join(parts)

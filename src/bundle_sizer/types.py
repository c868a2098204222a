from __future__ import annotations

"""Data model shared by the decoder, the reconstructor and the trie.

Sizes are always byte counts. Columns in `MappingEntry` are UTF-16 code units
and lines are zero-based, which is how standard source maps count them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class SizeKind(str, Enum):
    STAT = "stat"
    PARSED = "parsed"
    GZIP = "gzip"


@dataclass(frozen=True)
class Metrics:
    parsed_size: int = 0
    gzip_size: int = 0
    map_size: int = 0
    stat_size: int = 0

    def __add__(self, other: "Metrics") -> "Metrics":
        return Metrics(
            parsed_size=self.parsed_size + other.parsed_size,
            gzip_size=self.gzip_size + other.gzip_size,
            map_size=self.map_size + other.map_size,
            stat_size=self.stat_size + other.stat_size,
        )

    @classmethod
    def total(cls, items: Iterable[Metrics]) -> "Metrics":
        result = cls()
        for item in items:
            result = result + item
        return result

    def to_dict(self) -> dict[str, int]:
        return {
            "parsedSize": self.parsed_size,
            "gzipSize": self.gzip_size,
            "mapSize": self.map_size,
            "statSize": self.stat_size,
        }


@dataclass(frozen=True)
class MappingEntry:
    line: int
    column: int
    last_column: int | None
    source: str
    segment_length: int = 0


@dataclass(frozen=True)
class DecodedSourceMap:
    """Mapping entries grouped per module id, plus what the map says about each module."""

    entries: dict[str, list[MappingEntry]]
    source_names: dict[str, list[str]]
    sources_content: dict[str, str]


@dataclass(frozen=True)
class Artifact:
    """One generated file of a build, as handed over by the build tool."""

    file_name: str
    code: bytes
    is_chunk: bool = True
    source_map: str | None = None


@dataclass(frozen=True)
class ModuleRecord:
    id: str
    metrics: Metrics
    text: str | None = None


@dataclass(frozen=True)
class ChunkRecord:
    file_name: str
    metrics: Metrics
    modules: list[ModuleRecord] = field(default_factory=list)
    has_source_map: bool = False


@dataclass(frozen=True)
class AttributionDrift:
    """Bytes of a chunk that no module accounts for (helpers, lossy maps)."""

    file_name: str
    chunk_size: int
    attributed_size: int

    @property
    def unattributed(self) -> int:
        return self.chunk_size - self.attributed_size

from __future__ import annotations

"""Attribute the size of every generated chunk to the modules it came from.

For each JavaScript chunk of a build:

- decode its source map and group the mappings per original module
- rebuild the generated text each module produced and measure it
- insert the chunk (with its whole-file sizes) and its modules into the trie

Chunks are independent of each other. With `workers > 1` they are measured on
a thread pool, but the trie is only written from the calling thread, in the
order the build listed the chunks.
"""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .attribution import reconstruct, split_lines
from .config import AnalyzerConfig
from .errors import MalformedSourceMap
from .metrics import make_compressor, measure, module_map_size
from .paths import chunk_dir, format_module_id
from .report import summary_message
from .sourcemap import decode_source_map, extract_inline_source_map
from .trie import PathTrie
from .types import Artifact, AttributionDrift, ChunkRecord, ModuleRecord

logger = logging.getLogger(__name__)

JS_EXTENSIONS = (".js", ".mjs", ".cjs")


@dataclass
class AnalysisResult:
    tree: PathTrie
    chunks: list[ChunkRecord] = field(default_factory=list)
    drifts: list[AttributionDrift] = field(default_factory=list)
    discarded_maps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return self.tree.to_dict()


def expect_js(file_name: str) -> bool:
    return file_name.endswith(JS_EXTENSIONS)


def pair_artifacts(artifacts: Iterable[Artifact]) -> tuple[list[tuple[Artifact, str | None]], list[str]]:
    """Select the JavaScript chunks of a build and pair each with its source map.

    A chunk's own `source_map` wins; otherwise a sibling `<file>.map` asset is
    used. Returns the pairs in listing order and the names of the map assets
    that were paired.
    """

    artifacts = list(artifacts)
    by_name = {artifact.file_name: artifact for artifact in artifacts}

    pairs: list[tuple[Artifact, str | None]] = []
    map_names: list[str] = []
    for artifact in artifacts:
        if not expect_js(artifact.file_name):
            continue
        source_map = artifact.source_map
        sibling = by_name.get(artifact.file_name + ".map")
        if sibling is not None:
            map_names.append(sibling.file_name)
            if source_map is None:
                source_map = sibling.code.decode("utf-8", errors="replace")
        pairs.append((artifact, source_map))
    return pairs, map_names


class BundleAnalyzer:
    def __init__(self, config: AnalyzerConfig, output_dir: Path | None = None, *, keep_text: bool = False) -> None:
        self.config = config
        self.output_dir = output_dir if output_dir is not None else config.workspace_root
        self.keep_text = keep_text
        self.compress = make_compressor(config.compression)
        self.tree = PathTrie()
        self.chunks: list[ChunkRecord] = []
        self.drifts: list[AttributionDrift] = []
        if config.sourcemap.inline:
            logger.warning("The build emits inline source maps; chunk sizes include them and may be inaccurate")

    def _measure_modules(self, artifact: Artifact, source_map: str) -> list[ModuleRecord]:
        root = self.config.workspace_root.as_posix()
        map_dir = chunk_dir(self.config.workspace_root, self.output_dir, artifact.file_name)
        decoded = decode_source_map(source_map, lambda source: format_module_id(source, map_dir, root))

        lines = split_lines(artifact.code)
        records: list[ModuleRecord] = []
        for module_id, entries in decoded.entries.items():
            text = reconstruct(lines, entries)
            if not text:
                logger.debug("%s: %s has no bytes in the generated code", artifact.file_name, module_id)
                continue
            content = decoded.sources_content.get(module_id)
            metrics = measure(
                text.encode("utf-8", errors="surrogatepass"),
                self.compress,
                map_size=module_map_size(entries, decoded.source_names[module_id], content),
                stat_size=len(content.encode("utf-8", errors="surrogatepass")) if content else 0,
            )
            records.append(ModuleRecord(module_id, metrics, text if self.keep_text else None))
        return records

    def measure_chunk(self, artifact: Artifact, source_map: str | None = None) -> ChunkRecord:
        """Compute a chunk's record without touching the trie. Safe to call from worker threads."""

        modules: list[ModuleRecord] = []
        try:
            if source_map is None:
                source_map = extract_inline_source_map(artifact.code)
                if source_map is not None:
                    logger.warning(
                        "%s: using an inline source map; it is counted in the chunk's own size",
                        artifact.file_name,
                    )
            if source_map is not None:
                modules = self._measure_modules(artifact, source_map)
        except MalformedSourceMap as e:
            logger.warning("%s: %s; reporting whole-chunk sizes only", artifact.file_name, e)
            modules = []

        metrics = measure(
            artifact.code,
            self.compress,
            map_size=len(source_map.encode("utf-8")) if source_map else 0,
            stat_size=sum(module.metrics.stat_size for module in modules),
        )
        return ChunkRecord(artifact.file_name, metrics, modules, has_source_map=source_map is not None)

    def insert(self, record: ChunkRecord) -> None:
        chunk = self.tree.insert_chunk(record.file_name, record.metrics)
        for module in record.modules:
            chunk.modules.insert(module.id, module.metrics)
        self.chunks.append(record)

        if record.modules:
            drift = AttributionDrift(
                file_name=record.file_name,
                chunk_size=record.metrics.parsed_size,
                attributed_size=sum(module.metrics.parsed_size for module in record.modules),
            )
            if drift.unattributed:
                logger.debug("%s: %d bytes not attributed to any module", record.file_name, drift.unattributed)
            self.drifts.append(drift)

    def process_chunk(self, artifact: Artifact, source_map: str | None = None) -> ChunkRecord:
        record = self.measure_chunk(artifact, source_map)
        self.insert(record)
        return record

    def analyze(self, artifacts: Iterable[Artifact]) -> AnalysisResult:
        pairs, map_names = pair_artifacts(artifacts)

        if self.config.workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                records = list(pool.map(lambda pair: self.measure_chunk(*pair), pairs))
        else:
            records = [self.measure_chunk(artifact, source_map) for artifact, source_map in pairs]

        for record in records:
            self.insert(record)

        if self.config.compact:
            self.tree.compact()
        if self.config.summary:
            logger.info(summary_message(self.chunks))

        return AnalysisResult(
            tree=self.tree,
            chunks=list(self.chunks),
            drifts=list(self.drifts),
            discarded_maps=[] if self.config.sourcemap.keep_maps else map_names,
        )

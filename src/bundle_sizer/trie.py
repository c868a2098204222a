from __future__ import annotations

"""Path trie that rolls size metrics up from leaves to directories.

Directories keep their children in insertion order, which is the order the
rendering layer lays them out in. Inserting the same path twice yields two
sibling leaves: one original module bundled into two chunks is two separate
footprints.

A chunk is a leaf to the directories above it, but it also owns a trie of the
modules attributed to it. That module trie is a roll-up scope of its own: the
chunk keeps its whole-artifact sizes, which usually differ from the sum of its
modules (runtime helpers, lossy maps).
"""

from collections.abc import Iterator

from .paths import split_path
from .types import Metrics


class DirectoryNode:
    def __init__(self, name: str) -> None:
        self.name = name
        self.metrics = Metrics()
        self.children: list[Node] = []
        self._dirs: dict[str, DirectoryNode] = {}

    def directory(self, name: str) -> DirectoryNode:
        child = self._dirs.get(name)
        if child is None:
            child = self._dirs[name] = DirectoryNode(name)
            self.children.append(child)
        return child

    def recompute(self) -> None:
        self.metrics = Metrics.total(child.metrics for child in self.children)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            **self.metrics.to_dict(),
            "children": [child.to_dict() for child in self.children],
        }


class LeafNode:
    def __init__(self, name: str, path: str, metrics: Metrics) -> None:
        self.name = name
        self.path = path
        self.metrics = metrics

    def to_dict(self) -> dict:
        return {"name": self.name, "id": self.path, **self.metrics.to_dict()}


class ChunkNode(LeafNode):
    def __init__(self, name: str, path: str, metrics: Metrics) -> None:
        super().__init__(name, path, metrics)
        self.modules = PathTrie(base=path)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["isChunk"] = True
        if self.modules.root.children:
            data["children"] = [child.to_dict() for child in self.modules.root.children]
        return data


Node = DirectoryNode | LeafNode


class PathTrie:
    def __init__(self, name: str = "", base: str = "") -> None:
        self.root = DirectoryNode(name)
        self.base = base

    def _descend(self, path: str) -> tuple[list[DirectoryNode], str]:
        parts = split_path(path)
        if not parts:
            raise ValueError(f"Cannot insert empty path {path!r}")
        ancestors = [self.root]
        for part in parts[:-1]:
            ancestors.append(ancestors[-1].directory(part))
        return ancestors, parts[-1]

    def _attach(self, ancestors: list[DirectoryNode], leaf: LeafNode) -> None:
        ancestors[-1].children.append(leaf)
        for directory in reversed(ancestors):
            directory.recompute()

    def _full_path(self, path: str) -> str:
        rel = "/".join(split_path(path))
        return f"{self.base}/{rel}" if self.base else rel

    def insert(self, path: str, metrics: Metrics) -> LeafNode:
        """Add a leaf at `path`, creating missing directories, and update every ancestor."""

        ancestors, name = self._descend(path)
        leaf = LeafNode(name, self._full_path(path), metrics)
        self._attach(ancestors, leaf)
        return leaf

    def insert_chunk(self, path: str, metrics: Metrics) -> ChunkNode:
        ancestors, name = self._descend(path)
        chunk = ChunkNode(name, self._full_path(path), metrics)
        self._attach(ancestors, chunk)
        return chunk

    def directories(self) -> Iterator[DirectoryNode]:
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed([child for child in node.children if isinstance(child, DirectoryNode)]))

    def leaves(self) -> Iterator[LeafNode]:
        for directory in self.directories():
            for child in directory.children:
                if isinstance(child, LeafNode):
                    yield child

    def compact(self) -> None:
        """Merge chains of single-directory children into one `a/b/c` node.

        Chunk module tries are compacted too. Sizes do not change.
        """

        self._compact(self.root)
        for leaf in self.leaves():
            if isinstance(leaf, ChunkNode):
                leaf.modules.compact()

    def _compact(self, directory: DirectoryNode) -> None:
        for i, child in enumerate(directory.children):
            if not isinstance(child, DirectoryNode):
                continue
            while len(child.children) == 1 and isinstance(child.children[0], DirectoryNode):
                only = child.children[0]
                only.name = f"{child.name}/{only.name}"
                child = only
            directory.children[i] = child
            self._compact(child)
        # Merged names no longer match path segments; further inserts start fresh.
        directory._dirs = {
            child.name: child for child in directory.children if isinstance(child, DirectoryNode)
        }

    def to_dict(self) -> dict:
        return self.root.to_dict()

from __future__ import annotations

"""Path normalization for module ids, trie keys and report files.

Source maps name their sources in many ways: relative to the map file,
absolute, as URLs (`webpack://`, `file://`), with Windows separators, or as
bundler virtual ids prefixed with a NUL byte. Everything is turned into a
stable POSIX-style id relative to the workspace root.
"""

import json
import posixpath
import re
from pathlib import Path, PurePosixPath

from .errors import UnsafePathError

VIRTUAL_PREFIX = "\0"

UNKNOWN_MODULE = "(unknown)"

WORKSPACE_MARKERS = ("pnpm-workspace.yaml", "lerna.json")

_DRIVE_LETTER = re.compile(r"^[A-Za-z]:$")
_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def split_path(path: str) -> list[str]:
    """Split a path on either separator, dropping empty and '.' segments."""

    return [part for part in re.split(r"[\\/]", path) if part not in ("", ".")]


def _strip_scheme(path: str) -> str:
    match = _SCHEME.match(path)
    if match is None:
        return path
    return path[match.end() :]


def _posix(path: str) -> str:
    path = path.replace("\\", "/")
    parts = path.split("/")
    # "C:/x" and "/C:/x" (from file:///C:/x) both lose the drive.
    return "/".join("" if i < 2 and _DRIVE_LETTER.match(part) else part for i, part in enumerate(parts))


def normalize_relative_path(untrusted_path: str) -> str:
    """Normalize a path into a relative POSIX path.

    - Normalizes separators to '/'
    - Resolves '.' and '..' segments; '..' above the top is dropped
    - Strips Windows drive letters and leading slashes
    """

    parts: list[str] = []
    for part in _posix(untrusted_path).split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return "/".join(parts)


def format_module_id(source: str, map_dir: str, workspace_root: str) -> str:
    """Turn a resolved source map source into a workspace-relative module id.

    `map_dir` is the absolute POSIX directory of the map (relative sources
    are resolved against it) and `workspace_root` the absolute POSIX root.
    """

    virtual = source.startswith(VIRTUAL_PREFIX)
    if virtual:
        source = source[len(VIRTUAL_PREFIX) :]

    had_scheme = _SCHEME.match(source) is not None
    path = _posix(_strip_scheme(source))

    if not virtual and not had_scheme and not path.startswith("/"):
        path = posixpath.join(map_dir, path)
    path = posixpath.normpath(path) if path else path

    root = workspace_root.rstrip("/") or "/"
    if path.startswith("/") and (path == root or path.startswith(root.rstrip("/") + "/")):
        path = posixpath.relpath(path, root)

    # "/", "." or a bare "\0" leave no segment to key the module by.
    return normalize_relative_path(path) or normalize_relative_path(source) or UNKNOWN_MODULE


def chunk_dir(workspace_root: Path, output_dir: Path, file_name: str) -> str:
    """Absolute POSIX directory a chunk's map lives in."""

    base = output_dir if output_dir.is_absolute() else workspace_root / output_dir
    return posixpath.dirname(PurePosixPath(base.as_posix(), *split_path(file_name)).as_posix())


def _declares_workspaces(package_json: Path) -> bool:
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    return isinstance(data, dict) and bool(data.get("workspaces"))


def search_workspace_root(start: Path) -> Path:
    """Walk upward from `start` to the nearest monorepo root, else return `start`."""

    start = start.resolve(strict=False)
    for directory in (start, *start.parents):
        if any((directory / marker).is_file() for marker in WORKSPACE_MARKERS):
            return directory
        package_json = directory / "package.json"
        if package_json.is_file() and _declares_workspaces(package_json):
            return directory
    return start


def safe_join(base: Path, file_name: str) -> Path:
    """Join an untrusted file name to a base directory without allowing traversal."""

    parts = split_path(file_name)
    if not parts or ".." in parts:
        raise UnsafePathError(f"Unsafe report file name: {file_name!r}")

    joined = base.joinpath(*parts)
    if not joined.resolve(strict=False).is_relative_to(base.resolve(strict=False)):
        raise UnsafePathError(f"Path escapes output directory: {file_name!r}")
    return joined

from __future__ import annotations


class BundleSizerError(Exception):
    """Base exception for bundle-sizer."""


class MalformedSourceMap(BundleSizerError):
    """Raised when a source map document can't be decoded."""


class MissingGeneratedLine(BundleSizerError):
    """Raised when a mapping points past the last line of the generated code."""

    def __init__(self, line: int, line_count: int) -> None:
        super().__init__(f"generated line {line} out of range (artifact has {line_count} lines)")
        self.line = line
        self.line_count = line_count


class ConfigError(BundleSizerError, ValueError):
    """Raised when analyzer options are invalid."""


class UnsafePathError(BundleSizerError):
    """Raised when a report path would escape its output directory."""

from __future__ import annotations

"""Command-line interface for bundle-sizer.

Analyzes an existing build output directory: every JavaScript file is paired
with its `.map` sibling (or inline map) and the resulting size tree is
written as a JSON or static HTML report.
"""

import argparse
import logging
import sys
from pathlib import Path

from .analyzer import BundleAnalyzer, expect_js
from .config import resolve_config, resolve_mode
from .errors import BundleSizerError
from .paths import search_workspace_root
from .report import ReportState, format_bytes, summary_message, write_report
from .types import Artifact


def build_parser() -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        description="Attribute the size of minified bundles to their original source modules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    bundle-sizer dist/                       # Write dist/stats.json
    bundle-sizer dist/ --mode static -o out  # Write out/stats.html
    bundle-sizer dist/ -n                    # Dry run - print the summary
    bundle-sizer dist/ --compression zstd    # Measure zstd instead of gzip
        """,
    )


def collect_artifacts(output_dir: Path) -> list[Artifact]:
    """Read every file under `output_dir`, in sorted order, as a build artifact."""

    artifacts: list[Artifact] = []
    for path in sorted(p for p in output_dir.rglob("*") if p.is_file()):
        name = path.relative_to(output_dir).as_posix()
        artifacts.append(Artifact(file_name=name, code=path.read_bytes(), is_chunk=expect_js(name)))
    return artifacts


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    parser.add_argument("output", help="Build output directory to analyze")
    parser.add_argument("-o", "--report-dir", dest="report_dir", help="Directory to write the report to")
    parser.add_argument("--mode", choices=("json", "static"), default="json", help="Report format")
    parser.add_argument("--name", dest="file_name", help="Report file name without extension")
    parser.add_argument("--title", dest="report_title", help="Title of the static report")
    parser.add_argument("--root", help="Workspace root module ids are relative to")
    parser.add_argument("--sizes", dest="default_sizes", choices=("stat", "parsed", "gzip"), default="stat")
    parser.add_argument("--compression", choices=("gzip", "zstd"), default="gzip")
    parser.add_argument("--level", type=int, help="Compression level")
    parser.add_argument("--workers", type=int, default=1, help="Chunks measured in parallel")
    parser.add_argument("--compact", action="store_true", help="Merge single-child directory chains")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-chunk details")
    parser.add_argument("-n", "--dry-run", action="store_true", help="Print the summary without writing a report")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    output_dir = Path(args.output)
    if not output_dir.is_dir():
        print(f"Error: {output_dir} is not a directory", file=sys.stderr)
        return 1

    try:
        config = resolve_config(
            mode=resolve_mode(args.mode, file_name=args.file_name, report_title=args.report_title),
            workspace_root=Path(args.root) if args.root else search_workspace_root(Path.cwd()),
            default_sizes=args.default_sizes,
            compression=args.compression,
            compression_level=args.level,
            # Maps on disk belong to the user's build.
            sourcemap=True,
            workers=args.workers,
            compact=args.compact,
            summary=False,
        )
    except BundleSizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    analyzer = BundleAnalyzer(config, output_dir=output_dir.resolve())
    result = analyzer.analyze(collect_artifacts(output_dir))

    if args.verbose:
        for drift in result.drifts:
            print(f"  {drift.file_name}: {format_bytes(drift.unattributed)} unattributed")

    print(summary_message(result.chunks))
    if args.dry_run:
        return 0

    report_dir = Path(args.report_dir) if args.report_dir else output_dir
    try:
        path = write_report(
            result.to_dict(),
            config.mode,
            report_dir,
            ReportState(),
            default_sizes=config.default_sizes.value,
        )
    except (BundleSizerError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

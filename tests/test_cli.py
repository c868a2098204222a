from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from sourcemap_builder import build_source_map

from bundle_sizer.cli import main as bundle_sizer_main


def _write_build(root: Path) -> Path:
    dist = root / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "assets" / "index.js").write_bytes(b"const a=1;\nconst b=2;\n")
    (dist / "assets" / "index.js.map").write_text(
        build_source_map(["../../src/a.ts", "../../src/b.ts"], [[(0, 0)], [(0, 1)]]),
        encoding="utf-8",
    )
    (dist / "assets" / "style.css").write_text("body{}", encoding="utf-8")
    return dist


def _run(argv: list[str]) -> tuple[int, str]:
    out = io.StringIO()
    with contextlib.redirect_stdout(out), contextlib.redirect_stderr(io.StringIO()):
        code = bundle_sizer_main(argv)
    return code, out.getvalue()


class TestCli(unittest.TestCase):
    def test_writes_json_report(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td).resolve()
            dist = _write_build(root)

            code, out = _run([str(dist), "--root", str(root)])
            self.assertEqual(code, 0)
            self.assertIn("1 chunks of", out)

            report = json.loads((dist / "stats.json").read_text(encoding="utf-8"))
            assets = report["children"][0]
            self.assertEqual(assets["name"], "assets")
            chunk = assets["children"][0]
            self.assertEqual(chunk["name"], "index.js")
            self.assertEqual(chunk["parsedSize"], 22)
            src = chunk["children"][0]
            self.assertEqual([m["id"] for m in src["children"]], ["assets/index.js/src/a.ts", "assets/index.js/src/b.ts"])

    def test_static_report_and_compaction(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td).resolve()
            dist = _write_build(root)
            out_dir = root / "report"

            code, _ = _run([str(dist), "--root", str(root), "--mode", "static", "-o", str(out_dir), "--compact"])
            self.assertEqual(code, 0)
            self.assertTrue((out_dir / "stats.html").exists())

    def test_dry_run_writes_nothing(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td).resolve()
            dist = _write_build(root)

            code, _ = _run([str(dist), "--root", str(root), "-n"])
            self.assertEqual(code, 0)
            self.assertFalse((dist / "stats.json").exists())

    def test_missing_directory(self):
        with tempfile.TemporaryDirectory() as td:
            code, _ = _run([str(Path(td) / "nope")])
            self.assertEqual(code, 1)

    def test_invalid_level(self):
        with tempfile.TemporaryDirectory() as td:
            dist = _write_build(Path(td))
            code, _ = _run([str(dist), "--level", "42"])
            self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()

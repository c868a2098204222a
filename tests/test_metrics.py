from __future__ import annotations

import gzip
import unittest
from concurrent.futures import ThreadPoolExecutor

import zstandard as zstd

from bundle_sizer.config import CompressionOptions
from bundle_sizer.metrics import compressed_size, make_compressor, measure, module_map_size
from bundle_sizer.types import MappingEntry, Metrics

SAMPLE = b"function add(a,b){return a+b}" * 20


class TestMeasure(unittest.TestCase):
    def test_empty_input_is_all_zero(self):
        compress = make_compressor(CompressionOptions())
        self.assertEqual(measure(b"", compress), Metrics())

    def test_gzip_size_is_fixed_level_gzip(self):
        compress = make_compressor(CompressionOptions("gzip", 9))
        expected = len(gzip.compress(SAMPLE, compresslevel=9, mtime=0))
        self.assertEqual(compressed_size(SAMPLE, compress), expected)

    def test_gzip_output_is_reproducible(self):
        compress = make_compressor(CompressionOptions())
        self.assertEqual(compress(SAMPLE), compress(SAMPLE))

    def test_zstd_size(self):
        compress = make_compressor(CompressionOptions("zstd", 3))
        expected = len(zstd.ZstdCompressor(level=3).compress(SAMPLE))
        self.assertEqual(compressed_size(SAMPLE, compress), expected)

    def test_zstd_compressor_can_be_shared_by_threads(self):
        compress = make_compressor(CompressionOptions("zstd", 3))
        samples = [SAMPLE * (i + 1) for i in range(32)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            parallel = list(pool.map(compress, samples))
        self.assertEqual(parallel, [zstd.ZstdCompressor(level=3).compress(s) for s in samples])

    def test_fields_are_independent(self):
        metrics = measure(SAMPLE, make_compressor(CompressionOptions()), map_size=0, stat_size=99)
        self.assertEqual(metrics.parsed_size, len(SAMPLE))
        self.assertGreater(metrics.gzip_size, 0)
        self.assertEqual(metrics.map_size, 0)
        self.assertEqual(metrics.stat_size, 99)


class TestModuleMapSize(unittest.TestCase):
    def test_counts_segments_names_and_content(self):
        entries = [
            MappingEntry(line=0, column=0, last_column=None, source="a.ts", segment_length=4),
            MappingEntry(line=1, column=0, last_column=None, source="a.ts", segment_length=5),
        ]
        # (4 + 1) + (5 + 1) + len('"a.ts"') + len('"x"')
        self.assertEqual(module_map_size(entries, ["a.ts"], "x"), 11 + 6 + 3)

    def test_no_content(self):
        self.assertEqual(module_map_size([], ["a.ts"], None), 6)


class TestMetricsArithmetic(unittest.TestCase):
    def test_total(self):
        total = Metrics.total([Metrics(1, 2, 3, 4), Metrics(10, 20, 30, 40)])
        self.assertEqual(total, Metrics(11, 22, 33, 44))

    def test_to_dict_keys(self):
        self.assertEqual(
            Metrics(1, 2, 3, 4).to_dict(),
            {"parsedSize": 1, "gzipSize": 2, "mapSize": 3, "statSize": 4},
        )


if __name__ == "__main__":
    unittest.main()

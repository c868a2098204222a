from __future__ import annotations

import unittest

from bundle_sizer.attribution import line_ranges, reconstruct, split_lines
from bundle_sizer.types import MappingEntry


def entry(line: int, column: int, last_column: int | None, source: str = "a.ts") -> MappingEntry:
    return MappingEntry(line=line, column=column, last_column=last_column, source=source)


class TestSplitLines(unittest.TestCase):
    def test_trailing_newline_is_not_a_line(self):
        self.assertEqual(split_lines(b"a\nb\n"), [b"a", b"b"])

    def test_empty_lines_are_kept(self):
        self.assertEqual(split_lines(b"a\n\nb"), [b"a", b"", b"b"])

    def test_empty_code(self):
        self.assertEqual(split_lines(b""), [])


class TestReconstruct(unittest.TestCase):
    def test_adjacent_ranges_partition_the_line(self):
        line = "abcdefghij"
        ranges = line_ranges([entry(0, 0, 4), entry(0, 5, 9)])
        self.assertEqual(ranges, [(0, 5), (5, 10)])
        self.assertEqual([line[start:end] for start, end in ranges], ["abcde", "fghij"])

    def test_module_alone_on_its_line_takes_the_rest(self):
        lines = split_lines(b"abcdefghij")
        self.assertEqual(reconstruct(lines, [entry(0, 0, 4)]), "abcdefghij")
        self.assertEqual(reconstruct(lines, [entry(0, 5, 9)]), "fghij")

    def test_adjacent_entries_of_one_module(self):
        lines = split_lines(b"abcdefghij")
        self.assertEqual(reconstruct(lines, [entry(0, 0, 4), entry(0, 5, 9)]), "abcdefghij")

    def test_boundary_character_is_neither_dropped_nor_duplicated(self):
        lines = split_lines(b"abcdefghij")
        parts = [
            reconstruct(lines, [entry(0, 0, 4, "a.ts"), entry(0, 10, None, "a.ts")]),
            reconstruct(lines, [entry(0, 5, 9, "b.ts"), entry(0, 10, None, "b.ts")]),
        ]
        self.assertEqual(parts, ["abcde", "fghij"])

    def test_gap_between_entries_is_skipped(self):
        lines = split_lines(b"abcdefghij")
        self.assertEqual(reconstruct(lines, [entry(0, 0, 2), entry(0, 6, None)]), "abcghij")

    def test_entry_without_last_column_takes_rest_of_line(self):
        lines = split_lines(b"abcdefghij")
        self.assertEqual(reconstruct(lines, [entry(0, 0, None), entry(0, 3, 4)]), "abcdefghijde")

    def test_lines_are_concatenated_in_order(self):
        lines = split_lines(b"first\nsecond\n")
        self.assertEqual(reconstruct(lines, [entry(0, 0, None), entry(1, 3, None)]), "firstond")

    def test_columns_are_utf16_units(self):
        code = "中文abc".encode("utf-8")
        lines = split_lines(code)
        self.assertEqual(reconstruct(lines, [entry(0, 2, None)]), "abc")
        self.assertEqual(reconstruct(lines, [entry(0, 0, 1), entry(0, 5, None)]), "中文")

    def test_astral_characters_take_two_units(self):
        lines = split_lines("😀x".encode("utf-8"))
        self.assertEqual(reconstruct(lines, [entry(0, 2, None)]), "x")

    def test_missing_line_contributes_nothing(self):
        lines = split_lines(b"only\n")
        self.assertEqual(reconstruct(lines, [entry(0, 0, None), entry(4, 0, None)]), "only")
        self.assertEqual(reconstruct(lines, [entry(4, 0, None)]), "")

    def test_no_entries(self):
        self.assertEqual(reconstruct(split_lines(b"abc"), []), "")


if __name__ == "__main__":
    unittest.main()

"""Tests for the filename typo suggestion engine."""

from aiterm.tools.suggest import extract_missing_path, simple_distance, suggest_fix


class TestExtractMissingPath:

    def test_cannot_remove(self):
        stderr = "rm: cannot remove 'index.hmtl': No such file or directory"
        assert extract_missing_path(stderr) == "index.hmtl"

    def test_cannot_access(self):
        stderr = "ls: cannot access 'missing_dir': No such file or directory"
        assert extract_missing_path(stderr) == "missing_dir"

    def test_colon_fallback(self):
        stderr = "cat: index.tx: No such file or directory"
        assert extract_missing_path(stderr) == "index.tx"

    def test_nothing_to_extract(self):
        assert extract_missing_path("") is None
        assert extract_missing_path("segmentation fault") is None


class TestSimpleDistance:

    def test_identical(self):
        assert simple_distance("abc", "abc") == 0

    def test_transposition_costs_two(self):
        assert simple_distance("index.hmtl", "index.html") == 2

    def test_length_difference(self):
        assert simple_distance("abc", "abcde") == 2

    def test_no_alignment(self):
        # One inserted character shifts everything after it.
        assert simple_distance("xabc", "abc") == 4

    def test_counts_utf8_bytes(self):
        assert simple_distance("é", "e") == 2


class TestSuggestFix:

    def test_transposed_extension(self, tmp_path):
        (tmp_path / "index.html").write_text("", encoding="utf-8")
        suggestion = suggest_fix(
            "rm index.hmtl",
            "rm: cannot remove 'index.hmtl': No such file or directory",
            tmp_path,
        )
        assert suggestion == "rm index.html"

    def test_nothing_close_enough(self, tmp_path):
        (tmp_path / "completely_different.txt").write_text("", encoding="utf-8")
        assert suggest_fix(
            "cat notes.md", "cat: notes.md: No such file or directory", tmp_path,
        ) is None

    def test_distance_three_is_rejected(self, tmp_path):
        (tmp_path / "abcxyz").write_text("", encoding="utf-8")
        assert suggest_fix("cat abcuvw", "cat: abcuvw: No such file", tmp_path) is None

    def test_tie_keeps_first(self, tmp_path):
        (tmp_path / "data.csv").write_text("", encoding="utf-8")
        (tmp_path / "data.cs").write_text("", encoding="utf-8")
        suggestion = suggest_fix("cat data.cs_", "cat: data.cs_: No such file", tmp_path)
        # "data.csv" differs by one byte, "data.cs" by length one: tie keeps name order.
        assert suggestion == "cat data.cs"

    def test_lower_score_beats_earlier_entry(self, tmp_path):
        (tmp_path / "abcc").write_text("", encoding="utf-8")
        (tmp_path / "abcd").write_text("", encoding="utf-8")
        # "abcc" sorts first but scores 2; "abcd" scores 1.
        suggestion = suggest_fix("cat ab_d", "cat: ab_d: No such file", tmp_path)
        assert suggestion == "cat abcd"

    def test_only_first_occurrence_replaced(self, tmp_path):
        (tmp_path / "a.txt").write_text("", encoding="utf-8")
        suggestion = suggest_fix("cp a.tx a.tx.bak", "cp: a.tx: No such file", tmp_path)
        assert suggestion == "cp a.txt a.tx.bak"

    def test_unreadable_directory(self, tmp_path):
        assert suggest_fix(
            "cat x", "cat: x: No such file or directory", tmp_path / "missing",
        ) is None

    def test_no_marker_no_suggestion(self, tmp_path):
        (tmp_path / "a").write_text("", encoding="utf-8")
        assert suggest_fix("false", "", tmp_path) is None

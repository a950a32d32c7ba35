"""Fuzzy PAN holder name comparison."""

from __future__ import annotations

import pytest

from utils.name_matcher import name_match_ratio, names_match, normalize_name


class TestNormalize:
    def test_uppercases_and_collapses_whitespace(self) -> None:
        assert normalize_name("  john   doe ") == "JOHN DOE"


class TestMatchRatio:
    def test_exact_after_normalisation(self) -> None:
        assert name_match_ratio("john  doe", "JOHN DOE") == 1.0

    def test_extra_middle_name_still_matches(self) -> None:
        assert name_match_ratio("John Kumar Doe", "JOHN DOE") == 1.0

    def test_submitted_word_inside_record_word_counts_as_match(self) -> None:
        assert name_match_ratio("Jo Doe", "JOHN DOE") == 1.0

    def test_record_word_inside_submitted_word_counts_as_match(self) -> None:
        assert name_match_ratio("Johnny Doe", "JOHN DOE") == 1.0

    def test_misspelt_word_is_not_a_substring(self) -> None:
        assert name_match_ratio("Jon Doe", "JOHN DOE") == 0.5

    def test_half_overlap(self) -> None:
        assert name_match_ratio("John Smith", "JOHN DOE") == 0.5

    @pytest.mark.parametrize(
        "submitted, on_record, expected",
        [
            ("Rajesh Kumar", "RAJESH KUMAR", True),
            ("Priya", "PRIYA SHARMA", True),
            ("Priya Verma", "PRIYA SHARMA", False),
            ("Amit Shah", "JOHN DOE", False),
        ],
    )
    def test_threshold(self, submitted: str, on_record: str, expected: bool) -> None:
        assert names_match(submitted, on_record) is expected

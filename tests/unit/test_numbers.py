from __future__ import annotations

import pytest

from repvoice.utils.numbers import merge_compounds, normalize, words_to_digits


def test_normalize_compound_number() -> None:
    assert "25" in normalize("twenty five")


@pytest.mark.parametrize(
    ("spoken", "expected"),
    [
        ("thirty", "30"),
        ("fifteen", "15"),
        ("Ninety Nine", "99"),
        ("zero", "0"),
        ("hundred", "100"),
    ],
)
def test_normalize_single_words(spoken: str, expected: str) -> None:
    assert normalize(spoken) == expected


def test_normalize_does_not_merge_tens_with_teens() -> None:
    assert normalize("twenty fifteen") == "20 15"


def test_normalize_leaves_words_containing_numbers() -> None:
    assert normalize("someone often tends") == "someone often tends"


def test_normalize_mixed_digits_and_words() -> None:
    assert normalize("hey trainer 185 for eight") == "hey trainer 185 for 8"


def test_words_to_digits_is_case_insensitive() -> None:
    assert words_to_digits("SIX reps at One") == "6 reps at 1"


def test_merge_compounds_only_tens_and_ones() -> None:
    assert merge_compounds("40 5") == "45"
    assert merge_compounds("45 5") == "45 5"
    assert merge_compounds("10 5") == "10 5"
    assert merge_compounds("100 5") == "100 5"
    assert merge_compounds("180 20 5") == "180 25"

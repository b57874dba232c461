"""Tests for case id extraction."""

import pytest

from qase_reporter.case_ids import extract_case_ids


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("logs in (Qase ID: 5)", [5]),
        ("logs in (Qase ID: 5,6,7)", [5, 6, 7]),
        ("(Qase ID: 12) at the start", [12]),
        ("duplicates are kept (Qase ID: 3,3)", [3, 3]),
        ("zero is a case id (Qase ID: 0)", [0]),
        ("empty segments are ignored (Qase ID: 1,,2)", [1, 2]),
        ("first marker wins (Qase ID: 1) (Qase ID: 2)", [1]),
    ],
)
def test_extracts_case_ids(title: str, expected: list[int]) -> None:
    """Parses ids from the first marker in order."""
    assert extract_case_ids(title) == expected


@pytest.mark.parametrize(
    "title",
    [
        "logs in",
        "logs in (Qase ID: )",
        "logs in (Qase ID: five)",
        "logs in (qase id: 5)",
        "logs in (Qase ID: 5 , 6)",
        "logs in Qase ID: 5",
    ],
)
def test_returns_empty_without_well_formed_marker(title: str) -> None:
    """Titles without a recognizable marker declare no cases."""
    assert extract_case_ids(title) == []

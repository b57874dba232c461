"""Extraction of Qase case ids embedded in test titles."""

import re
from collections.abc import Sequence

CASE_ID_MARKER = re.compile(r"\(Qase ID: ([\d,]+)\)")


def extract_case_ids(title: str) -> Sequence[int]:
    """Return the case ids declared in a test title.

    Titles declare cases with a marker such as ``(Qase ID: 5)`` or
    ``(Qase ID: 5,6,7)``. Only the first marker is considered; ids keep
    their order and duplicates. Titles without a well-formed marker yield
    an empty list.
    """
    if (match := CASE_ID_MARKER.search(title)) is None:
        return []
    return [int(value) for value in match.group(1).split(",") if value]

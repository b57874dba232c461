"""Loading of Jest JSON reports.

Parses the output of ``jest --json --outputFile=...``: an object with a
``testResults`` array, one entry per test file, each holding the
``assertionResults`` of that file.
"""

import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import Field

from qase_reporter.models.base import Model
from qase_reporter.models.outcome import TestOutcome


class AssertionResult(Model):
    """A single test in a Jest report."""

    title: str
    full_name: str | None = Field(default=None, alias="fullName")
    status: str
    duration: float | None = None
    failure_messages: Sequence[str] = Field(
        default_factory=list, alias="failureMessages"
    )

    def to_outcome(self) -> TestOutcome:
        """Convert to a runner-independent test outcome."""
        return TestOutcome(
            title=self.title,
            status=self.status,
            duration=self.duration,
            failure_messages=tuple(self.failure_messages),
            full_name=self.full_name,
        )


class TestFileResult(Model):
    """Results of one test file in a Jest report."""

    __test__ = False

    name: str = ""
    assertion_results: Sequence[AssertionResult] = Field(
        default_factory=list, alias="assertionResults"
    )

    def to_outcomes(self) -> Sequence[TestOutcome]:
        """Convert all assertion results of the file to test outcomes."""
        return [result.to_outcome() for result in self.assertion_results]


class JestReport(Model):
    """Top level of a Jest JSON report."""

    test_results: Sequence[TestFileResult] = Field(
        default_factory=list, alias="testResults"
    )


def load_jest_report(path: Path | str) -> JestReport:
    """Load a Jest JSON report from a file, or stdin when path is "-".

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the content is not a Jest report

    """
    if str(path) == "-":
        text = sys.stdin.read()
    else:
        text = Path(path).read_text(encoding="utf-8")
    return JestReport.model_validate_json(text)

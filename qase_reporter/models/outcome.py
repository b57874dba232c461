"""Models for test outcomes reported by the test runner."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from qase_reporter.models.api import ResultCreated


@dataclass(frozen=True, kw_only=True)
class TestOutcome:
    """Outcome of a single test as reported by the runner.

    Duration is in milliseconds, as test runners report it.
    """

    __test__ = False

    title: str
    status: str
    duration: float | None = None
    failure_messages: Sequence[str] = field(default_factory=tuple)
    full_name: str | None = None


@dataclass(frozen=True, kw_only=True)
class PublishedResult:
    """A test outcome paired with the result the server recorded for it."""

    outcome: TestOutcome
    result: ResultCreated

"""Test factories for generating test data."""

from polyfactory import Use
from polyfactory.factories import DataclassFactory

from qase_reporter.models.outcome import TestOutcome


class TestOutcomeFactory(DataclassFactory[TestOutcome]):
    """Factory for TestOutcome."""

    __test__ = False

    __model__ = TestOutcome

    title = "test without case"
    status = "passed"
    duration = 12.0
    failure_messages = Use(tuple)
    full_name = None

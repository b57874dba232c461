"""Conversion of test outcomes into Qase result payloads."""

import math
import re
from collections.abc import Mapping, Sequence

from qase_reporter.models.api import ResultCreate, ResultStatus
from qase_reporter.models.outcome import TestOutcome

OUTCOME_TO_STATUS: Mapping[str, ResultStatus] = {
    "passed": "passed",
    "failed": "failed",
    "skipped": "skipped",
    "pending": "skipped",
    "disabled": "blocked",
}

ANSI_ESCAPE = re.compile(r"\x1b\[.*?m")


def map_status(status: str) -> ResultStatus | None:
    """Map a runner status to the Qase status taxonomy.

    Returns None for statuses with no Qase equivalent (e.g. Jest's "todo"),
    which are not published.
    """
    return OUTCOME_TO_STATUS.get(status)


def strip_ansi(text: str) -> str:
    """Remove terminal color codes from text."""
    return ANSI_ESCAPE.sub("", text)


def summarize_failures(messages: Sequence[str]) -> str | None:
    """Build a comment from the first line of each failure message."""
    if not messages:
        return None
    return "\n".join(message.split("\n")[0] for message in messages)


def build_case_result(
    outcome: TestOutcome, case_id: int, status: ResultStatus
) -> ResultCreate:
    """Build the result payload for one case id of a test outcome."""
    messages = [strip_ansi(message) for message in outcome.failure_messages]
    time_ms = None
    if outcome.duration is not None:
        # Half a millisecond rounds up.
        time_ms = math.floor(outcome.duration + 0.5)

    return ResultCreate(
        case_id=case_id,
        status=status,
        time_ms=time_ms,
        stacktrace="\n".join(messages) if messages else None,
        comment=summarize_failures(messages),
    )

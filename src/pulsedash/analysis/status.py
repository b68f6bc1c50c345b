"""Effective status resolution.

A test's raw status only describes its final attempt. The effective status
combines it with the runner's outcome signal and the retry history, using an
ordered list of rules where the first matching rule wins.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pulsedash.models.report import TestOutcome, TestStatus

if TYPE_CHECKING:
    from pulsedash.models.report import TestRecord

# Statuses that count as a failure when bucketing results
FAILURE_STATUSES = frozenset({TestStatus.FAILED.value, TestStatus.TIMED_OUT.value})


def is_failure_status(status: str) -> bool:
    """Return True for statuses bucketed as failed (failed and timedOut)."""
    return status in FAILURE_STATUSES


@dataclass(frozen=True)
class StatusRule:
    """A named predicate and the status it yields when it matches."""

    name: str
    predicate: Callable[[TestRecord], bool]
    result: TestStatus


def _outcome_is_flaky(test: TestRecord) -> bool:
    return test.outcome == TestOutcome.FLAKY


def _status_is_flaky(test: TestRecord) -> bool:
    return test.status == TestStatus.FLAKY


def _passed_after_failed_attempt(test: TestRecord) -> bool:
    # Repeated passing attempts (e.g. --repeat-each) are not flaky
    if test.status != TestStatus.PASSED:
        return False
    return any(is_failure_status(attempt.status) for attempt in test.retry_history)


def _final_status_is_flaky(test: TestRecord) -> bool:
    return bool(test.retry_history) and test.final_status == TestStatus.FLAKY


STATUS_RULES: tuple[StatusRule, ...] = (
    StatusRule("outcome-flaky", _outcome_is_flaky, TestStatus.FLAKY),
    StatusRule("status-flaky", _status_is_flaky, TestStatus.FLAKY),
    StatusRule("passed-after-failed-attempt", _passed_after_failed_attempt, TestStatus.FLAKY),
    StatusRule("final-status-flaky", _final_status_is_flaky, TestStatus.FLAKY),
)


def matching_rule(test: TestRecord) -> StatusRule | None:
    """Return the first rule that matches the test, if any."""
    for rule in STATUS_RULES:
        if rule.predicate(test):
            return rule
    return None


def effective_status(test: TestRecord) -> TestStatus:
    """Resolve the single authoritative status of a test.

    Rules, in order:
    1. outcome is ``flaky``
    2. status is ``flaky``
    3. status is ``passed`` and a retry attempt failed or timed out
    4. retries happened and final_status is ``flaky``

    A test whose final attempt failed stays ``failed`` even when earlier
    attempts passed.

    Args:
        test: The test record to classify.

    Returns:
        ``flaky`` if any rule matches, otherwise the raw status.
    """
    rule = matching_rule(test)
    if rule is not None:
        return rule.result
    return test.status

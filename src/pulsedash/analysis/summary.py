"""Run summary metrics, result filtering and suite grouping."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from pulsedash.analysis.models import ResultFilter, RunSummary, SuiteGroup
from pulsedash.analysis.status import effective_status, is_failure_status
from pulsedash.models.report import TestStatus

if TYPE_CHECKING:
    from pulsedash.models.report import RunReport, TestRecord

UNTITLED_SUITE = "Untitled Suite"
ALL = "all"

# Retry attempts counted as unsuccessful in the summary metrics
_UNSUCCESSFUL_ATTEMPT_STATUSES = frozenset({"failed", "timedOut", "flaky"})


def summarize_run(report: RunReport | None) -> RunSummary:
    """Count the results of one run by effective status.

    Args:
        report: The run to summarize, or None.

    Returns:
        Summary metrics; all zero for a missing run.
    """
    if report is None:
        return RunSummary()

    summary = RunSummary(total=len(report.results))
    total_duration = 0.0

    for test in report.results:
        status = effective_status(test)
        if status == TestStatus.PASSED:
            summary.passed += 1
        elif is_failure_status(status.value):
            summary.failed += 1
        elif status == TestStatus.SKIPPED:
            summary.skipped += 1
        elif status == TestStatus.FLAKY:
            summary.flaky += 1
        elif status == TestStatus.PENDING:
            summary.pending += 1

        unsuccessful = [
            a for a in test.retry_history if a.status in _UNSUCCESSFUL_ATTEMPT_STATUSES
        ]
        if unsuccessful:
            summary.total_retries += len(unsuccessful)
            summary.retried_tests += 1

        total_duration += test.duration

    if summary.total > 0:
        summary.avg_duration = total_duration / summary.total
    return summary


def retry_count(test: TestRecord) -> int:
    """Number of retry attempts that neither passed nor were skipped."""
    return sum(1 for a in test.retry_history if a.status not in ("passed", "skipped"))


def _status_matches(test: TestRecord, status_filter: str) -> bool:
    if status_filter == ALL:
        return True
    status = effective_status(test)
    if status_filter == TestStatus.FAILED.value:
        return is_failure_status(status.value)
    return status.value == status_filter


def matches_filter(test: TestRecord, criteria: ResultFilter) -> bool:
    """Check a single test against the filter criteria."""
    if not _status_matches(test, criteria.status):
        return False

    search = criteria.search.lower()
    if search and search not in test.name.lower() and search not in test.suite_name.lower():
        return False

    if criteria.tags and not any(tag in criteria.tags for tag in test.tags):
        return False

    if criteria.browser != ALL and test.browser != criteria.browser:
        return False

    suite_name = test.suite_name or UNTITLED_SUITE
    if criteria.suite != ALL and suite_name != criteria.suite:
        return False

    return not criteria.retries_only or retry_count(test) > 0


def filter_results(results: Iterable[TestRecord], criteria: ResultFilter) -> list[TestRecord]:
    """Return the results matching all filter criteria, in input order."""
    return [test for test in results if matches_filter(test, criteria)]


def group_by_suite(results: Iterable[TestRecord]) -> list[SuiteGroup]:
    """Group results by suite name with per-suite effective status counts.

    Returns:
        Suites sorted by failed count desc, total desc, then title.
    """
    groups: dict[str, SuiteGroup] = {}

    for test in results:
        title = test.suite_name or UNTITLED_SUITE
        group = groups.setdefault(title, SuiteGroup(title=title))
        group.tests.append(test)
        group.stats.total += 1

        status = effective_status(test)
        if status == TestStatus.FLAKY:
            group.stats.flaky += 1
        elif status == TestStatus.PASSED:
            group.stats.passed += 1
        elif is_failure_status(status.value):
            group.stats.failed += 1
        elif status == TestStatus.SKIPPED:
            group.stats.skipped += 1
        elif status == TestStatus.PENDING:
            group.stats.pending += 1

    return sorted(
        groups.values(),
        key=lambda g: (-g.stats.failed, -g.stats.total, g.title),
    )

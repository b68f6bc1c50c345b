"""Single test lookup and per-test run history."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from pulsedash.analysis.models import ResultDetail, RunHistoryEntry
from pulsedash.analysis.status import effective_status
from pulsedash.analysis.summary import retry_count

if TYPE_CHECKING:
    from pulsedash.models.report import RunReport, TestRecord


def find_test(
    report: RunReport | None, test_id: str, suite_name: str | None = None
) -> TestRecord | None:
    """Find a test of a run by id.

    Args:
        report: The run to search, or None.
        test_id: Id of the test.
        suite_name: Only match tests of this suite when given.

    Returns:
        The first matching test, or None.
    """
    if report is None:
        return None
    for test in report.results:
        if test.id == test_id and (suite_name is None or test.suite_name == suite_name):
            return test
    return None


def collect_test_history(
    test: TestRecord,
    current_run: RunReport,
    historical_runs: Iterable[RunReport],
) -> list[RunHistoryEntry]:
    """Collect duration and effective status of a test across runs.

    Historical runs are matched on id and suite name. A snapshot of the
    current run found in history is skipped; the current run itself is
    always included.

    Returns:
        One entry per run containing the test, newest first.
    """
    entries: list[RunHistoryEntry] = []

    for report in historical_runs:
        if report.timestamp == current_run.timestamp:
            continue
        match = find_test(report, test.id, test.suite_name)
        if match is not None:
            entries.append(
                RunHistoryEntry(
                    date=report.timestamp,
                    duration=match.duration,
                    status=effective_status(match),
                )
            )

    entries.append(
        RunHistoryEntry(
            date=current_run.timestamp,
            duration=test.duration,
            status=effective_status(test),
        )
    )
    entries.sort(key=lambda e: e.date, reverse=True)
    return entries


def describe_result(
    test: TestRecord,
    current_run: RunReport,
    historical_runs: Iterable[RunReport] = (),
    history_error: str | None = None,
) -> ResultDetail:
    """Bundle a test with its effective status, retry count and history."""
    return ResultDetail(
        test=test,
        status=effective_status(test),
        retry_count=retry_count(test),
        history=collect_test_history(test, current_run, historical_runs),
        history_error=history_error,
    )

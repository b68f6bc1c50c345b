"""Flaky test detection for PulseDash.

Surfaces tests that are flaky in the current run and tests whose raw status
has alternated between passing and failing across historical runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pulsedash.analysis.models import FlakyAnalysis, FlakyOccurrence, FlakyTestDetail
from pulsedash.analysis.status import effective_status, is_failure_status
from pulsedash.exceptions import ReportError, ReportNotFoundError
from pulsedash.models.report import TestStatus

if TYPE_CHECKING:
    from pulsedash.models.report import RunReport
    from pulsedash.persistence import ReportStore

logger = logging.getLogger(__name__)


@dataclass
class _TestHistory:
    """Occurrences of one test collected across runs."""

    id: str
    name: str
    suite_name: str
    occurrences: list[FlakyOccurrence] = field(default_factory=list)


def find_current_flaky(current_run: RunReport | None) -> list[FlakyTestDetail]:
    """Find tests that are flaky in the current run.

    Args:
        current_run: The current run, or None if unavailable.

    Returns:
        One single-occurrence entry per flaky test.
    """
    if current_run is None:
        return []

    timestamp = current_run.timestamp
    return [
        FlakyTestDetail(
            id=test.id,
            name=test.name,
            suite_name=test.suite_name,
            occurrences=[FlakyOccurrence(run_timestamp=timestamp, status=TestStatus.FLAKY)],
            passed_count=1,  # flaky means it eventually passed
            failed_count=0,
            total_runs=1,
            first_seen=timestamp,
            last_seen=timestamp,
        )
        for test in current_run.results
        if effective_status(test) == TestStatus.FLAKY
    ]


def _collect_histories(historical_runs: Iterable[RunReport]) -> dict[tuple[str, str], _TestHistory]:
    """Group raw test statuses by (suite_name, id)."""
    histories: dict[tuple[str, str], _TestHistory] = {}
    for report in historical_runs:
        for test in report.results:
            history = histories.get(test.join_key)
            if history is None:
                history = _TestHistory(id=test.id, name=test.name, suite_name=test.suite_name)
                histories[test.join_key] = history
            history.occurrences.append(
                FlakyOccurrence(run_timestamp=report.timestamp, status=test.status)
            )
    return histories


def _has_mixed_results(occurrences: Sequence[FlakyOccurrence]) -> bool:
    statuses = {o.status.value for o in occurrences}
    has_passed = TestStatus.PASSED.value in statuses
    has_failed = any(is_failure_status(s) for s in statuses)
    return has_passed and has_failed


def _build_detail(history: _TestHistory) -> FlakyTestDetail:
    passed = failed = skipped = pending = 0
    for occurrence in history.occurrences:
        if occurrence.status == TestStatus.PASSED:
            passed += 1
        elif is_failure_status(occurrence.status.value):
            failed += 1
        elif occurrence.status == TestStatus.SKIPPED:
            skipped += 1
        elif occurrence.status == TestStatus.PENDING:
            pending += 1

    occurrences = sorted(history.occurrences, key=lambda o: o.run_timestamp)
    return FlakyTestDetail(
        id=history.id,
        name=history.name,
        suite_name=history.suite_name,
        occurrences=occurrences,
        passed_count=passed,
        failed_count=failed,
        skipped_count=skipped,
        pending_count=pending,
        total_runs=len(occurrences),
        first_seen=occurrences[0].run_timestamp,
        last_seen=occurrences[-1].run_timestamp,
    )


def find_historical_flaky(historical_runs: Iterable[RunReport]) -> list[FlakyTestDetail]:
    """Find tests that have both passed and failed across historical runs.

    Uses the raw status recorded in each run, not the effective status.

    Args:
        historical_runs: Historical runs in any order.

    Returns:
        Flaky tests sorted by failure rate, then run count, both descending.
    """
    details = [
        _build_detail(history)
        for history in _collect_histories(historical_runs).values()
        if _has_mixed_results(history.occurrences)
    ]
    details.sort(key=lambda d: (-d.failure_rate, -d.total_runs))
    return details


def analyze_flakiness(
    current_run: RunReport | None,
    historical_runs: Iterable[RunReport],
) -> FlakyAnalysis:
    """Analyze flakiness of the current run and across history.

    Args:
        current_run: The current run, or None if unavailable.
        historical_runs: Historical runs, excluding the current run.

    Returns:
        Current-run and historical flaky tests.
    """
    return FlakyAnalysis(
        current_flaky=find_current_flaky(current_run),
        historical_flaky=find_historical_flaky(historical_runs),
    )


class FlakyDetector:
    """Detects flaky tests using a report store."""

    def __init__(self, store: ReportStore) -> None:
        """Initialize the flaky detector.

        Args:
            store: Report store for accessing current and historical runs.
        """
        self._store = store

    def analyze(self) -> FlakyAnalysis:
        """Run the flakiness analysis.

        A missing current report means there is no current run. A current
        report that cannot be parsed, or history that cannot be loaded, is an
        error: the remaining pass still runs and the result is flagged with
        the error messages.

        Returns:
            The analysis, with ``success=False`` if any input failed to load.
        """
        errors: list[str] = []

        current_run: RunReport | None = None
        try:
            current_run = self._store.load_current_run(strict=True)
        except ReportNotFoundError as e:
            logger.info("No current run report: %s", e)
        except ReportError as e:
            logger.error("Error reading current run report: %s", e)
            errors.append(str(e))

        historical_runs: list[RunReport] = []
        try:
            historical_runs = self._store.load_historical_runs()
        except ReportError as e:
            logger.error("Error loading historical reports: %s", e)
            errors.append(str(e))

        return FlakyAnalysis(
            success=not errors,
            error="; ".join(errors) or None,
            current_flaky=find_current_flaky(current_run),
            historical_flaky=find_historical_flaky(historical_runs),
        )

"""Trend analysis for run reports.

Turns a sequence of runs into one chart point per run, recounting results
with the effective status rules rather than trusting precomputed counters.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from pulsedash.analysis.models import TrendPoint, TrendReport
from pulsedash.analysis.status import effective_status, is_failure_status
from pulsedash.exceptions import ReportError
from pulsedash.models.report import TestStatus

if TYPE_CHECKING:
    from pulsedash.models.report import RunReport, TestRecord
    from pulsedash.persistence import ReportStore

logger = logging.getLogger(__name__)


def _is_valid_worker(worker_id: str | int | None) -> bool:
    """True for worker ids whose numeric value is non-negative."""
    if worker_id is None:
        return False
    try:
        return float(worker_id) >= 0
    except ValueError:
        return False


def count_workers(results: Iterable[TestRecord]) -> int | None:
    """Count distinct workers that executed the results.

    Returns:
        Number of distinct non-negative worker ids, or None if there are none.
    """
    worker_ids = {str(r.worker_id) for r in results if _is_valid_worker(r.worker_id)}
    return len(worker_ids) if worker_ids else None


def trend_point(report: RunReport) -> TrendPoint:
    """Build the trend point for a single run.

    Args:
        report: The run to summarize.

    Returns:
        Trend point; counts come from per-test results when present, else
        from the run's own counters with flaky set to 0.
    """
    run = report.run
    passed = failed = skipped = flaky = 0
    worker_count: int | None = None

    if report.results:
        for result in report.results:
            status = effective_status(result)
            if status == TestStatus.PASSED:
                passed += 1
            elif is_failure_status(status.value):
                failed += 1
            elif status == TestStatus.SKIPPED:
                skipped += 1
            elif status == TestStatus.FLAKY:
                flaky += 1
        worker_count = count_workers(report.results)
    else:
        passed = run.passed
        failed = run.failed + (run.timed_out or 0)
        skipped = run.skipped

    return TrendPoint(
        date=run.timestamp,
        total_tests=run.total_tests,
        passed=passed,
        failed=failed,
        skipped=skipped,
        flaky=flaky,
        duration=run.duration,
        flakiness_rate=run.flakiness_rate,
        worker_count=worker_count,
    )


def summarize_trend(historical_runs: Iterable[RunReport]) -> list[TrendPoint]:
    """Convert runs into chart points.

    Args:
        historical_runs: Runs in any order.

    Returns:
        One point per run, sorted by date ascending.
    """
    points = [trend_point(report) for report in historical_runs]
    points.sort(key=lambda p: p.date)
    return points


class TrendAnalyzer:
    """Builds trend series using a report store."""

    def __init__(self, store: ReportStore) -> None:
        """Initialize the trend analyzer.

        Args:
            store: Report store for accessing historical runs.
        """
        self._store = store

    def summarize(self) -> TrendReport:
        """Summarize all historical runs.

        Returns:
            The trend series, or ``success=False`` with the error message if
            history could not be loaded.
        """
        try:
            historical_runs = self._store.load_historical_runs()
        except ReportError as e:
            logger.error("Error processing historical trends: %s", e)
            return TrendReport(success=False, error=str(e))

        points = summarize_trend(historical_runs)
        logger.debug("Processed %d historical trend items", len(points))
        return TrendReport(points=points)

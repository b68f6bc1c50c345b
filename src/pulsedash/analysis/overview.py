"""Run overview breakdowns.

Distributions of the current run by browser, suite and worker, plus the
slowest tests.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from pulsedash.analysis.models import RunOverview, StatusDistribution, WorkerLoad
from pulsedash.analysis.status import effective_status, is_failure_status
from pulsedash.analysis.summary import summarize_run
from pulsedash.models.report import TestStatus

if TYPE_CHECKING:
    from pulsedash.models.report import RunReport, TestRecord

UNKNOWN_BROWSER = "Unknown"
UNKNOWN_SUITE = "Unknown Suite"
UNKNOWN_WORKER = "unknown"
SLOWEST_LIMIT = 10

# Worker ids the reporter writes for tests that never ran on a worker
_UNASSIGNED_WORKER_IDS = frozenset({"-1", ""})


def _count(distribution: StatusDistribution, test: TestRecord) -> None:
    status = effective_status(test)
    if status == TestStatus.PASSED:
        distribution.passed += 1
    elif is_failure_status(status.value):
        distribution.failed += 1
    elif status == TestStatus.SKIPPED:
        distribution.skipped += 1
    elif status == TestStatus.FLAKY:
        distribution.flaky += 1
    elif status == TestStatus.PENDING:
        distribution.pending += 1
    distribution.total += 1


def _distribution(
    results: Iterable[TestRecord], key: Callable[[TestRecord], str]
) -> list[StatusDistribution]:
    buckets: dict[str, StatusDistribution] = {}
    for test in results:
        name = key(test)
        _count(buckets.setdefault(name, StatusDistribution(name=name)), test)
    # Stable sort keeps first-seen order among equal totals
    return sorted(buckets.values(), key=lambda d: -d.total)


def browser_distribution(results: Iterable[TestRecord]) -> list[StatusDistribution]:
    """Count results per browser by effective status.

    Returns:
        One entry per browser, largest total first.
    """
    return _distribution(results, lambda t: t.browser or UNKNOWN_BROWSER)


def suite_distribution(results: Iterable[TestRecord]) -> list[StatusDistribution]:
    """Count results per suite by effective status, largest total first."""
    return _distribution(results, lambda t: t.suite_name or UNKNOWN_SUITE)


def slowest_tests(results: Iterable[TestRecord], limit: int = SLOWEST_LIMIT) -> list[TestRecord]:
    """Return up to ``limit`` results with the longest duration, slowest first."""
    return sorted(results, key=lambda t: t.duration, reverse=True)[:limit]


def _natural_key(value: str) -> list[tuple[int, int | str]]:
    # "2" sorts before "10"
    return [
        (0, int(part)) if part.isdigit() else (1, part)
        for part in re.split(r"(\d+)", value)
        if part
    ]


def worker_distribution(results: Iterable[TestRecord]) -> list[WorkerLoad]:
    """Group results by the worker that executed them.

    Tests without a start time and tests never assigned to a worker
    (id ``-1`` or empty) are left out.

    Args:
        results: Results of one run.

    Returns:
        Worker loads in natural worker id order, each with its tests sorted
        by start time.
    """
    workers: dict[str, WorkerLoad] = {}

    for test in results:
        if not test.start_time:
            continue
        worker_id = str(test.worker_id) if test.worker_id is not None else UNKNOWN_WORKER
        if worker_id in _UNASSIGNED_WORKER_IDS:
            continue
        load = workers.setdefault(worker_id, WorkerLoad(worker_id=worker_id))
        load.tests.append(test)
        load.total_duration += test.duration

    for load in workers.values():
        load.tests.sort(key=lambda t: t.start_time or "")

    return sorted(workers.values(), key=lambda w: _natural_key(w.worker_id))


def build_overview(report: RunReport | None) -> RunOverview:
    """Build every overview breakdown of one run."""
    if report is None:
        return RunOverview()

    return RunOverview(
        summary=summarize_run(report),
        browsers=browser_distribution(report.results),
        suites=suite_distribution(report.results),
        slowest=slowest_tests(report.results),
        workers=worker_distribution(report.results),
    )

"""Analysis data models."""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from pulsedash.models.report import TestRecord, TestStatus


class FlakyOccurrence(BaseModel):
    """Status of a test in one run."""

    run_timestamp: datetime
    status: TestStatus


class FlakyTestDetail(BaseModel):
    """Cross-run flakiness statistics for one test."""

    id: str
    name: str
    suite_name: str
    occurrences: list[FlakyOccurrence] = Field(default_factory=list)
    passed_count: int = 0
    failed_count: int = 0  # failed + timedOut
    skipped_count: int = 0
    pending_count: int = 0
    total_runs: int = 0
    first_seen: datetime | None = None
    last_seen: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failure_rate(self) -> float:
        """Fraction of runs that failed or timed out."""
        if self.total_runs == 0:
            return 0.0
        return self.failed_count / self.total_runs


class FlakyAnalysis(BaseModel):
    """Result of a flakiness analysis.

    ``success`` is False when the current report is unreadable or history
    could not be loaded. Whatever did load is still analyzed.
    """

    success: bool = True
    error: str | None = None
    current_flaky: list[FlakyTestDetail] = Field(default_factory=list)
    historical_flaky: list[FlakyTestDetail] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when no flaky tests were found."""
        return not self.current_flaky and not self.historical_flaky


class TrendPoint(BaseModel):
    """One chart point per run."""

    date: datetime
    total_tests: int
    passed: int
    failed: int  # failed + timedOut
    skipped: int
    flaky: int = 0
    duration: float
    flakiness_rate: float | None = None
    worker_count: int | None = None


class TrendReport(BaseModel):
    """Trend series together with the outcome of loading it."""

    success: bool = True
    error: str | None = None
    points: list[TrendPoint] = Field(default_factory=list)


class RunSummary(BaseModel):
    """Summary metrics for a single run."""

    total: int = 0
    passed: int = 0
    failed: int = 0  # failed + timedOut
    skipped: int = 0
    flaky: int = 0
    pending: int = 0
    total_retries: int = 0
    retried_tests: int = 0
    avg_duration: float = 0.0

    def _rate(self, count: int) -> float:
        return count / self.total if self.total > 0 else 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pass_rate(self) -> float:
        return self._rate(self.passed)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fail_rate(self) -> float:
        return self._rate(self.failed)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def flaky_rate(self) -> float:
        return self._rate(self.flaky)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def skip_rate(self) -> float:
        return self._rate(self.skipped)


class ResultFilter(BaseModel):
    """Criteria for narrowing down a result list."""

    status: str = "all"
    search: str = ""
    tags: list[str] = Field(default_factory=list)
    browser: str = "all"
    suite: str = "all"
    retries_only: bool = False


class SuiteStats(BaseModel):
    """Per-suite counters by effective status."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    pending: int = 0
    flaky: int = 0


class SuiteGroup(BaseModel):
    """Tests of one suite with their counters."""

    title: str
    tests: list[TestRecord] = Field(default_factory=list)
    stats: SuiteStats = Field(default_factory=SuiteStats)


class FailureCategory(BaseModel):
    """Group of failed tests sharing an error category."""

    category_name: str
    description: str | None = None
    count: int = 0
    tests: list[TestRecord] = Field(default_factory=list)
    example_error_messages: list[str | None] = Field(default_factory=list)


class FailureCategorization(BaseModel):
    """Failed tests of a run grouped by error category."""

    categories: list[FailureCategory] = Field(default_factory=list)
    total_failed: int = 0


class StatusDistribution(BaseModel):
    """Effective status counts for one browser or suite."""

    name: str
    passed: int = 0
    failed: int = 0  # failed + timedOut
    skipped: int = 0
    flaky: int = 0
    pending: int = 0
    total: int = 0


class WorkerLoad(BaseModel):
    """Tests executed by one worker, in start order."""

    worker_id: str
    tests: list[TestRecord] = Field(default_factory=list)
    total_duration: float = 0.0


class RunOverview(BaseModel):
    """Breakdowns of the current run shown on the overview dashboard."""

    summary: RunSummary = Field(default_factory=RunSummary)
    browsers: list[StatusDistribution] = Field(default_factory=list)
    suites: list[StatusDistribution] = Field(default_factory=list)
    slowest: list[TestRecord] = Field(default_factory=list)
    workers: list[WorkerLoad] = Field(default_factory=list)


class RunHistoryEntry(BaseModel):
    """Duration and effective status of one test in one run."""

    date: datetime
    duration: float
    status: TestStatus


class ResultDetail(BaseModel):
    """A single test of the current run together with its run history."""

    test: TestRecord
    status: TestStatus
    retry_count: int = 0
    history: list[RunHistoryEntry] = Field(default_factory=list)
    history_error: str | None = None

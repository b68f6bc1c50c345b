"""Tests for run summary, result filtering and suite grouping."""

import pytest

from pulsedash.analysis import (
    ResultFilter,
    filter_results,
    group_by_suite,
    summarize_run,
)
from pulsedash.analysis.summary import UNTITLED_SUITE, retry_count
from pulsedash.models import TestRecord


@pytest.fixture
def results(make_record) -> list[TestRecord]:
    """A mixed set of results across two suites."""
    return [
        make_record(
            "login",
            status="passed",
            suite_name="Auth",
            name="Auth > login works",
            tags=["@smoke"],
            browser="chromium",
        ),
        make_record(
            "logout",
            status="passed",
            suite_name="Auth",
            retry_statuses=["failed", "passed"],
            browser="firefox",
        ),
        make_record(
            "checkout",
            status="failed",
            suite_name="Cart",
            retry_statuses=["failed", "timedOut"],
            tags=["@regression"],
            browser="chromium",
        ),
        make_record("slow", status="timedOut", suite_name="Cart", browser="chromium"),
        make_record("todo", status="skipped", suite_name="Cart", browser="webkit"),
        make_record("later", status="pending", suite_name="", browser="webkit"),
    ]


class TestSummarizeRun:
    """Tests for run summary metrics."""

    def test_counts(self, make_run, raw_record) -> None:
        """Counts are by effective status with timedOut folded into failed."""
        report = make_run(
            "2026-01-01T10:00:00Z",
            results=[
                raw_record("a", status="passed"),
                raw_record("b", status="passed", retry_statuses=["failed"]),
                raw_record("c", status="failed"),
                raw_record("d", status="timedOut"),
                raw_record("e", status="skipped"),
                raw_record("f", status="pending"),
            ],
        )

        summary = summarize_run(report)

        assert summary.total == 6
        assert summary.passed == 1
        assert summary.flaky == 1
        assert summary.failed == 2
        assert summary.skipped == 1
        assert summary.pending == 1

    def test_rates(self, make_run, raw_record) -> None:
        """Rates are fractions of the total."""
        report = make_run(
            "2026-01-01T10:00:00Z",
            results=[
                raw_record("a", status="passed"),
                raw_record("b", status="passed"),
                raw_record("c", status="passed"),
                raw_record("d", status="failed"),
            ],
        )

        summary = summarize_run(report)

        assert summary.pass_rate == pytest.approx(0.75)
        assert summary.fail_rate == pytest.approx(0.25)
        assert summary.flaky_rate == 0.0
        assert summary.skip_rate == 0.0

    def test_retries(self, make_run, raw_record) -> None:
        """Only failed, timed-out or flaky attempts count as retries."""
        report = make_run(
            "2026-01-01T10:00:00Z",
            results=[
                raw_record("a", status="passed", retry_statuses=["failed", "timedOut"]),
                raw_record("b", status="passed", retry_statuses=["passed", "passed"]),
                raw_record("c", status="failed", retry_statuses=["flaky"]),
            ],
        )

        summary = summarize_run(report)

        assert summary.total_retries == 3
        assert summary.retried_tests == 2

    def test_average_duration(self, make_run, raw_record) -> None:
        """Average duration is the mean over all results."""
        report = make_run(
            "2026-01-01T10:00:00Z",
            results=[raw_record("a", duration=1000), raw_record("b", duration=3000)],
        )
        assert summarize_run(report).avg_duration == 2000

    def test_missing_run(self) -> None:
        """A missing run yields an all-zero summary."""
        summary = summarize_run(None)

        assert summary.total == 0
        assert summary.pass_rate == 0.0
        assert summary.avg_duration == 0.0

    def test_empty_run(self, make_run) -> None:
        """A run without results yields an all-zero summary."""
        summary = summarize_run(make_run("2026-01-01T10:00:00Z", results=[]))

        assert summary.total == 0
        assert summary.fail_rate == 0.0


class TestRetryCount:
    """Tests for per-test retry counting."""

    def test_counts_unsuccessful_attempts(self, make_record) -> None:
        test = make_record(retry_statuses=["failed", "passed", "skipped", "timedOut"])
        assert retry_count(test) == 2

    def test_no_history(self, make_record) -> None:
        assert retry_count(make_record()) == 0


class TestFilterResults:
    """Tests for result filtering."""

    def test_default_filter_keeps_everything(self, results: list[TestRecord]) -> None:
        """The default filter matches all results in order."""
        assert filter_results(results, ResultFilter()) == results

    def test_failed_includes_timed_out(self, results: list[TestRecord]) -> None:
        """The failed filter matches failed and timedOut results."""
        filtered = filter_results(results, ResultFilter(status="failed"))
        assert [t.id for t in filtered] == ["checkout", "slow"]

    def test_status_uses_effective_status(self, results: list[TestRecord]) -> None:
        """Status filters compare against the effective status."""
        assert [t.id for t in filter_results(results, ResultFilter(status="flaky"))] == ["logout"]
        assert [t.id for t in filter_results(results, ResultFilter(status="passed"))] == ["login"]

    def test_search_is_case_insensitive(self, results: list[TestRecord]) -> None:
        """Search matches test name or suite name, ignoring case."""
        assert [t.id for t in filter_results(results, ResultFilter(search="LOGIN WORKS"))] == [
            "login"
        ]
        assert len(filter_results(results, ResultFilter(search="cart"))) == 3

    def test_tags_match_any(self, results: list[TestRecord]) -> None:
        """A result matches when it carries any selected tag."""
        filtered = filter_results(results, ResultFilter(tags=["@smoke", "@regression"]))
        assert [t.id for t in filtered] == ["login", "checkout"]

    def test_browser(self, results: list[TestRecord]) -> None:
        filtered = filter_results(results, ResultFilter(browser="webkit"))
        assert [t.id for t in filtered] == ["todo", "later"]

    def test_suite_with_untitled(self, results: list[TestRecord]) -> None:
        """Results without a suite are matched as the untitled suite."""
        filtered = filter_results(results, ResultFilter(suite=UNTITLED_SUITE))
        assert [t.id for t in filtered] == ["later"]

    def test_retries_only(self, results: list[TestRecord]) -> None:
        """Only results with unsuccessful retry attempts are kept."""
        filtered = filter_results(results, ResultFilter(retries_only=True))
        assert [t.id for t in filtered] == ["logout", "checkout"]

    def test_criteria_combine(self, results: list[TestRecord]) -> None:
        """All criteria must match."""
        criteria = ResultFilter(status="failed", browser="chromium", tags=["@regression"])
        assert [t.id for t in filter_results(results, criteria)] == ["checkout"]


class TestGroupBySuite:
    """Tests for suite grouping."""

    def test_groups_and_counts(self, results: list[TestRecord]) -> None:
        """Each suite gets its tests and effective status counters."""
        groups = {g.title: g for g in group_by_suite(results)}

        assert set(groups) == {"Auth", "Cart", UNTITLED_SUITE}
        assert groups["Auth"].stats.passed == 1
        assert groups["Auth"].stats.flaky == 1
        assert groups["Cart"].stats.failed == 2
        assert groups["Cart"].stats.skipped == 1
        assert groups[UNTITLED_SUITE].stats.pending == 1
        assert [t.id for t in groups["Cart"].tests] == ["checkout", "slow", "todo"]

    def test_sorted_by_failures_then_size(self, results: list[TestRecord]) -> None:
        """Suites with more failures come first, then larger suites, then by title."""
        titles = [g.title for g in group_by_suite(results)]
        assert titles == ["Cart", "Auth", UNTITLED_SUITE]

    def test_empty(self) -> None:
        assert group_by_suite([]) == []

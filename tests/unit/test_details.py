"""Tests for single test lookup and per-test history."""

from pulsedash.analysis import collect_test_history, describe_result, find_test
from pulsedash.models import TestStatus


class TestFindTest:
    """Tests for finding a test in a run."""

    def test_by_id(self, make_run, raw_record) -> None:
        report = make_run("2026-01-01T10:00:00Z", results=[raw_record("a"), raw_record("b")])

        found = find_test(report, "b")

        assert found is not None
        assert found.id == "b"

    def test_not_found(self, make_run, raw_record) -> None:
        report = make_run("2026-01-01T10:00:00Z", results=[raw_record("a")])
        assert find_test(report, "zzz") is None

    def test_missing_run(self) -> None:
        assert find_test(None, "a") is None

    def test_suite_disambiguates(self, make_run, raw_record) -> None:
        """The same id in two suites is told apart by suite name."""
        report = make_run(
            "2026-01-01T10:00:00Z",
            results=[raw_record("a", suite_name="Auth"), raw_record("a", suite_name="Cart")],
        )

        assert find_test(report, "a").suite_name == "Auth"
        assert find_test(report, "a", "Cart").suite_name == "Cart"
        assert find_test(report, "a", "Other") is None


class TestCollectTestHistory:
    """Tests for per-test run history."""

    def test_newest_first_with_current_run(self, make_run, raw_record) -> None:
        current = make_run(
            "2026-01-03T10:00:00Z", results=[raw_record("a", suite_name="S", duration=300)]
        )
        history = [
            make_run("2026-01-01T10:00:00Z", results=[raw_record("a", suite_name="S")]),
            make_run(
                "2026-01-02T10:00:00Z",
                results=[raw_record("a", suite_name="S", status="failed", duration=200)],
            ),
        ]

        entries = collect_test_history(current.results[0], current, history)

        assert [e.date.day for e in entries] == [3, 2, 1]
        assert entries[0].duration == 300
        assert entries[1].status == TestStatus.FAILED

    def test_current_snapshot_not_duplicated(self, make_run, raw_record) -> None:
        """A history snapshot with the current run's timestamp is skipped."""
        current = make_run("2026-01-02T10:00:00Z", results=[raw_record("a")])
        history = [
            make_run("2026-01-01T10:00:00Z", results=[raw_record("a")]),
            make_run("2026-01-02T10:00:00Z", results=[raw_record("a")]),
        ]

        entries = collect_test_history(current.results[0], current, history)

        assert [e.date.day for e in entries] == [2, 1]

    def test_matches_suite(self, make_run, raw_record) -> None:
        """A test with the same id in another suite is not part of the history."""
        current = make_run("2026-01-02T10:00:00Z", results=[raw_record("a", suite_name="S")])
        history = [
            make_run("2026-01-01T10:00:00Z", results=[raw_record("a", suite_name="Other")]),
        ]

        entries = collect_test_history(current.results[0], current, history)

        assert len(entries) == 1

    def test_effective_status(self, make_run, raw_record) -> None:
        """History entries carry the effective status, not the raw one."""
        current = make_run("2026-01-02T10:00:00Z", results=[raw_record("a")])
        history = [
            make_run(
                "2026-01-01T10:00:00Z",
                results=[raw_record("a", status="passed", retry_statuses=["timedOut"])],
            ),
        ]

        entries = collect_test_history(current.results[0], current, history)

        assert entries[-1].status == TestStatus.FLAKY


class TestDescribeResult:
    """Tests for the bundled result detail."""

    def test_detail(self, make_run, raw_record) -> None:
        current = make_run(
            "2026-01-02T10:00:00Z",
            results=[raw_record("a", status="failed", retry_statuses=["failed", "skipped"])],
        )

        detail = describe_result(current.results[0], current)

        assert detail.status == TestStatus.FAILED
        assert detail.retry_count == 1
        assert len(detail.history) == 1
        assert detail.history_error is None

    def test_history_error_is_kept(self, make_run, raw_record) -> None:
        current = make_run("2026-01-02T10:00:00Z", results=[raw_record("a")])

        detail = describe_result(current.results[0], current, history_error="denied")

        assert detail.history_error == "denied"
        assert [e.date.day for e in detail.history] == [2]

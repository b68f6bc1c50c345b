"""Tests for effective status resolution."""

import pytest

from pulsedash.analysis import effective_status, is_failure_status
from pulsedash.analysis.status import STATUS_RULES, matching_rule
from pulsedash.models import TestStatus

ALL_STATUSES = ["passed", "failed", "skipped", "timedOut", "pending", "flaky"]


class TestOutcomeRule:
    """Tests for the outcome-based rule."""

    @pytest.mark.parametrize("status", ALL_STATUSES)
    def test_flaky_outcome_wins_over_any_status(self, make_record, status: str) -> None:
        """outcome=flaky yields flaky regardless of raw status."""
        test = make_record(status=status, outcome="flaky")
        assert effective_status(test) == TestStatus.FLAKY

    def test_flaky_outcome_wins_over_final_status(self, make_record) -> None:
        """outcome=flaky yields flaky even with a contradicting final_status."""
        test = make_record(
            status="failed",
            outcome="flaky",
            final_status="failed",
            retry_statuses=["failed"],
        )
        assert effective_status(test) == TestStatus.FLAKY

    def test_expected_outcome_falls_through(self, make_record) -> None:
        """Other outcomes do not change the status."""
        test = make_record(status="passed", outcome="expected")
        assert effective_status(test) == TestStatus.PASSED


class TestRetryRule:
    """Tests for retry-history based classification."""

    def test_passed_after_failed_attempt_is_flaky(self, make_record) -> None:
        """A test that passed after a failed attempt is flaky."""
        test = make_record("t1", status="passed", retry_statuses=["failed", "passed"])
        assert effective_status(test) == TestStatus.FLAKY

    def test_passed_after_timed_out_attempt_is_flaky(self, make_record) -> None:
        """A timed-out attempt counts as a failed attempt."""
        test = make_record(status="passed", retry_statuses=["timedOut"])
        assert effective_status(test) == TestStatus.FLAKY

    def test_repeated_passing_attempts_are_not_flaky(self, make_record) -> None:
        """Repeat-each runs with no failures stay passed."""
        test = make_record("t2", status="passed", retry_statuses=["passed", "passed"])
        assert effective_status(test) == TestStatus.PASSED

    def test_skipped_attempts_are_not_failures(self, make_record) -> None:
        """Skipped attempts do not make a passing test flaky."""
        test = make_record(status="passed", retry_statuses=["skipped"])
        assert effective_status(test) == TestStatus.PASSED

    def test_empty_history_stays_passed(self, make_record) -> None:
        """An empty retry history never triggers the retry rule."""
        test = make_record(status="passed", retry_statuses=[])
        assert effective_status(test) == TestStatus.PASSED

    def test_missing_history_stays_passed(self, make_record) -> None:
        """An absent retry history never triggers the retry rule."""
        test = make_record(status="passed")
        assert test.retry_history == []
        assert effective_status(test) == TestStatus.PASSED

    def test_failed_final_attempt_stays_failed(self, make_record) -> None:
        """Failed tests are not upgraded even when earlier attempts passed."""
        test = make_record(status="failed", retry_statuses=["passed", "failed"])
        assert effective_status(test) == TestStatus.FAILED

    def test_timed_out_final_attempt_stays_timed_out(self, make_record) -> None:
        """timedOut is returned literally."""
        test = make_record(status="timedOut", retry_statuses=["passed"])
        assert effective_status(test) == TestStatus.TIMED_OUT


class TestFinalStatusRule:
    """Tests for the final_status fallback rule."""

    def test_final_status_flaky_with_retries(self, make_record) -> None:
        """final_status=flaky with retries yields flaky."""
        test = make_record(status="failed", final_status="flaky", retry_statuses=["passed"])
        assert effective_status(test) == TestStatus.FLAKY

    def test_final_status_flaky_without_retries_is_ignored(self, make_record) -> None:
        """final_status is only considered when retries happened."""
        test = make_record(status="failed", final_status="flaky")
        assert effective_status(test) == TestStatus.FAILED

    def test_final_status_other_value_is_ignored(self, make_record) -> None:
        """A non-flaky final_status never overrides the raw status."""
        test = make_record(status="skipped", final_status="passed", retry_statuses=["failed"])
        assert effective_status(test) == TestStatus.SKIPPED


class TestRuleOrder:
    """Tests for rule precedence and purity."""

    def test_rules_are_in_documented_order(self) -> None:
        """The rule list is evaluated outcome, status, retries, final_status."""
        assert [r.name for r in STATUS_RULES] == [
            "outcome-flaky",
            "status-flaky",
            "passed-after-failed-attempt",
            "final-status-flaky",
        ]

    def test_first_matching_rule_is_reported(self, make_record) -> None:
        """When several rules match, the earliest one is used."""
        test = make_record(status="flaky", outcome="flaky")
        rule = matching_rule(test)
        assert rule is not None
        assert rule.name == "outcome-flaky"

    def test_no_rule_matches_plain_result(self, make_record) -> None:
        """Plain results match no rule and keep their raw status."""
        test = make_record(status="skipped")
        assert matching_rule(test) is None
        assert effective_status(test) == TestStatus.SKIPPED

    @pytest.mark.parametrize("status", ALL_STATUSES)
    def test_plain_status_is_returned_unchanged(self, make_record, status: str) -> None:
        """Without other signals the raw status is returned."""
        test = make_record(status=status)
        assert effective_status(test).value == status

    def test_idempotent(self, make_record) -> None:
        """Classifying the same record twice yields the same result."""
        test = make_record(status="passed", retry_statuses=["failed"])
        assert effective_status(test) == effective_status(test)
        assert effective_status(test) == effective_status(test.model_copy(deep=True))


class TestIsFailureStatus:
    """Tests for the failure bucket helper."""

    @pytest.mark.parametrize("status", ["failed", "timedOut"])
    def test_failure_statuses(self, status: str) -> None:
        assert is_failure_status(status)

    @pytest.mark.parametrize("status", ["passed", "skipped", "pending", "flaky", "interrupted"])
    def test_non_failure_statuses(self, status: str) -> None:
        assert not is_failure_status(status)

"""Analysis module for status classification, flaky detection and trends."""

from pulsedash.analysis.details import collect_test_history, describe_result, find_test
from pulsedash.analysis.environment import (
    environment_label,
    environment_shards,
    format_environment_value,
)
from pulsedash.analysis.failures import categorize_failures
from pulsedash.analysis.flaky import FlakyDetector, analyze_flakiness
from pulsedash.analysis.models import (
    FailureCategorization,
    FailureCategory,
    FlakyAnalysis,
    FlakyOccurrence,
    FlakyTestDetail,
    ResultDetail,
    ResultFilter,
    RunHistoryEntry,
    RunOverview,
    RunSummary,
    StatusDistribution,
    SuiteGroup,
    SuiteStats,
    TrendPoint,
    TrendReport,
    WorkerLoad,
)
from pulsedash.analysis.overview import (
    browser_distribution,
    build_overview,
    slowest_tests,
    suite_distribution,
    worker_distribution,
)
from pulsedash.analysis.status import effective_status, is_failure_status
from pulsedash.analysis.summary import filter_results, group_by_suite, summarize_run
from pulsedash.analysis.trends import TrendAnalyzer, summarize_trend

__all__ = [
    "FailureCategorization",
    "FailureCategory",
    "FlakyAnalysis",
    "FlakyDetector",
    "FlakyOccurrence",
    "FlakyTestDetail",
    "ResultDetail",
    "ResultFilter",
    "RunHistoryEntry",
    "RunOverview",
    "RunSummary",
    "StatusDistribution",
    "SuiteGroup",
    "SuiteStats",
    "TrendAnalyzer",
    "TrendPoint",
    "TrendReport",
    "WorkerLoad",
    "analyze_flakiness",
    "browser_distribution",
    "build_overview",
    "categorize_failures",
    "collect_test_history",
    "describe_result",
    "effective_status",
    "environment_label",
    "environment_shards",
    "filter_results",
    "find_test",
    "format_environment_value",
    "group_by_suite",
    "is_failure_status",
    "slowest_tests",
    "suite_distribution",
    "summarize_run",
    "summarize_trend",
    "worker_distribution",
]

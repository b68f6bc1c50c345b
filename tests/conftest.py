"""Shared fixtures for PulseDash tests."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from pulsedash.models import RunReport, TestRecord

RecordFactory = Callable[..., TestRecord]
RunFactory = Callable[..., RunReport]


def record_data(
    test_id: str = "t1",
    status: str = "passed",
    suite_name: str = "Suite",
    name: str | None = None,
    retry_statuses: list[str] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a raw (camelCase) test record dictionary."""
    data: dict[str, Any] = {
        "id": test_id,
        "name": name if name is not None else f"{suite_name} > {test_id}",
        "suiteName": suite_name,
        "status": status,
        "duration": 1000,
    }
    if retry_statuses is not None:
        data["retryHistory"] = [{"status": s} for s in retry_statuses]
    data.update(extra)
    return data


def run_data(
    timestamp: str,
    results: list[dict[str, Any]] | None = None,
    **run_fields: Any,
) -> dict[str, Any]:
    """Build a raw run report dictionary."""
    run: dict[str, Any] = {
        "id": f"run-{timestamp}",
        "timestamp": timestamp,
        "totalTests": len(results or []),
        "passed": 0,
        "failed": 0,
        "skipped": 0,
        "duration": 5000,
    }
    run.update(run_fields)
    data: dict[str, Any] = {"run": run, "metadata": {"generatedAt": timestamp}}
    if results is not None:
        data["results"] = results
    return data


@pytest.fixture
def make_record() -> RecordFactory:
    """Factory for validated test records."""

    def _make(*args: Any, **kwargs: Any) -> TestRecord:
        return TestRecord.model_validate(record_data(*args, **kwargs))

    return _make


@pytest.fixture
def make_run() -> RunFactory:
    """Factory for validated run reports."""

    def _make(*args: Any, **kwargs: Any) -> RunReport:
        return RunReport.model_validate(run_data(*args, **kwargs))

    return _make


@pytest.fixture
def report_dir(tmp_path: Path) -> Path:
    """Create an empty pulse report directory."""
    directory = tmp_path / "pulse-report"
    directory.mkdir()
    return directory


def write_json(path: Path, data: Any) -> Path:
    """Write JSON data to a file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def raw_record() -> Callable[..., dict[str, Any]]:
    """Builder for raw test record dictionaries."""
    return record_data


@pytest.fixture
def raw_run() -> Callable[..., dict[str, Any]]:
    """Builder for raw run report dictionaries."""
    return run_data


@pytest.fixture
def write_report() -> Callable[[Path, Any], Path]:
    """Writer for JSON report files."""
    return write_json

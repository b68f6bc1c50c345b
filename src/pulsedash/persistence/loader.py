"""Report store implementation.

Handles loading the current run report and historical run snapshots from a
report directory.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from pulsedash.exceptions import (
    HistoryUnavailableError,
    MalformedReportError,
    ReportNotFoundError,
)
from pulsedash.models.report import RunReport

logger = logging.getLogger(__name__)

CURRENT_REPORT_FILE = "playwright-pulse-report.json"
HISTORY_DIR = "history"
HISTORY_FILE_PREFIX = "trend-"
HISTORY_FILE_SUFFIX = ".json"


class ReportStore:
    """Reads pulse reports from the filesystem."""

    def __init__(
        self,
        report_dir: Path,
        current_file: str = CURRENT_REPORT_FILE,
        history_dir: str = HISTORY_DIR,
    ) -> None:
        """Initialize the report store.

        Args:
            report_dir: Directory the pulse reporter writes to.
            current_file: File name of the current run report.
            history_dir: Name of the history subdirectory.
        """
        self._report_dir = report_dir
        self._current_path = report_dir / current_file
        self._history_dir = report_dir / history_dir

    @property
    def report_dir(self) -> Path:
        return self._report_dir

    @property
    def current_path(self) -> Path:
        return self._current_path

    @property
    def history_dir(self) -> Path:
        return self._history_dir

    def load_current_run(self, *, strict: bool = False) -> RunReport | None:
        """Load the current run report.

        Args:
            strict: Raise instead of returning None when the report is
                missing or malformed.

        Returns:
            The current run, or None if it is missing or malformed.

        Raises:
            ReportNotFoundError: If strict and the report does not exist.
            MalformedReportError: If strict and the report is invalid.
        """
        try:
            return self._read_report(self._current_path)
        except (ReportNotFoundError, MalformedReportError) as e:
            if strict:
                raise
            logger.error("Error reading current run report: %s", e)
            return None

    def load_historical_runs(self) -> list[RunReport]:
        """Load all historical run snapshots.

        Files that cannot be read or parsed are logged and skipped.

        Returns:
            Historical runs sorted by timestamp ascending. Empty if the
            history directory does not exist.

        Raises:
            HistoryUnavailableError: If the history directory cannot be listed.
        """
        history_files = self.list_history_files()
        logger.debug("Found %d history files in %s", len(history_files), self._history_dir)

        reports: list[RunReport] = []
        for history_file in history_files:
            try:
                report = self._read_report(history_file, require_results=True)
            except (ReportNotFoundError, MalformedReportError) as e:
                logger.warning("Skipping historical report %s: %s", history_file.name, e)
                continue
            if report.run.flakiness_rate is None:
                report.run.flakiness_rate = 0.0
            reports.append(report)

        reports.sort(key=lambda r: r.timestamp)
        return reports

    def list_history_files(self) -> list[Path]:
        """List history snapshot files (``trend-*.json``).

        Returns:
            Matching file paths sorted by name.

        Raises:
            HistoryUnavailableError: If the history directory cannot be listed.
        """
        try:
            entries = list(self._history_dir.iterdir())
        except FileNotFoundError:
            logger.info(
                "History directory not found at %s. This is normal if no historical "
                "reports exist yet.",
                self._history_dir,
            )
            return []
        except OSError as e:
            msg = f"Cannot read history directory {self._history_dir}: {e}"
            raise HistoryUnavailableError(msg) from e

        return sorted(
            entry
            for entry in entries
            if entry.name.startswith(HISTORY_FILE_PREFIX)
            and entry.name.endswith(HISTORY_FILE_SUFFIX)
        )

    def _read_report(self, path: Path, *, require_results: bool = False) -> RunReport:
        """Read and validate a single report file."""
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            msg = f"Report file not found: {path}"
            raise ReportNotFoundError(msg) from e
        except OSError as e:
            msg = f"Report file unreadable: {path}: {e}"
            raise MalformedReportError(msg) from e
        except UnicodeDecodeError as e:
            msg = f"Report file is not valid UTF-8: {path}: {e}"
            raise MalformedReportError(msg) from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            msg = f"Invalid JSON in report file {path}: {e}"
            raise MalformedReportError(msg) from e

        if not isinstance(data, dict) or "run" not in data:
            msg = f"Report file {path} has no run metadata"
            raise MalformedReportError(msg)
        if require_results and "results" not in data:
            msg = f"Report file {path} has no results"
            raise MalformedReportError(msg)

        try:
            return RunReport.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid report in {path}: {e}"
            raise MalformedReportError(msg) from e

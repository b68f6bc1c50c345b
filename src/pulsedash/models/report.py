"""Report data models.

Defines the structure of the JSON reports written by the Playwright pulse
reporter. Keys are camelCase on disk and snake_case in Python.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing_extensions import TypeAliasType

# Arbitrarily nested environment information (os, cpu, node versions, ...)
EnvironmentValue = TypeAliasType(
    "EnvironmentValue",
    "bool | int | float | str | None | list[EnvironmentValue] | dict[str, EnvironmentValue]",
)

EnvironmentInfo = dict[str, EnvironmentValue]


class TestStatus(str, Enum):
    """Status of a test as recorded for its final attempt."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    TIMED_OUT = "timedOut"
    PENDING = "pending"
    FLAKY = "flaky"


class TestOutcome(str, Enum):
    """Outcome signal set by the test runner independently of the status."""

    __test__ = False

    FLAKY = "flaky"
    EXPECTED = "expected"
    UNEXPECTED = "unexpected"
    SKIPPED = "skipped"


class _ReportModel(BaseModel):
    """Base for models read from camelCase report JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RetryAttempt(_ReportModel):
    """A prior attempt of a retried test."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    status: str
    duration: float | None = None
    error_message: str | None = None


class TestStep(_ReportModel):
    """Single step of a test, possibly with nested steps."""

    __test__ = False

    id: str | None = None
    title: str
    status: str
    duration: float = 0.0
    start_time: str | None = None
    end_time: str | None = None
    browser: str | None = None
    code_location: str | None = None
    is_hook: bool = False
    hook_type: str | None = None
    steps: list["TestStep"] = Field(default_factory=list)
    error_message: str | None = None


class AnnotationLocation(BaseModel):
    """Source location of an annotation."""

    file: str
    line: int
    column: int


class Annotation(_ReportModel):
    """Test annotation (e.g. ``@slow`` or ``@issue``)."""

    type: str
    description: str | None = None
    location: AnnotationLocation | None = None


class TestRecord(_ReportModel):
    """One test execution within one run."""

    __test__ = False

    id: str
    run_id: str | None = None
    name: str = ""
    suite_name: str = ""
    status: TestStatus
    outcome: TestOutcome | None = None
    final_status: TestStatus | None = Field(default=None, alias="final_status")
    duration: float = 0.0
    start_time: str | None = None
    end_time: str | None = None
    browser: str | None = None
    retries: int = 0  # Configured retries, not attempts made
    retry_history: list[RetryAttempt] = Field(default_factory=list)
    steps: list[TestStep] = Field(default_factory=list)
    error_message: str | None = None
    stdout: list[str] | None = None
    code_snippet: str | None = None
    tags: list[str] = Field(default_factory=list)
    screenshots: list[str] | None = None
    video_path: list[str] | None = None
    trace_path: str | None = None
    attachments: Any = None
    annotations: list[Annotation] = Field(default_factory=list)
    worker_id: str | int | None = None
    total_workers: int | None = None
    config_file: str | None = None

    @field_validator("retry_history", "steps", "tags", "annotations", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def join_key(self) -> tuple[str, str]:
        """Key identifying this test across runs."""
        return (self.suite_name, self.id)


class RunMetadata(_ReportModel):
    """Metadata and precomputed summary counters of one run."""

    id: str | None = None
    timestamp: datetime
    total_tests: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration: float = 0.0
    timed_out: int | None = None
    pending: int | None = None
    flakiness_rate: float | None = None
    user_project_dir: str | None = None
    environment: EnvironmentInfo | list[EnvironmentInfo] | None = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are taken as UTC so all runs stay comparable
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class ReportFileMetadata(_ReportModel):
    """Metadata about the report file itself."""

    generated_at: str | None = None
    user_project_dir: str | None = None


class RunReport(_ReportModel):
    """Complete report of one run: metadata plus per-test results."""

    run: RunMetadata
    results: list[TestRecord] = Field(default_factory=list)
    metadata: ReportFileMetadata | None = None
    environment: EnvironmentInfo | list[EnvironmentInfo] | None = None

    @field_validator("results", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def timestamp(self) -> datetime:
        """Timestamp identifying the run."""
        return self.run.timestamp

"""Data models for PulseDash."""

from pulsedash.models.report import (
    Annotation,
    AnnotationLocation,
    EnvironmentInfo,
    EnvironmentValue,
    ReportFileMetadata,
    RetryAttempt,
    RunMetadata,
    RunReport,
    TestOutcome,
    TestRecord,
    TestStatus,
    TestStep,
)

__all__ = [
    "Annotation",
    "AnnotationLocation",
    "EnvironmentInfo",
    "EnvironmentValue",
    "ReportFileMetadata",
    "RetryAttempt",
    "RunMetadata",
    "RunReport",
    "TestOutcome",
    "TestRecord",
    "TestStatus",
    "TestStep",
]

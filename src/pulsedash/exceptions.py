"""Custom exception hierarchy for PulseDash.

All exceptions inherit from PulseDashError for easy catching at the top level.
Follows fail-fast principles - malformed input is rejected, never patched up.
"""


class PulseDashError(Exception):
    """Base exception for all PulseDash errors."""


class ConfigurationError(PulseDashError):
    """Configuration-related errors."""


class ReportError(PulseDashError):
    """Report store errors."""


class ReportNotFoundError(ReportError):
    """Requested report file does not exist."""


class MalformedReportError(ReportError):
    """Report file is not valid JSON or fails validation."""


class HistoryUnavailableError(ReportError):
    """History directory exists but cannot be read."""

"""PulseDash - insights over Playwright pulse reports."""

__version__ = "0.1.0"

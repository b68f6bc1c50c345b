"""Configuration file support for pulsedash."""

from pulsedash.config.loader import (
    ConfigLoader,
    FileConfig,
    ReportConfig,
    load_config,
)

__all__ = [
    "ConfigLoader",
    "FileConfig",
    "ReportConfig",
    "load_config",
]

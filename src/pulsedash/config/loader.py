"""Configuration file loader.

Handles discovery, parsing, and environment interpolation of YAML
configuration files, and resolution of the report directory.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from pulsedash.exceptions import ConfigurationError
from pulsedash.persistence.loader import CURRENT_REPORT_FILE, HISTORY_DIR

# Pattern matches ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:-]+)(?::-([^}]*))?\}")

# Default config file names in priority order
CONFIG_FILE_NAMES = ["pulsedash.yaml", ".pulsedash.yaml", "pulsedash.yml", ".pulsedash.yml"]

DEFAULT_REPORT_DIR = "pulse-report"
REPORT_DIR_ENV = "PULSE_REPORT_DIR"
USER_CWD_ENV = "PULSE_USER_CWD"


class ReportConfig(BaseModel):
    """Configuration for locating pulse reports."""

    dir: str | None = None
    current_file: str = CURRENT_REPORT_FILE
    history_dir: str = HISTORY_DIR


class FileConfig(BaseModel):
    """Schema for pulsedash.yaml configuration file."""

    report: ReportConfig = Field(default_factory=ReportConfig)


def _env_value(environ: Mapping[str, str], name: str) -> str | None:
    """Return a stripped environment value, treating blanks as unset."""
    value = environ.get(name, "").strip()
    return value or None


class ConfigLoader:
    """Load configuration from files, environment and CLI arguments."""

    @staticmethod
    def discover_config_file(explicit_path: Path | None = None) -> Path | None:
        """Find configuration file in priority order.

        Args:
            explicit_path: Explicitly provided config file path.

        Returns:
            Path to config file, or None if not found.

        Raises:
            ConfigurationError: If explicit path doesn't exist.
        """
        if explicit_path is not None:
            if not explicit_path.exists():
                msg = f"Configuration file not found: {explicit_path}"
                raise ConfigurationError(msg)
            return explicit_path

        cwd = Path.cwd()
        for filename in CONFIG_FILE_NAMES:
            config_path = cwd / filename
            if config_path.exists():
                return config_path

        return None

    @staticmethod
    def load_yaml(path: Path) -> dict[str, Any]:
        """Load and parse YAML configuration file.

        Args:
            path: Path to YAML file.

        Returns:
            Parsed configuration dictionary.

        Raises:
            ConfigurationError: If file cannot be read or parsed.
        """
        try:
            with path.open() as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            msg = f"Failed to parse configuration file {path}: {e}"
            raise ConfigurationError(msg) from e
        except OSError as e:
            msg = f"Failed to read configuration file {path}: {e}"
            raise ConfigurationError(msg) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            msg = f"Configuration file {path} must contain a mapping"
            raise ConfigurationError(msg)
        return content

    @staticmethod
    def interpolate_env_vars(value: Any) -> Any:
        """Recursively interpolate environment variables in configuration.

        Supports two syntaxes:
        - ${VAR} - Required variable, raises error if not set
        - ${VAR:-default} - Optional variable with default value

        Raises:
            ConfigurationError: If required environment variable is not set.
        """
        if isinstance(value, str):

            def replace(match: re.Match[str]) -> str:
                var_name = match.group(1)
                default_value = match.group(2)
                env_value = os.environ.get(var_name)
                if env_value is not None:
                    return env_value
                if default_value is not None:
                    return default_value
                msg = f"Environment variable {var_name} is not set"
                raise ConfigurationError(msg)

            return ENV_VAR_PATTERN.sub(replace, value)
        elif isinstance(value, dict):
            return {k: ConfigLoader.interpolate_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [ConfigLoader.interpolate_env_vars(item) for item in value]
        return value

    @staticmethod
    def load_config(explicit_path: Path | None = None) -> FileConfig | None:
        """Discover, load, and parse configuration file.

        Args:
            explicit_path: Explicitly provided config file path.

        Returns:
            Parsed FileConfig, or None if no config file found.

        Raises:
            ConfigurationError: If config file exists but is invalid.
        """
        config_path = ConfigLoader.discover_config_file(explicit_path)
        if config_path is None:
            return None

        raw_config = ConfigLoader.load_yaml(config_path)
        interpolated = ConfigLoader.interpolate_env_vars(raw_config)

        try:
            return FileConfig.model_validate(interpolated)
        except ValidationError as e:
            msg = f"Invalid configuration in {config_path}: {e}"
            raise ConfigurationError(msg) from e

    @staticmethod
    def resolve_report_dir(
        file_config: FileConfig | None,
        *,
        cli_report_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> Path:
        """Resolve the report directory.

        Priority order (highest to lowest):
        1. CLI argument
        2. PULSE_REPORT_DIR environment variable
        3. Config file ``report.dir``
        4. PULSE_USER_CWD/pulse-report
        5. <cwd>/pulse-report

        A relative CLI argument or PULSE_REPORT_DIR is taken as given, relative
        to the working directory. A relative config file value and the default
        resolve against PULSE_USER_CWD when set, else the working directory.

        Args:
            file_config: Parsed configuration file, or None.
            cli_report_dir: CLI report directory override.
            environ: Environment mapping (defaults to os.environ).
            cwd: Working directory (defaults to Path.cwd()).

        Returns:
            Absolute report directory path.
        """
        env = os.environ if environ is None else environ
        working_dir = cwd or Path.cwd()

        if cli_report_dir is not None:
            return (working_dir / cli_report_dir).resolve()
        if env_dir := _env_value(env, REPORT_DIR_ENV):
            return (working_dir / env_dir).resolve()

        base_dir = Path(_env_value(env, USER_CWD_ENV) or working_dir)
        report_dir: str
        if file_config is not None and file_config.report.dir:
            report_dir = file_config.report.dir
        else:
            report_dir = DEFAULT_REPORT_DIR

        return (base_dir / report_dir).resolve()


def load_config(explicit_path: Path | None = None) -> FileConfig | None:
    """Convenience function to load configuration.

    Args:
        explicit_path: Explicitly provided config file path.

    Returns:
        Parsed FileConfig, or None if no config file found.
    """
    return ConfigLoader.load_config(explicit_path)

"""Environment information of a run.

The reporter records system details (os, cpu, memory, node version, ...) as
arbitrarily nested values, either once per run or once per shard.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pulsedash.models.report import EnvironmentInfo, EnvironmentValue, RunReport

EMPTY = "Empty"
NOT_AVAILABLE = "N/A"
# Mappings with more entries are shown as an item count
MAX_INLINE_ENTRIES = 3


def environment_shards(report: RunReport | None) -> list[EnvironmentInfo]:
    """Return the environment of each shard of a run.

    The run metadata takes precedence over the top-level ``environment``
    key. A single environment is returned as a one-element list.
    """
    if report is None:
        return []
    environment = report.run.environment or report.environment
    if not environment:
        return []
    if isinstance(environment, list):
        return environment
    return [environment]


def _spaced(key: str) -> str:
    return re.sub(r"([A-Z])", r" \1", key).strip()


def environment_label(key: str) -> str:
    """Turn a camelCase key into a title, e.g. ``osVersion`` -> ``Os Version``."""
    label = re.sub(r"([A-Z]+)", r" \1", key)
    label = re.sub(r"([A-Z][a-z])", r" \1", label)
    label = " ".join(label.split())
    return label[:1].upper() + label[1:]


def format_environment_value(value: EnvironmentValue) -> str:
    """Render an environment value as a single line.

    Args:
        value: Scalar, list or mapping as found in the report.

    Returns:
        Scalars as text, lists joined by commas, small mappings inline as
        ``key: value`` pairs and larger ones as an item count.
    """
    match value:
        case None:
            return NOT_AVAILABLE
        case bool():
            return "true" if value else "false"
        case int() | float() | str():
            return str(value)
        case list():
            if not value:
                return EMPTY
            return ", ".join(format_environment_value(item) for item in value)
        case dict():
            if not value:
                return EMPTY
            if len(value) > MAX_INLINE_ENTRIES:
                return f"{len(value)} items"
            return ", ".join(
                f"{_spaced(key)}: {format_environment_value(item)}" for key, item in value.items()
            )
        case _:
            return NOT_AVAILABLE

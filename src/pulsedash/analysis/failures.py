"""Failure categorization.

Groups the failed tests of a run by matching keywords in their error messages.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pulsedash.analysis.models import FailureCategorization, FailureCategory
from pulsedash.analysis.status import is_failure_status

if TYPE_CHECKING:
    from pulsedash.models.report import TestRecord

ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*[mGKH]")
OTHER_ERRORS_CATEGORY = "Other Errors"
MAX_EXAMPLE_MESSAGES = 3


@dataclass(frozen=True)
class CategoryRule:
    """Keywords that assign an error message to a category."""

    name: str
    keywords: tuple[str, ...]
    description: str


# Checked in order; the first matching category wins
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        "Timeout Errors",
        ("timeout", "exceeded"),
        "Tests that failed due to exceeding a specified time limit for an operation.",
    ),
    CategoryRule(
        "Locator/Selector Errors",
        (
            "locator",
            "selector",
            "getByRole",
            "getByText",
            "getByLabel",
            "getByPlaceholder",
            "element not found",
            "no element found",
        ),
        "Failures related to finding or interacting with UI elements on the page.",
    ),
    CategoryRule(
        "Assertion Errors",
        ("expect(", "expected", "assertion failed"),
        "Tests where a specific condition or value did not meet the expected criteria.",
    ),
    CategoryRule(
        "Strict Mode Violations",
        ("strict mode violation",),
        "Failures caused by strict mode, often when a locator resolves to multiple elements.",
    ),
    CategoryRule(
        "Navigation Errors",
        ("navigation failed", "page.goto", "frame.goto"),
        "Errors that occurred during page navigation actions.",
    ),
)


def strip_ansi(text: str | None) -> str:
    """Remove ANSI escape sequences from text."""
    if not text:
        return ""
    return ANSI_ESCAPE_PATTERN.sub("", text)


def categorize_message(error_message: str | None) -> CategoryRule | None:
    """Find the category for an error message.

    Returns:
        The first matching rule, or None for uncategorized messages.
    """
    message = strip_ansi(error_message or "Unknown error").lower()
    for rule in CATEGORY_RULES:
        if any(keyword.lower() in message for keyword in rule.keywords):
            return rule
    return None


def categorize_failures(results: Iterable[TestRecord]) -> FailureCategorization:
    """Group failed and timed-out tests by error category.

    Tests are de-duplicated by name, keeping the first occurrence.

    Args:
        results: Test results of a run.

    Returns:
        Categories sorted by test count descending.
    """
    unique_failed: dict[str, TestRecord] = {}
    for test in results:
        if is_failure_status(test.status.value) and test.name not in unique_failed:
            unique_failed[test.name] = test

    categories: dict[str, FailureCategory] = {}
    for test in unique_failed.values():
        rule = categorize_message(test.error_message)
        name = rule.name if rule else OTHER_ERRORS_CATEGORY
        category = categories.setdefault(
            name,
            FailureCategory(category_name=name, description=rule.description if rule else None),
        )
        category.tests.append(test)
        category.count += 1
        if len(category.example_error_messages) < MAX_EXAMPLE_MESSAGES:
            category.example_error_messages.append(test.error_message)

    return FailureCategorization(
        categories=sorted(categories.values(), key=lambda c: -c.count),
        total_failed=len(unique_failed),
    )

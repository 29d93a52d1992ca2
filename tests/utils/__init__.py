"""Testing utilities for protkmers."""

from tests.utils.assertions import CLIAssertions, ResultTableAssertions

__all__ = [
    "CLIAssertions",
    "ResultTableAssertions",
]

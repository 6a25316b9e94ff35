"""Result seekers for TestNG XML reports."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from testopia_runner.parsers.models import Suite, TestMethod
from testopia_runner.parsers.testng import TestNGParser

from .base import ResultSeeker


class TestNGClassNameResultSeeker(ResultSeeker):
    """Matches each TestNG class name with the test case alias."""

    __test__ = False

    display_name = "TestNG class name"

    def parse_report(self, path: Path) -> Suite:
        return TestNGParser.parse_file(path)

    def candidates(self, suite: Suite) -> Iterator[tuple[str, tuple[TestMethod, ...]]]:
        for test in suite.tests:
            for clazz in test.classes:
                yield clazz.name, clazz.methods


class TestNGSuiteNameResultSeeker(ResultSeeker):
    """Matches the TestNG suite name with the test case alias.

    The status is resolved over every method of the suite.
    """

    __test__ = False

    display_name = "TestNG suite name"

    def parse_report(self, path: Path) -> Suite:
        return TestNGParser.parse_file(path)

    def candidates(self, suite: Suite) -> Iterator[tuple[str, tuple[TestMethod, ...]]]:
        yield suite.name, suite.methods

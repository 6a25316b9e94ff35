"""Result seeker for JUnit XML reports."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from testopia_runner.parsers.junit import JUnitParser
from testopia_runner.parsers.models import Suite, TestMethod

from .base import ResultSeeker


class JUnitClassNameResultSeeker(ResultSeeker):
    """Matches each JUnit test case `classname` with the test case alias."""

    display_name = "JUnit class name"

    def parse_report(self, path: Path) -> Suite:
        return JUnitParser.parse_file(path)

    def candidates(self, suite: Suite) -> Iterator[tuple[str, tuple[TestMethod, ...]]]:
        for test in suite.tests:
            for clazz in test.classes:
                yield clazz.name, clazz.methods

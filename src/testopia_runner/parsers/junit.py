"""JUnit XML parser for test reports.

This module provides parsing of JUnit XML format, commonly used by:
- JUnit and Surefire (Java)
- pytest (with --junitxml)
- Jest (with jest-junit reporter)

Each `<testsuite>` becomes a Test and its `<testcase>` elements are grouped
by `classname` into classes, so JUnit reports can be matched the same way as
TestNG ones.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from testopia_runner.core.exceptions import ReportParseError

from .models import FAIL, PASS, SKIP, Suite, Test, TestClass, TestMethod


class JUnitParser:
    """Parser for JUnit XML reports."""

    @staticmethod
    def parse_string(xml_content: str) -> Suite:
        """Parse JUnit XML from string.

        Args:
            xml_content: JUnit XML as string.

        Returns:
            Suite with parsed data.

        Raises:
            ReportParseError: If the XML is malformed or not a JUnit report.
        """
        try:
            root = ET.fromstring(xml_content)  # noqa: S314 - trusted test report data
        except ET.ParseError as e:
            raise ReportParseError(None, str(e)) from e
        return JUnitParser._parse_root(root, None)

    @staticmethod
    def parse_file(file_path: Path | str) -> Suite:
        """Parse JUnit XML from file.

        Args:
            file_path: Path to JUnit XML file.

        Returns:
            Suite with parsed data, its `source` set to the file path.

        Raises:
            ReportParseError: If the XML is malformed or not a JUnit report.
        """
        try:
            tree = ET.parse(file_path)  # noqa: S314 - trusted test report data
        except ET.ParseError as e:
            raise ReportParseError(file_path, str(e)) from e
        return JUnitParser._parse_root(tree.getroot(), file_path)

    @staticmethod
    def _parse_root(root: ET.Element, file_path: Path | str | None) -> Suite:
        """Parse the root element of JUnit XML."""
        # Handle both <testsuites> and <testsuite> as root
        if root.tag == "testsuites":
            name = root.get("name", "")
            testsuites = root.findall("testsuite")
            if not name and testsuites:
                name = testsuites[0].get("name", "")
        elif root.tag == "testsuite":
            name = root.get("name", "")
            testsuites = [root]
        else:
            raise ReportParseError(file_path, f"unexpected root element <{root.tag}>")

        return Suite(
            name=name,
            tests=tuple(JUnitParser._parse_testsuite(ts) for ts in testsuites),
            source=str(file_path) if file_path is not None else "",
        )

    @staticmethod
    def _parse_testsuite(testsuite: ET.Element) -> Test:
        """Parse a testsuite element, grouping test cases by classname."""
        grouped: dict[str, list[TestMethod]] = {}
        for testcase in testsuite.findall("testcase"):
            classname = testcase.get("classname", "")
            grouped.setdefault(classname, []).append(JUnitParser._parse_testcase(testcase))

        classes = tuple(
            TestClass(name=classname, methods=tuple(methods))
            for classname, methods in grouped.items()
        )
        return Test(name=testsuite.get("name", ""), classes=classes)

    @staticmethod
    def _parse_testcase(testcase: ET.Element) -> TestMethod:
        """Parse a testcase element."""
        status = PASS
        message = ""

        # Failures and errors both count as a failed method
        for tag in ("failure", "error"):
            problem = testcase.find(tag)
            if problem is not None:
                status = FAIL
                message = problem.get("message", "")
                content = problem.text or ""
                # If no message attribute, use content
                if not message and content.strip():
                    message = content.strip().split("\n")[0]
                break
        else:
            skipped = testcase.find("skipped")
            if skipped is not None:
                status = SKIP
                message = skipped.get("message", "")

        try:
            duration_ms = int(float(testcase.get("time", 0) or 0) * 1000)
        except ValueError:
            duration_ms = 0

        return TestMethod(
            name=testcase.get("name", ""),
            status=status,
            duration_ms=duration_ms,
            message=message,
        )

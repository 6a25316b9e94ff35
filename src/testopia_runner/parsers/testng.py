"""TestNG XML parser for test reports.

Parses the `testng-results.xml` file written by TestNG's XML reporter:

    <testng-results>
      <suite name="...">
        <test name="...">
          <class name="com.example.LoginTest">
            <test-method status="PASS" name="testLogin" .../>

A single `<suite>` element as the document root is accepted as well. Each
file yields exactly one Suite; when a results file holds several suites
their tests are gathered under the name of the first one.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from testopia_runner.core.exceptions import ReportParseError

from .models import Suite, Test, TestClass, TestMethod


def _duration_ms(value: str | None) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0


class TestNGParser:
    """Parser for TestNG XML reports."""

    __test__ = False

    @staticmethod
    def parse_string(xml_content: str) -> Suite:
        """Parse TestNG XML from string.

        Args:
            xml_content: TestNG XML as string.

        Returns:
            Suite with parsed data.

        Raises:
            ReportParseError: If the XML is malformed or not a TestNG report.
        """
        try:
            root = ET.fromstring(xml_content)  # noqa: S314 - trusted test report data
        except ET.ParseError as e:
            raise ReportParseError(None, str(e)) from e
        return TestNGParser._parse_root(root, None)

    @staticmethod
    def parse_file(file_path: Path | str) -> Suite:
        """Parse TestNG XML from file.

        Args:
            file_path: Path to TestNG XML file.

        Returns:
            Suite with parsed data, its `source` set to the file path.

        Raises:
            ReportParseError: If the XML is malformed or not a TestNG report.
        """
        try:
            tree = ET.parse(file_path)  # noqa: S314 - trusted test report data
        except ET.ParseError as e:
            raise ReportParseError(file_path, str(e)) from e
        return TestNGParser._parse_root(tree.getroot(), file_path)

    @staticmethod
    def _parse_root(root: ET.Element, file_path: Path | str | None) -> Suite:
        if root.tag == "testng-results":
            suites = root.findall("suite")
        elif root.tag == "suite":
            suites = [root]
        else:
            raise ReportParseError(file_path, f"unexpected root element <{root.tag}>")

        name = suites[0].get("name", "") if suites else ""
        tests: list[Test] = []
        for suite in suites:
            tests.extend(TestNGParser._parse_test(test) for test in suite.findall("test"))

        return Suite(
            name=name,
            tests=tuple(tests),
            source=str(file_path) if file_path is not None else "",
        )

    @staticmethod
    def _parse_test(test: ET.Element) -> Test:
        classes = tuple(TestNGParser._parse_class(c) for c in test.findall("class"))
        return Test(name=test.get("name", ""), classes=classes)

    @staticmethod
    def _parse_class(clazz: ET.Element) -> TestClass:
        methods = tuple(TestNGParser._parse_method(m) for m in clazz.findall("test-method"))
        return TestClass(name=clazz.get("name", ""), methods=methods)

    @staticmethod
    def _parse_method(method: ET.Element) -> TestMethod:
        message = ""
        exception = method.find("exception")
        if exception is not None:
            message = (exception.findtext("message") or "").strip()
            if not message:
                message = exception.get("class", "")

        return TestMethod(
            name=method.get("name", ""),
            status=method.get("status", "").strip().lower(),
            signature=method.get("signature", ""),
            is_config=method.get("is-config", "false").lower() == "true",
            duration_ms=_duration_ms(method.get("duration-ms")),
            message=message,
        )

"""Tests for the TestNG XML parser."""

from __future__ import annotations

import pytest

from testopia_runner.core.exceptions import ReportParseError
from testopia_runner.parsers.testng import TestNGParser
from tests.factories import make_testng_xml, write_report


class TestTestNGParser:
    """Tests for TestNGParser.parse_string."""

    def test_parse_classes_and_methods(self):
        """Each class keeps its methods in document order."""
        xml = make_testng_xml({"com.example.LoginTest": ["PASS", "FAIL"], "Other": ["SKIP"]})

        suite = TestNGParser.parse_string(xml)

        assert suite.name == "Regression"
        assert [c.name for c in suite.classes] == ["com.example.LoginTest", "Other"]
        login = suite.classes[0]
        assert [m.name for m in login.methods] == ["method0", "method1"]
        assert [m.status for m in login.methods] == ["pass", "fail"]
        assert suite.classes[1].methods[0].status == "skip"

    def test_failed_method_carries_exception_message(self):
        """The exception message is kept for failure notes."""
        suite = TestNGParser.parse_string(make_testng_xml({"LoginTest": ["FAIL"]}))

        method = suite.methods[0]
        assert method.message == "expected true in method0"
        assert method.duration_ms == 12
        assert method.signature == "method0()"

    def test_exception_without_message_uses_class(self):
        """Without a <message>, the exception class name is used."""
        xml = """<testng-results><suite name="S"><test name="T"><class name="C">
            <test-method status="FAIL" name="m"><exception class="java.lang.NullPointerException"/></test-method>
        </class></test></suite></testng-results>"""

        suite = TestNGParser.parse_string(xml)

        assert suite.methods[0].message == "java.lang.NullPointerException"

    def test_method_without_status_has_empty_status(self):
        """A missing status attribute is neither pass, fail nor skip."""
        suite = TestNGParser.parse_string(make_testng_xml({"LoginTest": [""]}))

        assert suite.methods[0].status == ""

    def test_config_methods_are_flagged(self):
        """Configuration methods are parsed with is_config set."""
        xml = """<testng-results><suite name="S"><test name="T"><class name="C">
            <test-method status="PASS" name="setUp" is-config="true"/>
            <test-method status="PASS" name="testIt"/>
        </class></test></suite></testng-results>"""

        methods = TestNGParser.parse_string(xml).methods

        assert [m.is_config for m in methods] == [True, False]

    def test_suite_as_root_element(self):
        """A bare <suite> document is accepted."""
        xml = '<suite name="Smoke"><test name="T"><class name="C"/></test></suite>'

        suite = TestNGParser.parse_string(xml)

        assert suite.name == "Smoke"
        assert suite.classes[0].name == "C"
        assert suite.classes[0].methods == ()

    def test_several_suites_are_merged_under_first_name(self):
        """Tests of every suite are collected, named after the first suite."""
        xml = """<testng-results>
            <suite name="First"><test name="A"><class name="C1"/></test></suite>
            <suite name="Second"><test name="B"><class name="C2"/></test></suite>
        </testng-results>"""

        suite = TestNGParser.parse_string(xml)

        assert suite.name == "First"
        assert [t.name for t in suite.tests] == ["A", "B"]
        assert [c.name for c in suite.classes] == ["C1", "C2"]

    def test_empty_results(self):
        """A results document without suites yields an empty Suite."""
        suite = TestNGParser.parse_string("<testng-results/>")

        assert suite.name == ""
        assert suite.tests == ()
        assert suite.methods == ()

    def test_malformed_xml_raises(self):
        """Broken XML raises ReportParseError."""
        with pytest.raises(ReportParseError):
            TestNGParser.parse_string("<testng-results><suite>")

    def test_unknown_root_raises(self):
        """Documents of another schema are rejected."""
        with pytest.raises(ReportParseError, match="unexpected root element <testsuites>"):
            TestNGParser.parse_string("<testsuites/>")


class TestTestNGParserFiles:
    """Tests for TestNGParser.parse_file."""

    def test_source_is_file_path(self, tmp_path):
        """Parsed suites remember where they came from."""
        path = write_report(tmp_path, "target/testng-results.xml",
                            make_testng_xml({"LoginTest": ["PASS"]}))

        suite = TestNGParser.parse_file(path)

        assert suite.source == str(path)
        assert suite.classes[0].name == "LoginTest"

    def test_malformed_file_error_names_path(self, tmp_path):
        """The error message points at the broken file."""
        path = write_report(tmp_path, "broken.xml", "<testng-results>")

        with pytest.raises(ReportParseError) as exc_info:
            TestNGParser.parse_file(path)

        assert exc_info.value.path == path
        assert str(path) in str(exc_info.value)

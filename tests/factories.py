"""Test data factories for testopia-runner tests.

This module provides factory functions for creating test data objects.
Use these instead of defining fixtures locally in each test file.

Usage:
    from tests.factories import make_test_case, make_testng_xml

    def test_something(tmp_path):
        case = make_test_case(alias="LoginTest")
        (tmp_path / "testng-results.xml").write_text(
            make_testng_xml({"LoginTest": ["PASS", "FAIL"]})
        )
"""

from __future__ import annotations

from unittest.mock import MagicMock

from testopia_runner.client import TestopiaClient
from testopia_runner.config import InstallationConfig
from testopia_runner.core.models import TestCase, TestRun
from testopia_runner.parsers.models import TestMethod


def make_test_case(
    case_id: int = 1,
    alias: str = "LoginTest",
    summary: str = "Login works",
    script: str = "tests/login.sh",
    is_automated: bool = True,
    run_id: int | None = 10,
    build_id: int | None = 20,
    environment_id: int | None = 30,
) -> TestCase:
    """Create a TestCase already bound to a test run.

    Args:
        case_id: Testopia case id.
        alias: Alias matched against report names.
        summary: Case summary.
        script: Script field exported to iterative steps.
        is_automated: Whether the case is automated.
        run_id: Bound test run id.
        build_id: Bound build id.
        environment_id: Bound environment id.

    Returns:
        TestCase instance.
    """
    return TestCase(
        id=case_id,
        summary=summary,
        alias=alias,
        script=script,
        is_automated=is_automated,
        run_id=run_id,
        build_id=build_id,
        environment_id=environment_id,
    )


def make_test_case_dict(
    case_id: int = 1,
    alias: str = "LoginTest",
    summary: str = "Login works",
    isautomated: int = 1,
) -> dict:
    """Create a test case struct as returned by TestRun.get_test_cases."""
    return {
        "case_id": case_id,
        "alias": alias,
        "summary": summary,
        "isautomated": isautomated,
        "script": f"run_{case_id}.sh",
        "arguments": "--fast",
        "requirement": "REQ-1",
        "case_status_id": 2,
        "priority_id": 3,
        "category_id": 4,
    }


def make_test_run(run_id: int = 10, build_id: int = 20, environment_id: int = 30) -> TestRun:
    """Create a TestRun."""
    return TestRun(id=run_id, summary="Nightly", plan_id=5, build_id=build_id,
                   environment_id=environment_id)


def make_method(status: str = "pass", name: str = "testMethod", message: str = "") -> TestMethod:
    """Create a parsed TestMethod."""
    return TestMethod(name=name, status=status, message=message)


def make_installation(
    name: str = "bugzilla",
    url: str = "https://bugzilla.example.com/tr_xmlrpc.cgi",
    properties: str | None = None,
) -> InstallationConfig:
    """Create an InstallationConfig."""
    return InstallationConfig(
        name=name,
        url=url,
        username="ci@example.com",
        password="secret",
        properties=properties,
    )


def make_mock_client(test_cases: list[dict] | None = None, run: dict | None = None) -> MagicMock:
    """Create a TestopiaClient mock returning the given run and cases."""
    client = MagicMock(spec=TestopiaClient)
    client.login.return_value = 1
    client.get_test_run.return_value = TestRun.from_dict(
        run or {"run_id": 10, "build_id": 20, "environment_id": 30, "summary": "Nightly"}
    )
    cases = test_cases if test_cases is not None else [make_test_case_dict()]
    client.get_test_cases.side_effect = lambda run_id: [TestCase.from_dict(c) for c in cases]
    return client


def make_testng_xml(classes: dict[str, list[str]], suite: str = "Regression",
                    test: str = "Default test") -> str:
    """Build a testng-results.xml document.

    Args:
        classes: Class name to the list of method statuses (PASS/FAIL/SKIP,
            or "" for a method without status attribute).
        suite: Suite name.
        test: Test name.

    Returns:
        XML string.
    """
    class_elements = []
    for class_name, statuses in classes.items():
        methods = []
        for i, status in enumerate(statuses):
            status_attr = f' status="{status}"' if status else ""
            body = ""
            if status == "FAIL":
                body = (
                    '<exception class="java.lang.AssertionError">'
                    f"<message><![CDATA[expected true in method{i}]]></message>"
                    "</exception>"
                )
            methods.append(
                f'<test-method{status_attr} name="method{i}" signature="method{i}()" '
                f'duration-ms="12">{body}</test-method>'
            )
        class_elements.append(f'<class name="{class_name}">{"".join(methods)}</class>')

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<testng-results>"
        f'<suite name="{suite}">'
        f'<test name="{test}">{"".join(class_elements)}</test>'
        "</suite>"
        "</testng-results>"
    )


def write_report(workspace, relative_path: str, content: str):
    """Write a report file under the workspace, creating directories."""
    path = workspace / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path

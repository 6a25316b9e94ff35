"""Formatters for the build Report.

This module provides functions to format a Report into the outputs printed
at the end of a build (plain text, markdown, JSON).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from testopia_runner.core.models import Report, TestCase


def _status_label(test_case: TestCase) -> str:
    return test_case.status.label if test_case.status else "-"


def format_report_as_text(report: Report, result: str | None = None) -> str:
    """Format a Report as plain text for the build console.

    Args:
        report: Report to format.
        result: Optional build result name to print in the header.

    Returns:
        Text block with one line per test case.
    """
    summary = report.summary()
    header = "Testopia results"
    if result:
        header = f"{header}: {result}"

    lines = [
        header,
        f"  Total:   {summary['total']}",
        f"  Passed:  {summary['passed']}",
        f"  Failed:  {summary['failed']}",
        f"  Blocked: {summary['blocked']}",
        f"  Idle:    {summary['idle']}",
    ]
    if report.test_cases:
        lines.append("")
        for tc in report.test_cases:
            lines.append(f"  [{_status_label(tc):<7}] #{tc.id} {tc.alias or tc.summary}")
    return "\n".join(lines)


def format_report_as_markdown(report: Report, result: str | None = None) -> str:
    """Format a Report as markdown.

    Args:
        report: Report to format.
        result: Optional build result name to print in the header.

    Returns:
        Markdown-formatted string.
    """
    summary = report.summary()
    title = "## Testopia Results"
    if result:
        title = f"{title}: {result}"

    lines = [
        title,
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Total | {summary['total']} |",
        f"| Passed | {summary['passed']} |",
        f"| Failed | {summary['failed']} |",
        f"| Blocked | {summary['blocked']} |",
        f"| Idle | {summary['idle']} |",
        f"| Pass Rate | {summary['pass_rate']:.1%} |",
        "",
    ]

    if report.test_cases:
        lines.extend(["| Case | Alias | Status |", "|------|-------|--------|"])
        for tc in report.test_cases:
            lines.append(f"| #{tc.id} | `{tc.alias}` | {_status_label(tc)} |")
        lines.append("")

    failed = [tc for tc in report.test_cases if tc.notes]
    if failed:
        lines.extend(["### Failure Notes", ""])
        for tc in failed:
            lines.append(f"**#{tc.id} {tc.alias}**")
            lines.extend(["```", *tc.notes, "```", ""])

    return "\n".join(lines)


def format_report_as_json(report: Report, result: str | None = None, indent: int = 2) -> str:
    """Format a Report as JSON.

    Args:
        report: Report to format.
        result: Optional build result name, stored under "result".
        indent: JSON indentation level.

    Returns:
        JSON string representation.
    """
    data = report.to_dict()
    if result:
        data["result"] = result
    return json.dumps(data, indent=indent)


FORMATTERS = {
    "text": format_report_as_text,
    "markdown": format_report_as_markdown,
    "json": format_report_as_json,
}

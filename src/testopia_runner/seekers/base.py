"""Result seeking: map parsed report results onto Testopia test cases."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from testopia_runner.core.exceptions import (
    ReportParseError,
    ResultSeekerError,
    TestopiaRPCError,
)
from testopia_runner.core.models import Status, TestCase
from testopia_runner.logging import get_logger
from testopia_runner.parsers.models import FAIL, SKIP, Suite, TestMethod
from testopia_runner.scanner import scan

if TYPE_CHECKING:
    from testopia_runner.site import TestopiaSite

logger = get_logger(__name__)


def resolve_status(methods: Iterable[TestMethod], mark_skipped_as_blocked: bool = False) -> Status:
    """Reduce method outcomes to a single Testopia status.

    Any failed method makes the result FAILED. Otherwise any skipped method
    makes it BLOCKED (with `mark_skipped_as_blocked`) or IDLE. Otherwise,
    including when there are no methods, the result is PASSED.
    """
    statuses = {method.status for method in methods}
    if FAIL in statuses:
        return Status.FAILED
    if SKIP in statuses:
        return Status.BLOCKED if mark_skipped_as_blocked else Status.IDLE
    return Status.PASSED


def match_test_cases(test_cases: Iterable[TestCase], name: str) -> list[TestCase]:
    """Return the test cases whose alias equals `name` (case sensitive).

    A blank name matches nothing: cases without alias are never updated.
    """
    if not name:
        return []
    return [tc for tc in test_cases if tc.alias == name]


def failure_notes(methods: Iterable[TestMethod]) -> list[str]:
    """One note line per failed method that carries a message."""
    return [f"{m.name}: {m.message}" for m in methods if m.status == FAIL and m.message]


class ResultSeeker(ABC):
    """Strategy that scans build output and pushes statuses to Testopia.

    Args:
        include_pattern: Comma separated globs of report files in the workspace.
        attach_xml: Record the matching report file as a test case attachment.
        mark_skipped_as_blocked: Report skipped tests as BLOCKED instead of IDLE.
    """

    display_name: str = "result seeker"

    def __init__(
        self,
        include_pattern: str,
        attach_xml: bool = False,
        mark_skipped_as_blocked: bool = False,
    ):
        self.include_pattern = include_pattern
        self.attach_xml = attach_xml
        self.mark_skipped_as_blocked = mark_skipped_as_blocked

    @abstractmethod
    def parse_report(self, path: Path) -> Suite:
        """Parse one report file."""

    @abstractmethod
    def candidates(self, suite: Suite) -> Iterable[tuple[str, tuple[TestMethod, ...]]]:
        """Yield (name, methods) pairs to match against test case aliases."""

    def seek(self, test_cases: list[TestCase], workspace: Path, site: TestopiaSite) -> None:
        """Update the statuses of `test_cases` from reports in `workspace`.

        Raises:
            ResultSeekerError: If reports cannot be read or an update fails.
        """
        logger.info("Looking for test results", seeker=self.display_name)
        suites = self.parse_reports(workspace)
        self._update(
            test_cases,
            (
                (name, methods, suite.source)
                for suite in suites
                for name, methods in self.candidates(suite)
            ),
            site,
        )

    def parse_reports(self, workspace: Path) -> list[Suite]:
        """Scan the workspace and parse every matching report, in path order.

        Raises:
            ResultSeekerError: If the workspace cannot be read or a report
                cannot be parsed.
        """
        try:
            paths = scan(workspace, self.include_pattern)
            logger.info(
                "Found report files",
                seeker=self.display_name,
                pattern=self.include_pattern,
                count=len(paths),
            )
            return [
                replace(self.parse_report(Path(workspace) / path), source=path) for path in paths
            ]
        except (OSError, ValueError, ReportParseError) as e:
            raise ResultSeekerError(self.display_name, str(e)) from e

    def resolve(self, methods: Iterable[TestMethod]) -> Status:
        return resolve_status(methods, self.mark_skipped_as_blocked)

    def preview(self, workspace: Path) -> list[tuple[str, Status, str]]:
        """Resolve (name, status, source) for every report entry, offline."""
        return [
            (name, self.resolve(methods), suite.source)
            for suite in self.parse_reports(workspace)
            for name, methods in self.candidates(suite)
        ]

    def _update(
        self,
        test_cases: list[TestCase],
        matches: Iterable[tuple[str, tuple[TestMethod, ...], str]],
        site: TestopiaSite,
    ) -> None:
        """Push a status for every test case matching a (name, methods, source).

        When several report entries share a name, every one of them is pushed
        and the last one wins.
        """
        updates: Counter[int] = Counter()
        for name, methods, source in matches:
            matched = match_test_cases(test_cases, name)
            if not matched:
                logger.debug("No test case matches", seeker=self.display_name, name=name)
                continue
            status = self.resolve(methods)
            for test_case in matched:
                updates[test_case.id] += 1
                if updates[test_case.id] > 1:
                    logger.warning(
                        "Test case matched more than once, last result wins",
                        seeker=self.display_name,
                        case_id=test_case.id,
                        alias=test_case.alias,
                    )
                self._apply(test_case, status, methods, source)
                try:
                    site.update_test_case(test_case)
                except TestopiaRPCError as e:
                    raise ResultSeekerError(self.display_name, str(e)) from e

    def _apply(
        self,
        test_case: TestCase,
        status: Status,
        methods: tuple[TestMethod, ...],
        source: str,
    ) -> None:
        test_case.status = status
        test_case.notes = failure_notes(methods)
        if self.attach_xml and source and source not in test_case.attachments:
            test_case.attachments.append(source)


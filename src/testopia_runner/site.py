"""Per-build view of a Testopia test run."""

from __future__ import annotations

from typing import TYPE_CHECKING

from testopia_runner.core.models import Report, TestCase, TestRun
from testopia_runner.logging import get_logger

if TYPE_CHECKING:
    from testopia_runner.client import TestopiaClient

logger = get_logger(__name__)


class TestopiaSite:
    """Binds a logged in client to one test run and tracks the build Report."""

    __test__ = False

    def __init__(self, client: TestopiaClient, test_run: TestRun):
        self.client = client
        self.test_run = test_run
        self.report = Report()

    def get_test_cases(self, test_cases: list[TestCase]) -> list[TestCase]:
        """Keep the automated test cases and bind them to the test run."""
        automated = []
        for test_case in test_cases:
            if not test_case.is_automated:
                logger.debug("Skipping manual test case", case_id=test_case.id)
                continue
            test_case.bind_to_run(self.test_run)
            automated.append(test_case)
        return automated

    def update_test_case(self, test_case: TestCase) -> None:
        """Push the test case status to Testopia and count it in the report.

        Raises:
            TestopiaRPCError: If the update call fails.
        """
        self.client.update_test_case(test_case)
        self.report.add(test_case)
        logger.info(
            "Updated test case",
            case_id=test_case.id,
            alias=test_case.alias,
            status=test_case.status.label if test_case.status else None,
        )

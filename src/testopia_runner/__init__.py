"""testopia-runner - run automated Testopia test cases from CI builds."""

__version__ = "0.3.0"

from testopia_runner.core.models import Report, Status, TestCase, TestRun

__all__ = [
    "Report",
    "Status",
    "TestCase",
    "TestRun",
]

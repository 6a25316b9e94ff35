"""Shared exceptions for the testopia_runner package."""

from __future__ import annotations

from pathlib import Path


class TestopiaError(Exception):
    """Base class for every error raised by the runner."""

    __test__ = False


class ConfigurationError(TestopiaError):
    """Raised when the job or installation configuration is unusable."""


class AuthenticationError(TestopiaError):
    """Raised when Testopia rejects the configured credentials."""

    def __init__(self, username: str, reason: str) -> None:
        self.username = username
        self.reason = reason
        super().__init__(f"Failed to log into Testopia as '{username}': {reason}")


class TestopiaRPCError(TestopiaError):
    """Raised when an XML-RPC call fails, either with a fault or in transport."""

    def __init__(self, method: str, reason: str) -> None:
        self.method = method
        self.reason = reason
        super().__init__(f"Error while executing '{method}': {reason}")


class ReportParseError(TestopiaError):
    """Raised when a report file is not well formed or not a known schema."""

    def __init__(self, path: Path | str | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        where = f" '{path}'" if path is not None else ""
        super().__init__(f"Failed to parse report{where}: {reason}")


class ResultSeekerError(TestopiaError):
    """Raised when a result seeking strategy has to stop."""

    def __init__(self, seeker: str, reason: str) -> None:
        self.seeker = seeker
        self.reason = reason
        super().__init__(f"Error seeking test results using {seeker}: {reason}")


class BuildAbortedError(TestopiaError):
    """Raised between build phases once an abort was requested."""

    def __init__(self) -> None:
        super().__init__("Build aborted")

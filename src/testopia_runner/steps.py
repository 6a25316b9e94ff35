"""Build steps run by the Testopia builder."""

from __future__ import annotations

import os
import subprocess
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from testopia_runner.logging import get_logger

if TYPE_CHECKING:
    from testopia_runner.core.models import TestCase

logger = get_logger(__name__)


def build_test_case_env_vars(test_case: TestCase) -> dict[str, str]:
    """Environment variables describing a test case for per-test-case steps."""
    values = {
        "TESTOPIA_TESTCASE_ID": test_case.id,
        "TESTOPIA_TESTCASE_SUMMARY": test_case.summary,
        "TESTOPIA_TESTCASE_ALIAS": test_case.alias,
        "TESTOPIA_TESTCASE_SCRIPT": test_case.script,
        "TESTOPIA_TESTCASE_ARGUMENTS": test_case.arguments,
        "TESTOPIA_TESTCASE_REQUIREMENT": test_case.requirement,
        "TESTOPIA_TESTCASE_CATEGORY_ID": test_case.category_id,
        "TESTOPIA_TESTCASE_PRIORITY_ID": test_case.priority_id,
        "TESTOPIA_TESTCASE_CASE_STATUS_ID": test_case.case_status_id,
        "TESTOPIA_TESTRUN_ID": test_case.run_id,
        "TESTOPIA_BUILD_ID": test_case.build_id,
        "TESTOPIA_ENVIRONMENT_ID": test_case.environment_id,
    }
    return {key: "" if value is None else str(value) for key, value in values.items()}


@dataclass(frozen=True)
class BuildContext:
    """What a build step sees: workspace, environment and console."""

    workspace: Path
    env: Mapping[str, str] = field(default_factory=dict)
    console: TextIO | None = field(default=None, compare=False)

    def with_env(self, extra: Mapping[str, str]) -> BuildContext:
        """Return a copy whose environment is merged with `extra`."""
        return replace(self, env={**self.env, **extra})

    def log(self, message: str) -> None:
        """Write a line to the build console."""
        print(message, file=self.console or sys.stdout, flush=True)

    def write(self, text: str) -> None:
        """Write raw output to the build console."""
        (self.console or sys.stdout).write(text)


class BuildStep(ABC):
    """A unit of work in a build."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short description used in the build console."""

    @abstractmethod
    def run(self, context: BuildContext) -> bool:
        """Run the step.

        Returns:
            True on success, False if the step failed.
        """


class ShellStep(BuildStep):
    """Runs a shell command in the workspace with the context environment."""

    def __init__(self, command: str):
        self.command = command

    @property
    def name(self) -> str:
        return f"shell: {self.command}"

    def run(self, context: BuildContext) -> bool:
        context.log(f"$ {self.command}")
        try:
            result = subprocess.run(  # noqa: S602 - commands come from the job file
                self.command,
                shell=True,
                cwd=context.workspace,
                env={**os.environ, **context.env},
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            context.log(f"Failed to start command: {e}")
            logger.warning("Shell step could not start", command=self.command, error=str(e))
            return False

        if result.stdout:
            context.write(result.stdout)
        if result.stderr:
            context.write(result.stderr)
        if result.returncode != 0:
            context.log(f"Command exited with code {result.returncode}")
        logger.debug("Shell step finished", command=self.command, returncode=result.returncode)
        return result.returncode == 0


class CallableStep(BuildStep):
    """Wraps a Python callable taking the build context."""

    def __init__(self, func: Callable[[BuildContext], bool], name: str | None = None):
        self.func = func
        self._name = name or getattr(func, "__name__", "callable")

    @property
    def name(self) -> str:
        return self._name

    def run(self, context: BuildContext) -> bool:
        return bool(self.func(context))

"""Testopia builder: runs build steps per test case and publishes results.

A build goes through four phases:

1. connect to Testopia, log in, fetch the test run and its automated cases,
2. run the single build steps, then the iterative ones (before, per test
   case with the case exported as environment variables, after),
3. run every result seeker, pushing statuses back to Testopia,
4. attach the Report to the build and derive the build result from it.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from testopia_runner.client import TestopiaClient
from testopia_runner.core.exceptions import (
    BuildAbortedError,
    ConfigurationError,
    ResultSeekerError,
    TestopiaError,
)
from testopia_runner.logging import build_id_ctx, get_logger
from testopia_runner.seekers import get_default_registry
from testopia_runner.site import TestopiaSite
from testopia_runner.steps import BuildContext, BuildStep, ShellStep, build_test_case_env_vars

if TYPE_CHECKING:
    from testopia_runner.config import InstallationConfig, RunnerConfig, StepConfig
    from testopia_runner.core.models import Report, TestCase
    from testopia_runner.seekers import ResultSeeker, SeekerRegistry

logger = get_logger(__name__)


class BuildResult(Enum):
    """Outcome of a build, ordered from best to worst."""

    SUCCESS = 0
    UNSTABLE = 1
    FAILURE = 2
    ABORTED = 3

    def is_worse_than(self, other: BuildResult) -> bool:
        return self.value > other.value


@dataclass
class Build:
    """A single execution of a job.

    The result only ever gets worse: setting UNSTABLE on a failed build
    keeps it FAILURE.
    """

    workspace: Path
    build_id: str = ""
    env: dict[str, str] = field(default_factory=dict)
    console: TextIO | None = None
    result: BuildResult = BuildResult.SUCCESS
    report: Report | None = None
    _abort: threading.Event = field(default_factory=threading.Event, repr=False, compare=False)

    @property
    def context(self) -> BuildContext:
        return BuildContext(workspace=self.workspace, env=dict(self.env), console=self.console)

    def log(self, message: str) -> None:
        """Write a line to the build console."""
        self.context.log(message)

    def fatal(self, message: str) -> None:
        """Log a fatal error to the console and fail the build."""
        self.log(f"FATAL: {message}")
        self.set_result(BuildResult.FAILURE)

    def set_result(self, result: BuildResult) -> None:
        if result.is_worse_than(self.result):
            self.result = result

    def request_abort(self) -> None:
        """Ask the build to stop before its next step."""
        self._abort.set()

    def check_aborted(self) -> None:
        """Raise BuildAbortedError if an abort was requested."""
        if self._abort.is_set():
            raise BuildAbortedError()


ClientFactory = Callable[["InstallationConfig"], TestopiaClient]


class TestopiaBuilder:
    """Runs Testopia automated test cases as part of a build."""

    __test__ = False

    def __init__(
        self,
        installation: InstallationConfig | None,
        test_run_id: int,
        single_build_steps: Sequence[BuildStep] = (),
        before_iterating_all_test_cases_build_steps: Sequence[BuildStep] = (),
        iterative_build_steps: Sequence[BuildStep] = (),
        after_iterating_all_test_cases_build_steps: Sequence[BuildStep] = (),
        failed_tests_mark_build_as_failure: bool = False,
        result_seekers: Sequence[ResultSeeker] = (),
        continue_on_seeker_error: bool = False,
        client_factory: ClientFactory = TestopiaClient.from_installation,
    ):
        self.installation = installation
        self.test_run_id = test_run_id
        self.single_build_steps = list(single_build_steps)
        self.before_iterating_all_test_cases_build_steps = list(
            before_iterating_all_test_cases_build_steps
        )
        self.iterative_build_steps = list(iterative_build_steps)
        self.after_iterating_all_test_cases_build_steps = list(
            after_iterating_all_test_cases_build_steps
        )
        self.failed_tests_mark_build_as_failure = failed_tests_mark_build_as_failure
        self.result_seekers = list(result_seekers)
        self.continue_on_seeker_error = continue_on_seeker_error
        self.client_factory = client_factory

    @classmethod
    def from_config(
        cls,
        config: RunnerConfig,
        registry: SeekerRegistry | None = None,
        client_factory: ClientFactory = TestopiaClient.from_installation,
    ) -> TestopiaBuilder:
        """Create a builder from a loaded job file.

        An unknown installation name is not an error here: it is reported
        when the build is performed, before any step runs.
        """
        registry = registry or get_default_registry()
        job = config.job

        def steps(configs: Sequence[StepConfig]) -> list[BuildStep]:
            return [ShellStep(step.shell) for step in configs]

        return cls(
            installation=config.get_installation(job.installation),
            test_run_id=job.test_run_id,
            single_build_steps=steps(job.single_build_steps),
            before_iterating_all_test_cases_build_steps=steps(
                job.before_iterating_all_test_cases_build_steps
            ),
            iterative_build_steps=steps(job.iterative_build_steps),
            after_iterating_all_test_cases_build_steps=steps(
                job.after_iterating_all_test_cases_build_steps
            ),
            failed_tests_mark_build_as_failure=job.failed_tests_mark_build_as_failure,
            result_seekers=[registry.create(seeker) for seeker in job.result_seekers],
            continue_on_seeker_error=job.continue_on_seeker_error,
            client_factory=client_factory,
        )

    def perform(self, build: Build) -> Report:
        """Execute Testopia automated tests.

        Returns:
            The Report attached to the build.

        Raises:
            ConfigurationError: If the installation is missing or invalid.
            AuthenticationError: If Testopia rejects the credentials.
            TestopiaRPCError: If the test run cannot be fetched.
            ResultSeekerError: If a seeker fails and seeker errors are fatal.
            BuildAbortedError: If an abort was requested between steps.
        """
        token = build_id_ctx.set(build.build_id)
        try:
            return self._perform(build)
        except BuildAbortedError:
            build.log("Build aborted")
            build.set_result(BuildResult.ABORTED)
            raise
        except TestopiaError as e:
            build.fatal(str(e))
            logger.error("Testopia build failed", error=str(e), error_type=type(e).__name__)
            raise
        finally:
            build_id_ctx.reset(token)

    def _perform(self, build: Build) -> Report:
        build.log("Connecting to Testopia to retrieve automated test cases.")
        site, test_cases = self._connect(build)
        for tc in test_cases:
            logger.debug("Automated test case", case_id=tc.id, summary=tc.summary)

        build.log("Executing single build steps")
        self.execute_single_build_steps(build)
        build.log("Executing iterative build steps")
        self.execute_iterative_build_steps(test_cases, build)

        build.check_aborted()
        build.log("Seeking test results")
        self.seek_results(test_cases, build, site)

        report = site.report
        build.log(f"Found {report.total} test results")
        build.report = report

        if report.failed > 0:
            if self.failed_tests_mark_build_as_failure:
                build.set_result(BuildResult.FAILURE)
            else:
                build.set_result(BuildResult.UNSTABLE)

        logger.info("Testopia builder finished", result=build.result.name, **report.summary())
        return report

    def _connect(self, build: Build) -> tuple[TestopiaSite, list[TestCase]]:
        installation = self.installation
        if installation is None:
            raise ConfigurationError("Invalid Testopia installation.")

        if installation.properties and installation.properties.strip():
            build.log("Preparing Testopia connection properties.")
        client = self.client_factory(installation)
        client.login(installation.username, installation.password)

        test_run = client.get_test_run(self.test_run_id)
        site = TestopiaSite(client, test_run)
        test_cases = site.get_test_cases(client.get_test_cases(self.test_run_id))
        logger.info(
            "Fetched automated test cases",
            test_run_id=self.test_run_id,
            count=len(test_cases),
        )
        return site, test_cases

    def _run_steps(self, steps: Sequence[BuildStep], context: BuildContext, build: Build) -> None:
        for step in steps:
            build.check_aborted()
            if not step.run(context):
                logger.warning("Build step failed", step=step.name)
                build.set_result(BuildResult.UNSTABLE)

    def execute_single_build_steps(self, build: Build) -> None:
        """Run the steps executed once per build."""
        self._run_steps(self.single_build_steps, build.context, build)

    def execute_iterative_build_steps(self, test_cases: list[TestCase], build: Build) -> None:
        """Run the before steps, the per test case steps and the after steps.

        Per test case steps see the case through TESTOPIA_* environment
        variables.
        """
        context = build.context
        self._run_steps(self.before_iterating_all_test_cases_build_steps, context, build)

        if self.iterative_build_steps:
            for test_case in test_cases:
                logger.debug(
                    "Executing iterative build steps",
                    case_id=test_case.id,
                    script=test_case.script,
                )
                case_context = context.with_env(build_test_case_env_vars(test_case))
                self._run_steps(self.iterative_build_steps, case_context, build)

        self._run_steps(self.after_iterating_all_test_cases_build_steps, context, build)

    def seek_results(self, test_cases: list[TestCase], build: Build, site: TestopiaSite) -> None:
        """Run every result seeker in order.

        Raises:
            ResultSeekerError: If a seeker fails and `continue_on_seeker_error`
                is off.
        """
        for seeker in self.result_seekers:
            build.check_aborted()
            logger.info("Seeking test results", seeker=seeker.display_name)
            try:
                seeker.seek(test_cases, build.workspace, site)
            except ResultSeekerError as e:
                if not self.continue_on_seeker_error:
                    raise
                build.log(f"Error seeking test results: {e}")
                build.set_result(BuildResult.UNSTABLE)

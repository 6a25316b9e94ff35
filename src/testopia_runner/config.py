"""Configuration for testopia-runner.

Process settings come from environment variables (``TESTOPIA_*``) or a
``.env`` file. The job itself is described in a YAML file:

    installations:
      - name: bugzilla
        url: https://bugzilla.example.com/tr_xmlrpc.cgi
        username: ci@example.com
        password: secret
        properties: xmlrpc.connectionTimeout=5000,xmlrpc.replyTimeout=30000
    job:
      installation: bugzilla
      test_run_id: 42
      iterative_build_steps:
        - shell: ./run-test.sh "$TESTOPIA_TESTCASE_SCRIPT"
      result_seekers:
        - kind: testng-class-name
          include_pattern: "**/testng-results.xml"
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from testopia_runner.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Process settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TESTOPIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_json_format: bool = False

    # Overrides the password of the selected installation when set
    password: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class InstallationConfig(BaseModel):
    """A Testopia server the runner can connect to."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    username: str
    password: str = ""
    properties: str | None = None


class StepConfig(BaseModel):
    """A build step, currently a shell command."""

    model_config = ConfigDict(frozen=True)

    shell: str


class SeekerConfig(BaseModel):
    """A result seeking strategy."""

    model_config = ConfigDict(frozen=True)

    kind: str = "testng-class-name"
    include_pattern: str
    attach_xml: bool = False
    mark_skipped_as_blocked: bool = False


class JobConfig(BaseModel):
    """What a build runs against which Testopia test run."""

    model_config = ConfigDict(frozen=True)

    installation: str
    test_run_id: int
    single_build_steps: tuple[StepConfig, ...] = ()
    before_iterating_all_test_cases_build_steps: tuple[StepConfig, ...] = ()
    iterative_build_steps: tuple[StepConfig, ...] = ()
    after_iterating_all_test_cases_build_steps: tuple[StepConfig, ...] = ()
    failed_tests_mark_build_as_failure: bool = False
    continue_on_seeker_error: bool = False
    result_seekers: tuple[SeekerConfig, ...] = ()


class RunnerConfig(BaseModel):
    """Top level content of a job file."""

    model_config = ConfigDict(frozen=True)

    installations: tuple[InstallationConfig, ...] = Field(default=())
    job: JobConfig

    def get_installation(self, name: str) -> InstallationConfig | None:
        """Find an installation by name."""
        for installation in self.installations:
            if installation.name == name:
                return installation
        return None


def load_config(path: Path | str) -> RunnerConfig:
    """Load and validate a YAML job file.

    Raises:
        ConfigurationError: If the file cannot be read, is not YAML or does
            not describe a valid job.
    """
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    try:
        return RunnerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e


def apply_settings(config: RunnerConfig, settings: Settings) -> RunnerConfig:
    """Return `config` with the process settings applied.

    `TESTOPIA_PASSWORD` replaces the password of the installation used by
    the job, so job files can be committed without credentials.
    """
    if not settings.password:
        return config
    installations = tuple(
        installation.model_copy(update={"password": settings.password})
        if installation.name == config.job.installation
        else installation
        for installation in config.installations
    )
    return config.model_copy(update={"installations": installations})

"""Tests for job configuration and process settings."""

from __future__ import annotations

import pytest

from testopia_runner.config import (
    Settings,
    apply_settings,
    get_settings,
    load_config,
)
from testopia_runner.core.exceptions import ConfigurationError

JOB_YAML = """
installations:
  - name: bugzilla
    url: https://bugzilla.example.com/tr_xmlrpc.cgi
    username: ci@example.com
    password: from-file
  - name: staging
    url: https://staging.example.com/tr_xmlrpc.cgi
    username: ci@example.com
job:
  installation: bugzilla
  test_run_id: 42
  single_build_steps:
    - shell: make
  iterative_build_steps:
    - shell: ./run.sh "$TESTOPIA_TESTCASE_SCRIPT"
  failed_tests_mark_build_as_failure: true
  result_seekers:
    - kind: testng-suite-name
      include_pattern: "**/testng-results.xml"
      mark_skipped_as_blocked: true
"""


@pytest.fixture
def job_file(tmp_path):
    path = tmp_path / "job.yaml"
    path.write_text(JOB_YAML)
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_job(self, job_file):
        """A complete job file is loaded with defaults filled in."""
        config = load_config(job_file)

        job = config.job
        assert job.test_run_id == 42
        assert job.single_build_steps[0].shell == "make"
        assert job.before_iterating_all_test_cases_build_steps == ()
        assert job.failed_tests_mark_build_as_failure is True
        assert job.continue_on_seeker_error is False
        assert job.result_seekers[0].kind == "testng-suite-name"
        assert job.result_seekers[0].attach_xml is False
        assert config.get_installation("bugzilla").password == "from-file"
        assert config.get_installation("staging").password == ""
        assert config.get_installation("missing") is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read configuration file"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "job.yaml"
        path.write_text("job: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "job.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_config(path)

    def test_validation_error(self, tmp_path):
        """A job without test run id is rejected."""
        path = tmp_path / "job.yaml"
        path.write_text("job:\n  installation: bugzilla\n")

        with pytest.raises(ConfigurationError, match="test_run_id"):
            load_config(path)


class TestSettings:
    """Tests for environment settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TESTOPIA_LOG_LEVEL", raising=False)
        monkeypatch.delenv("TESTOPIA_PASSWORD", raising=False)

        settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.log_json_format is False
        assert settings.password is None

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("TESTOPIA_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("TESTOPIA_LOG_JSON_FORMAT", "true")

        settings = get_settings()

        assert settings.log_level == "DEBUG"
        assert settings.log_json_format is True

    def test_password_override(self, job_file):
        """TESTOPIA_PASSWORD replaces the password of the job installation only."""
        config = apply_settings(load_config(job_file), Settings(_env_file=None, password="env"))

        assert config.get_installation("bugzilla").password == "env"
        assert config.get_installation("staging").password == ""

    def test_no_override_without_password(self, job_file):
        config = load_config(job_file)

        assert apply_settings(config, Settings(_env_file=None, password=None)) is config

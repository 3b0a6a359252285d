"""Tests for the CLI."""

import logging
import sys

import pytest
from click.testing import CliRunner

from atomic_lockfile.cli import EX_CANTCREAT, EX_IOERR, EX_NOEXEC, EX_NOTFOUND, cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logging.getLogger("atomic_lockfile").handlers.clear()


def _python(code):
    return [sys.executable, "-c", code]


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "exclusive lock file" in result.output

    def test_run_help(self, runner):
        result = runner.invoke(cli, ["run", "--help"])
        assert result.exit_code == 0
        assert "--retries" in result.output

    def test_config_show_defaults(self, runner):
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        assert "indefinitely" in result.output
        assert "8000000" in result.output

    def test_config_validate(self, runner, tmp_path):
        config_file = tmp_path / "lock.yaml"
        config_file.write_text("retry_strategy: 2\n")
        result = runner.invoke(cli, ["config", "--validate", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "valid" in result.output.lower()

    def test_config_show(self, runner, tmp_path):
        config_file = tmp_path / "lock.yaml"
        config_file.write_text("retry_strategy: 2\nsleep_between_retries: 1234\n")
        result = runner.invoke(cli, ["config", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "number_of_times" in result.output
        assert "1234" in result.output

    def test_config_invalid(self, runner, tmp_path):
        config_file = tmp_path / "lock.yaml"
        config_file.write_text("sleep_between_retries: -5\n")
        result = runner.invoke(cli, ["config", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestRun:
    def test_propagates_exit_status(self, runner, lock_path):
        result = runner.invoke(
            cli, ["run", "-r", "0", str(lock_path), *_python("import sys; sys.exit(5)")],
        )
        assert result.exit_code == 5
        assert not lock_path.exists()

    def test_lock_held_while_command_runs(self, runner, lock_path):
        code = "import os, sys; sys.exit(0 if os.path.exists(sys.argv[1]) else 1)"
        result = runner.invoke(cli, ["run", str(lock_path), *_python(code), str(lock_path)])
        assert result.exit_code == 0
        assert not lock_path.exists()

    def test_busy_lock(self, runner, lock_path):
        lock_path.write_text("PID=1\n")
        result = runner.invoke(cli, ["run", "-r", "1", "-s", "0", str(lock_path), "true"])
        assert result.exit_code == EX_CANTCREAT
        assert "Unable to acquire lock file" in result.output
        assert lock_path.read_text() == "PID=1\n"

    def test_busy_lock_from_config(self, runner, lock_path, tmp_path):
        config_file = tmp_path / "lock.yaml"
        config_file.write_text("retry_strategy: no\n")
        lock_path.touch()
        result = runner.invoke(cli, ["run", "-c", str(config_file), str(lock_path), "true"])
        assert result.exit_code == EX_CANTCREAT

    def test_io_error(self, runner, tmp_path):
        lock_path = tmp_path / "missing" / "t.lock"
        result = runner.invoke(cli, ["run", str(lock_path), "true"])
        assert result.exit_code == EX_IOERR
        assert "Caught IO exception" in result.output

    def test_command_not_found(self, runner, lock_path):
        result = runner.invoke(cli, ["run", "-r", "0", str(lock_path), "no-such-command-for-lockfile-test"])
        assert result.exit_code == EX_NOTFOUND
        assert not lock_path.exists()

    def test_invalid_retries(self, runner, lock_path):
        result = runner.invoke(cli, ["run", "-r", "-3", str(lock_path), "true"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_command_not_executable(self, runner, lock_path, tmp_path):
        script = tmp_path / "script.sh"
        script.write_text("#!/bin/sh\nexit 0\n")
        script.chmod(0o644)
        result = runner.invoke(cli, ["run", "-r", "0", str(lock_path), str(script)])
        assert result.exit_code == EX_NOEXEC
        assert "Cannot execute" in result.output
        assert not lock_path.exists()

    @pytest.mark.parametrize("sleep", ["1e300", "inf"])
    def test_sleep_beyond_platform_limit(self, runner, lock_path, sleep):
        result = runner.invoke(cli, ["run", "-s", sleep, str(lock_path), "true"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert not lock_path.exists()

    def test_quiet_sets_error_level(self, runner, lock_path):
        result = runner.invoke(cli, ["run", "-q", str(lock_path), "true"])
        assert result.exit_code == 0
        assert logging.getLogger("atomic_lockfile").level == logging.ERROR

    def test_verbose_sets_debug_level(self, runner, lock_path):
        result = runner.invoke(cli, ["run", "-vv", str(lock_path), "true"])
        assert result.exit_code == 0
        assert logging.getLogger("atomic_lockfile").level == logging.DEBUG

"""Unit tests for the subprocess wrappers."""

import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from pipeline_actions.exceptions import CommandFailedError, CommandNotFoundError, CommandOutputError
from pipeline_actions.utils.process import probe_cmd, run_cmd, run_json_cmd


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    """Build a CompletedProcess result."""
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def test_run_cmd_returns_stdout() -> None:
    """Test that stdout is returned for a successful command."""
    with patch("pipeline_actions.utils.process.subprocess.run", return_value=completed(stdout="hello\n")) as run:
        assert run_cmd(["echo", "hello"], cwd="/tmp") == "hello\n"
    run.assert_called_once_with(["echo", "hello"], capture_output=True, text=True, cwd="/tmp", env=None)


def test_run_cmd_failure_carries_details() -> None:
    """Test that a failing command raises with its exit status and stderr."""
    with patch("pipeline_actions.utils.process.subprocess.run", return_value=completed(returncode=2, stderr="bad option\n")):
        with pytest.raises(CommandFailedError) as exc_info:
            run_cmd(["git", "frobnicate"])

    assert exc_info.value.returncode == 2
    assert exc_info.value.details == "bad option"
    assert exc_info.value.args_list == ["git", "frobnicate"]
    assert "Command failed (2): git frobnicate" in str(exc_info.value)


def test_run_cmd_failure_falls_back_to_stdout() -> None:
    """Test that stdout is reported when stderr is empty."""
    with patch("pipeline_actions.utils.process.subprocess.run", return_value=completed(returncode=1, stdout="rejected")):
        with pytest.raises(CommandFailedError, match="rejected"):
            run_cmd(["git", "push"])


def test_run_cmd_redacts_secrets() -> None:
    """Test that redacted values appear neither in the arguments nor in the details."""
    result = completed(returncode=128, stderr="fatal: cannot use s3cr3t here")
    with patch("pipeline_actions.utils.process.subprocess.run", return_value=result):
        with pytest.raises(CommandFailedError) as exc_info:
            run_cmd(["git", "config", "key", "s3cr3t"], redact=("s3cr3t",))

    assert "s3cr3t" not in str(exc_info.value)
    assert exc_info.value.args_list == ["git", "config", "key", "***"]


def test_run_json_cmd_parses_output() -> None:
    """Test that JSON output is parsed."""
    with patch("pipeline_actions.utils.process.subprocess.run", return_value=completed(stdout='["i-1", "i-2"]')):
        assert run_json_cmd(["aws", "ec2", "describe-instances"]) == ["i-1", "i-2"]


def test_run_json_cmd_invalid_output() -> None:
    """Test that non-JSON output raises CommandOutputError."""
    with patch("pipeline_actions.utils.process.subprocess.run", return_value=completed(stdout="not json")):
        with pytest.raises(CommandOutputError):
            run_json_cmd(["aws", "ec2", "describe-instances"])


def test_probe_cmd_does_not_raise() -> None:
    """Test that probe_cmd reports the exit status of a real process without raising."""
    result = probe_cmd([sys.executable, "-c", "import sys; sys.exit(3)"])
    assert result.returncode == 3


def test_probe_cmd_missing_executable() -> None:
    """Test that a command that is not installed raises CommandNotFoundError."""
    with pytest.raises(CommandNotFoundError, match="Command not found: definitely-not-installed-tool"):
        probe_cmd(["definitely-not-installed-tool", "--version"])


def test_run_cmd_missing_executable() -> None:
    """Test that run_cmd reports a missing executable the same way."""
    with patch("pipeline_actions.utils.process.subprocess.run", side_effect=FileNotFoundError(2, "No such file or directory", "aws")):
        with pytest.raises(CommandNotFoundError) as exc_info:
            run_cmd(["aws", "sts", "get-caller-identity"])
    assert exc_info.value.command == "aws"


def test_probe_cmd_missing_cwd_is_not_a_missing_command(tmp_path: Path) -> None:
    """Test that a missing working directory is not reported as a missing command."""
    with pytest.raises(FileNotFoundError):
        probe_cmd([sys.executable, "-c", "pass"], cwd=str(tmp_path / "missing"))

"""Integration tests for the CLI, run as a subprocess the way a workflow step runs it."""

import os
import subprocess
import sys
from pathlib import Path
from typing import Callable

PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli(args: list[str], env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    """Helper to run the CLI as a subprocess and capture output.

    Args:
        args: List of command line arguments to pass to the CLI.
        env: Extra environment variables for the run.

    Returns:
        subprocess.CompletedProcess: The result of running the CLI command.
    """
    complete_command = [sys.executable, "-m", "pipeline_actions.configuration.cli", *args]
    print(f"Running command: {' '.join(complete_command)}")
    result = subprocess.run(
        complete_command,
        capture_output=True,
        text=True,
        cwd=PROJECT_ROOT,
        env={**os.environ, **(env or {})},
    )
    print(f"Command result: {result.returncode}")
    print(f"Command stdout: {result.stdout}")
    print(f"Command stderr: {result.stderr}")
    return result


def test_help_lists_command_groups() -> None:
    """Test that every command group is reachable."""
    result = run_cli(["--help"])
    assert result.returncode == 0
    for group in ("bastion", "mirror", "deployment", "secrets", "release", "npm"):
        assert group in result.stdout


def test_mirror_sync_writes_outputs(source_repo: Path, mirror_repo: Path, commit: Callable[..., str], tmp_path: Path) -> None:
    """Test a mirror sync step end to end, including its step outputs."""
    sha = commit(source_repo, "Initial commit", author="Mona Lisa <mona@example.com>")
    output_file = tmp_path / "github_output"
    output_file.write_text("")

    result = run_cli(
        ["mirror", "sync", "--mirror-url", str(mirror_repo), "--actor", "octocat", "--sha", sha, "--repo-dir", str(source_repo)],
        env={"GITHUB_OUTPUT": str(output_file), "MIRROR_TOKEN": ""},
    )

    assert result.returncode == 0
    outputs = output_file.read_text().splitlines()
    assert "outcome=pushed" in outputs
    assert f"pushed-commit={sha}" in outputs


def test_missing_mirror_url() -> None:
    """Test that the CLI exits with an error if no mirror URL is provided."""
    result = run_cli(["mirror", "sync", "--actor", "octocat"], env={"MIRROR_URL": ""})
    assert result.returncode != 0
    assert "--mirror-url" in result.stderr


def test_bastion_close_unknown_process() -> None:
    """Test that closing a process that does not exist still succeeds."""
    process = subprocess.Popen([sys.executable, "-c", "pass"])
    process.wait(timeout=10)

    result = run_cli(["bastion", "close", str(process.pid)])
    assert result.returncode == 0

"""Thin wrappers around subprocess for the CLIs the actions drive (aws, git, npm)."""

import json
import subprocess
from typing import Any, Mapping, Sequence

import structlog

from pipeline_actions.exceptions import CommandFailedError, CommandNotFoundError, CommandOutputError

logger = structlog.get_logger(__name__)


def _redact(text: str, secrets: Sequence[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text


def probe_cmd(
    args: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command without checking its exit status.

    Used for commands whose exit status is the answer, such as
    `git merge-base --is-ancestor`.
    """
    logger.debug("Probing command", command=args[0], cwd=cwd)
    try:
        return subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except FileNotFoundError as exc:
        # The same error is raised for a missing cwd, with that path as filename.
        if exc.filename != args[0]:
            raise
        raise CommandNotFoundError(args[0]) from exc


def run_cmd(
    args: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    redact: Sequence[str] = (),
) -> str:
    """Run a command and return its stdout, raising CommandFailedError on a non-zero exit.

    Any string in `redact` is replaced with `***` in the error message so that
    credentials passed as arguments never reach the logs.
    """
    logger.debug("Running command", command=args[0], cwd=cwd)
    result = probe_cmd(args, cwd=cwd, env=env)
    if result.returncode != 0:
        details = (result.stderr or "").strip() or (result.stdout or "").strip()
        safe_args = [_redact(arg, redact) for arg in args]
        raise CommandFailedError(safe_args, result.returncode, _redact(details, redact))
    return result.stdout


def run_json_cmd(
    args: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Any:
    """Run a command that prints JSON and return the parsed document."""
    output = run_cmd(args, cwd=cwd, env=env)
    try:
        return json.loads(output)
    except json.JSONDecodeError as exc:
        raise CommandOutputError(f"Expected JSON from command: {' '.join(args)}") from exc

"""Helpers for talking to the GitHub Actions runner.

The runner reads workflow commands (`::add-mask::`, `::warning::`, ...) from
the step's stdout and step outputs from the file named by `GITHUB_OUTPUT`.
"""

import os
import uuid
from typing import Mapping

import structlog

logger = structlog.get_logger(__name__)


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def add_mask(value: str) -> None:
    """Ask the runner to redact `value` from every subsequent log line."""
    if not value:
        return
    for line in value.splitlines():
        if line.strip():
            print(f"::add-mask::{_escape_data(line)}", flush=True)


def warning(message: str) -> None:
    """Emit a warning annotation on the current step."""
    print(f"::warning::{_escape_data(message)}", flush=True)


def error(message: str) -> None:
    """Emit an error annotation on the current step."""
    print(f"::error::{_escape_data(message)}", flush=True)


def write_github_outputs(values: Mapping[str, str]) -> None:
    """Write step outputs for later steps in the same job.

    Multi-line values use the heredoc form with a random delimiter. Outside of
    a runner (no `GITHUB_OUTPUT`), the outputs are only logged.
    """
    output_file = os.environ.get("GITHUB_OUTPUT")
    if not output_file:
        logger.info("GITHUB_OUTPUT not set, skipping step outputs", outputs=sorted(values))
        return
    with open(output_file, "a", encoding="utf-8") as handle:
        for key, value in values.items():
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                handle.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                handle.write(f"{key}={value}\n")

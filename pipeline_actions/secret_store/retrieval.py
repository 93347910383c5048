"""Fetch a JSON secret from the cloud secret store and expose selected fields.

Values are masked on the runner before anything else can print them.
"""

import json
from typing import Any, Iterable

import structlog

from pipeline_actions.exceptions import PipelineActionError
from pipeline_actions.utils.actions import add_mask
from pipeline_actions.utils.process import run_cmd

logger = structlog.get_logger(__name__)


class SecretFormatError(PipelineActionError):
    """Raised when a secret is not a JSON object."""

    pass


class SecretFieldMissingError(PipelineActionError):
    """Raised when a requested field is not present in the secret."""

    def __init__(self, secret_id: str, field: str) -> None:
        """Initializes the exception with the secret and the missing field name."""
        super().__init__(f"Secret {secret_id} has no field '{field}'")
        self.secret_id = secret_id
        self.field = field


def get_secret(secret_id: str, region: str | None = None) -> dict[str, Any]:
    """Return the secret's JSON object from AWS Secrets Manager."""
    command = [
        "aws",
        "secretsmanager",
        "get-secret-value",
        "--secret-id",
        secret_id,
        "--query",
        "SecretString",
        "--output",
        "text",
    ]
    if region:
        command.extend(["--region", region])
    logger.info("Fetching secret", secret_id=secret_id, region=region)
    raw = run_cmd(command)
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        # The raw value is never part of the message.
        raise SecretFormatError(f"Secret {secret_id} is not valid JSON") from exc
    if not isinstance(document, dict):
        raise SecretFormatError(f"Secret {secret_id} is not a JSON object")
    return document


def extract_fields(secret_id: str, secret: dict[str, Any], fields: Iterable[str]) -> dict[str, str]:
    """Return exactly the requested fields as strings, masking each value.

    Non-string values are re-encoded as JSON.
    """
    extracted: dict[str, str] = {}
    for field in fields:
        if field not in secret:
            raise SecretFieldMissingError(secret_id, field)
        value = secret[field]
        text = value if isinstance(value, str) else json.dumps(value)
        add_mask(text)
        extracted[field] = text
    logger.info("Extracted secret fields", secret_id=secret_id, fields=sorted(extracted))
    return extracted

"""Unit tests for fetching and exposing secret fields."""

import json
from unittest.mock import patch

import pytest
from pytest import CaptureFixture

from pipeline_actions.secret_store.retrieval import SecretFieldMissingError, SecretFormatError, extract_fields, get_secret


def test_get_secret_parses_json_object() -> None:
    """Test that the secret string is parsed as a JSON object."""
    secret = {"username": "app", "password": "hunter2"}
    with patch("pipeline_actions.secret_store.retrieval.run_cmd", return_value=json.dumps(secret) + "\n") as run_cmd:
        assert get_secret("prod/db", region="eu-west-1") == secret

    command = run_cmd.call_args.args[0]
    assert command[:3] == ["aws", "secretsmanager", "get-secret-value"]
    assert command[command.index("--secret-id") + 1] == "prod/db"
    assert command[-2:] == ["--region", "eu-west-1"]


@pytest.mark.parametrize(
    "raw",
    [
        pytest.param("hunter2", id="plain string"),
        pytest.param('["hunter2"]', id="json array"),
    ],
)
def test_get_secret_rejects_non_object(raw: str) -> None:
    """Test that secrets that are not JSON objects are rejected without echoing the value."""
    with patch("pipeline_actions.secret_store.retrieval.run_cmd", return_value=raw):
        with pytest.raises(SecretFormatError) as exc_info:
            get_secret("prod/db")
    assert "hunter2" not in str(exc_info.value)


def test_extract_fields_masks_values(capsys: CaptureFixture[str]) -> None:
    """Test that each extracted value is masked before it is returned."""
    secret = {"username": "app", "password": "hunter2", "port": 5432, "unused": "ignored"}

    values = extract_fields("prod/db", secret, ["password", "port"])

    assert values == {"password": "hunter2", "port": "5432"}
    assert capsys.readouterr().out.splitlines() == ["::add-mask::hunter2", "::add-mask::5432"]


def test_extract_fields_missing_field() -> None:
    """Test that a missing field names the field but not any value."""
    with pytest.raises(SecretFieldMissingError) as exc_info:
        extract_fields("prod/db", {"username": "app"}, ["password"])

    assert exc_info.value.field == "password"
    assert str(exc_info.value) == "Secret prod/db has no field 'password'"

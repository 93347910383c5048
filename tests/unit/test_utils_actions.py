"""Unit tests for the runner workflow command helpers."""

from pathlib import Path

import pytest
from pytest import CaptureFixture, MonkeyPatch

from pipeline_actions.utils import actions


def test_add_mask_masks_each_line(capsys: CaptureFixture[str]) -> None:
    """Test that every non-empty line of a multi-line secret is masked separately."""
    actions.add_mask("first-line\n\nsecond-line")
    assert capsys.readouterr().out.splitlines() == ["::add-mask::first-line", "::add-mask::second-line"]


def test_add_mask_empty_value(capsys: CaptureFixture[str]) -> None:
    """Test that an empty value prints nothing."""
    actions.add_mask("")
    assert capsys.readouterr().out == ""


def test_add_mask_escapes_percent(capsys: CaptureFixture[str]) -> None:
    """Test that workflow command data is escaped."""
    actions.add_mask("100%secret")
    assert capsys.readouterr().out == "::add-mask::100%25secret\n"


def test_warning_escapes_newlines(capsys: CaptureFixture[str]) -> None:
    """Test that a multi-line warning stays a single workflow command."""
    actions.warning("first\nsecond")
    assert capsys.readouterr().out == "::warning::first%0Asecond\n"


def test_error(capsys: CaptureFixture[str]) -> None:
    """Test the error annotation format."""
    actions.error("boom")
    assert capsys.readouterr().out == "::error::boom\n"


def test_write_github_outputs_single_line(github_output: Path) -> None:
    """Test that single-line values use key=value."""
    actions.write_github_outputs({"instance-id": "i-0abc", "state": "established"})
    assert github_output.read_text() == "instance-id=i-0abc\nstate=established\n"


def test_write_github_outputs_appends(github_output: Path) -> None:
    """Test that outputs written by earlier commands are kept."""
    github_output.write_text("earlier=1\n")
    actions.write_github_outputs({"later": "2"})
    assert github_output.read_text() == "earlier=1\nlater=2\n"


def test_write_github_outputs_multi_line(github_output: Path) -> None:
    """Test that multi-line values use the heredoc form."""
    actions.write_github_outputs({"notes": "line one\nline two"})
    lines = github_output.read_text().splitlines()
    assert lines[0].startswith("notes<<ghadelimiter_")
    delimiter = lines[0].split("<<", 1)[1]
    assert lines[1:] == ["line one", "line two", delimiter]


def test_write_github_outputs_without_runner(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """Test that nothing is written when GITHUB_OUTPUT is not set."""
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    monkeypatch.chdir(tmp_path)
    actions.write_github_outputs({"key": "value"})
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize(
    "value,expected",
    [
        pytest.param("plain", "plain", id="plain"),
        pytest.param("a%b", "a%25b", id="percent"),
        pytest.param("a\r\nb", "a%0D%0Ab", id="crlf"),
    ],
)
def test_escape_data(value: str, expected: str) -> None:
    """Test escaping of workflow command data."""
    assert actions._escape_data(value) == expected

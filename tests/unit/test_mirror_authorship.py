"""Unit tests for mirror commit authorship resolution."""

import pytest

from pipeline_actions.mirror.authorship import is_bot_identity, resolve_authorship
from pipeline_actions.mirror.models import Identity

ACTOR = Identity(name="octocat", email="583231+octocat@users.noreply.github.com")


@pytest.mark.parametrize(
    "identity",
    [
        pytest.param(Identity(name="Copilot", email="198982749+Copilot@users.noreply.github.com"), id="copilot"),
        pytest.param(Identity(name="dependabot[bot]", email="49699333+dependabot[bot]@users.noreply.github.com"), id="dependabot"),
        pytest.param(Identity(name="Some Name", email="github-actions[bot]@users.noreply.github.com"), id="bot email only"),
        pytest.param(Identity(name="copilot", email="copilot@users.noreply.github.com"), id="lowercase copilot"),
    ],
)
def test_bot_identities(identity: Identity) -> None:
    """Test identities recognized as bots by the default pattern."""
    assert is_bot_identity(identity) is True


@pytest.mark.parametrize(
    "identity",
    [
        pytest.param(Identity(name="Mona Lisa", email="mona@example.com"), id="human"),
        pytest.param(Identity(name="Copilot Fan", email="fan@example.com"), id="name containing copilot"),
        pytest.param(Identity(name="robot", email="robot@example.com"), id="bot substring without brackets"),
    ],
)
def test_human_identities(identity: Identity) -> None:
    """Test identities that are not bots."""
    assert is_bot_identity(identity) is False


def test_bot_commit_is_attributed_to_actor() -> None:
    """Test that a bot-authored commit takes the actor as effective author."""
    original = Identity(name="Copilot", email="198982749+Copilot@users.noreply.github.com")
    authorship = resolve_authorship(original, ACTOR)

    assert authorship.effective == ACTOR
    assert authorship.original == original
    assert authorship.actor == ACTOR


def test_human_commit_keeps_original_author() -> None:
    """Test that a human-authored commit keeps its author even when someone else triggered the run."""
    original = Identity(name="Mona Lisa", email="mona@example.com")
    assert resolve_authorship(original, ACTOR).effective == original


def test_custom_bot_pattern() -> None:
    """Test that the bot pattern can be replaced."""
    original = Identity(name="release-robot", email="robot@example.com")
    assert resolve_authorship(original, ACTOR, pattern=r"robot@example\.com$").effective == ACTOR
    assert resolve_authorship(original, ACTOR).effective == original


def test_identity_str() -> None:
    """Test the git-style rendering of an identity."""
    assert str(Identity(name="Mona Lisa", email="mona@example.com")) == "Mona Lisa <mona@example.com>"

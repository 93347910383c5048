"""Decide which identity a mirrored commit is attributed to."""

import re

import structlog

from pipeline_actions.mirror.models import CommitAuthorship, Identity
from pipeline_actions.utils.constants import DEFAULT_BOT_AUTHOR_PATTERN

logger = structlog.get_logger(__name__)


def is_bot_identity(identity: Identity, pattern: str = DEFAULT_BOT_AUTHOR_PATTERN) -> bool:
    """Return True when the identity's name or email matches the bot pattern."""
    compiled = re.compile(pattern)
    return bool(compiled.search(identity.name) or compiled.search(identity.email))


def resolve_authorship(original: Identity, actor: Identity, pattern: str = DEFAULT_BOT_AUTHOR_PATTERN) -> CommitAuthorship:
    """Attribute a bot-authored commit to the actor; pass every other author through."""
    if is_bot_identity(original, pattern):
        logger.info("Commit authored by a bot, attributing to actor", original=str(original), actor=str(actor))
        return CommitAuthorship(original=original, actor=actor, effective=actor)
    return CommitAuthorship(original=original, actor=actor, effective=original)

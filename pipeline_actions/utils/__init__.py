"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_BASTION_TAG_SUFFIX,
    DEFAULT_BOT_AUTHOR_PATTERN,
    DEFAULT_TUNNEL_POLL_INTERVAL_SECONDS,
    DEFAULT_TUNNEL_READY_TIMEOUT_SECONDS,
)
from .retry import retry_on_rate_limit

__all__ = [
    "DEFAULT_BASTION_TAG_SUFFIX",
    "DEFAULT_BOT_AUTHOR_PATTERN",
    "DEFAULT_TUNNEL_POLL_INTERVAL_SECONDS",
    "DEFAULT_TUNNEL_READY_TIMEOUT_SECONDS",
    "retry_on_rate_limit",
]

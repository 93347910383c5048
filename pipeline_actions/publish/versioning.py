"""Compute release versions from the repository's version tags."""

from enum import Enum
from pathlib import Path

import structlog

from pipeline_actions.utils.constants import DEFAULT_TAG_PREFIX, SEMVER_PATTERN
from pipeline_actions.utils.process import run_cmd

logger = structlog.get_logger(__name__)


class BumpType(str, Enum):
    """Which part of a major.minor.patch version to increment."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse 'major.minor.patch' into integers."""
    match = SEMVER_PATTERN.match(version.strip())
    if not match:
        raise ValueError(f"Version '{version}' is not in major.minor.patch format.")
    major, minor, patch = (int(part) for part in match.groups())
    return major, minor, patch


def bump_version(version: str, bump: BumpType | str = BumpType.PATCH) -> str:
    """Return `version` with the requested part incremented and lower parts reset."""
    try:
        bump = bump if isinstance(bump, BumpType) else BumpType(bump.strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown bump type '{bump}'. Expected patch|minor|major.") from exc
    major, minor, patch = parse_version(version)
    if bump == BumpType.MAJOR:
        return f"{major + 1}.0.0"
    if bump == BumpType.MINOR:
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"


def latest_version_tag(repo_dir: Path, prefix: str = DEFAULT_TAG_PREFIX) -> str | None:
    """Return the highest `<prefix>X.Y.Z` tag in the repository, or None if there is none.

    Tags that do not follow the pattern (e.g. `v1.2.3-rc1`) are ignored.
    """
    output = run_cmd(["git", "-C", str(repo_dir), "tag", "--list", f"{prefix}*"])
    versions: list[tuple[tuple[int, int, int], str]] = []
    for tag in output.split():
        candidate = tag[len(prefix) :]
        if SEMVER_PATTERN.match(candidate):
            versions.append((parse_version(candidate), tag))
    if not versions:
        return None
    return max(versions)[1]


def next_version(repo_dir: Path, bump: BumpType | str = BumpType.PATCH, prefix: str = DEFAULT_TAG_PREFIX) -> str:
    """Return the version that follows the latest version tag (starting from 0.0.0)."""
    latest_tag = latest_version_tag(repo_dir, prefix=prefix)
    current = latest_tag[len(prefix) :] if latest_tag else "0.0.0"
    new_version = bump_version(current, bump)
    logger.info("Computed next version", latest_tag=latest_tag, bump=bump.value if isinstance(bump, BumpType) else bump, next_version=new_version)
    return new_version

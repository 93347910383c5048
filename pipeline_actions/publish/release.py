"""Tag a release in git and publish it on GitHub."""

from pathlib import Path

import structlog
from githubkit.exception import RequestFailed

from pipeline_actions.exceptions import PipelineActionError
from pipeline_actions.github.abc import GitHubClientBase
from pipeline_actions.utils.process import probe_cmd, run_cmd

logger = structlog.get_logger(__name__)


class TagExistsError(PipelineActionError):
    """Raised when the tag to create already exists."""

    pass


def tag_exists(repo_dir: Path, tag: str) -> bool:
    """Return True when `tag` exists locally."""
    result = probe_cmd(["git", "-C", str(repo_dir), "rev-parse", "--verify", "--quiet", f"refs/tags/{tag}"])
    return result.returncode == 0


def create_and_push_tag(repo_dir: Path, tag: str, message: str | None = None, ref: str = "HEAD", remote: str = "origin") -> None:
    """Create an annotated tag on `ref` and push it to `remote`."""
    if tag_exists(repo_dir, tag):
        raise TagExistsError(f"Tag {tag} already exists")
    run_cmd(["git", "-C", str(repo_dir), "tag", "-a", tag, "-m", message or tag, ref])
    logger.info("Created tag", tag=tag, ref=ref)
    run_cmd(["git", "-C", str(repo_dir), "push", remote, f"refs/tags/{tag}"])
    logger.info("Pushed tag", tag=tag, remote=remote)


async def create_release(
    adapter: GitHubClientBase,
    tag: str,
    name: str | None = None,
    generate_notes: bool = True,
    draft: bool = False,
    prerelease: bool = False,
) -> str:
    """Create a GitHub release for `tag` and return its URL.

    If a release for the tag already exists, its URL is returned instead.
    """
    try:
        existing = await adapter.get_release_by_tag(tag)
    except RequestFailed as exc:
        if exc.response.status_code != 404:
            raise
    else:
        logger.info("Release already exists", tag=tag, url=existing.html_url)
        return existing.html_url

    release = await adapter.create_release(
        tag_name=tag,
        name=name or tag,
        generate_release_notes=generate_notes,
        draft=draft,
        prerelease=prerelease,
    )
    logger.info("Created release", tag=tag, url=release.html_url)
    return release.html_url

"""Contains utility functions for GitHub interactions."""


async def split_repository(repo: str | None) -> tuple[str, str]:
    """Splits a repository in 'owner/repo' format into owner and repository."""
    if repo is None:
        raise ValueError("A repository is required (GITHUB_REPOSITORY or --repo).")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def noreply_email(actor: str, actor_id: str | int | None = None) -> str:
    """Build the GitHub noreply address for an actor, e.g. '123+octocat@users.noreply.github.com'."""
    if actor_id:
        return f"{actor_id}+{actor}@users.noreply.github.com"
    return f"{actor}@users.noreply.github.com"

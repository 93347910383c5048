"""Reconcile GitHub configuration from CLI arguments and environment variables."""

from pipeline_actions.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from pipeline_actions.configuration.models import GitHubConfig
from pipeline_actions.utils.github import split_repository


async def validate_github_token_configuration(
    github_token: str | None,
    repo: str | None,
    github_api_url: str = "https://api.github.com",
) -> GitHubConfig:
    """Validates the configuration needed to call the GitHub API.

    Args:
        github_token (str | None): The GitHub token.
        repo (str | None): The repository in 'owner/repo' format.
        github_api_url (str): The GitHub API URL.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If no token is provided.
        RequiredConfigurationElementError: If no repository is provided.
        ValueError: If the repository is malformed.

    Returns:
        GitHubConfig: The validated configuration.
    """
    if not github_token:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "No GitHub token provided. Please provide one with --github-token or the GITHUB_TOKEN environment variable."
        )
    if not repo:
        raise RequiredConfigurationElementError("Repository", "--repo", "GITHUB_REPOSITORY")

    owner, repo_name = await split_repository(repo)
    return GitHubConfig(
        github_api_url=github_api_url,
        github_token=github_token,
        repo=f"{owner}/{repo_name}",
        owner=owner,
        repo_name=repo_name,
    )

"""Models for configuration reconciled from CLI arguments and environment variables."""

from dataclasses import dataclass


@dataclass
class GitHubConfig:
    """Configuration needed by commands that call the GitHub API."""

    github_api_url: str
    github_token: str
    repo: str
    owner: str
    repo_name: str

"""GitHub client adapter for the githubkit library."""

from functools import wraps
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import DeploymentStatus, Release

from pipeline_actions.utils.github import split_repository
from pipeline_actions.utils.retry import retry_on_rate_limit

from .abc import GitHubClientBase
from .client import GitHubClient, get_github_client

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def handle_github_422(func: F) -> F:
    """Decorator to handle GitHub 422 Unprocessable Entity errors, logging and raising with details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RequestFailed as exc:
            if exc.response.status_code != 422:
                raise
            try:
                error_data = exc.response.json()
            except ValueError:
                error_data = {}
            message = error_data.get("message", "Unprocessable Entity")
            errors = error_data.get("errors", [])
            logger.error("GitHub 422 Unprocessable Entity", function=func.__name__, message=message, errors=errors)
            raise ValueError(f"GitHub 422 error in {func.__name__}: {message} | errors: {errors}") from exc

    return wrapper  # type: ignore


class GitHubKitAdapter(GitHubClientBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    @classmethod
    async def create(cls, repo: str, github_token: str, github_api_url: str = "https://api.github.com") -> Self:
        """Create a new GitHub client adapter.

        Args:
            repo: Repository in 'owner/repo' format
            github_token: Token used for every call
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Returns:
            Configured GitHubKitAdapter instance
        """
        owner, repo_name = await split_repository(repo)
        logger.info("Creating client for GitHub instance and repository", github_api_url=github_api_url, owner=owner, repo_name=repo_name)
        client = await get_github_client(github_token=github_token, github_api_url=github_api_url)
        return cls(client, owner, repo_name)

    # Deployments
    @handle_github_422
    @retry_on_rate_limit()
    async def create_deployment(
        self,
        ref: str,
        environment: str,
        description: str | None = None,
        auto_merge: bool = False,
        required_contexts: list[str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Create a deployment for a ref.

        GitHub answers 202 with only a message when it merged the default
        branch into `ref` instead of creating a deployment; callers must check
        for an `id` on the returned object.
        """
        params = self._omit_null_parameters(
            ref=ref,
            environment=environment,
            description=description,
            auto_merge=auto_merge,
            required_contexts=required_contexts if required_contexts is not None else [],
            **kwargs,
        )
        response = await self.client.rest.repos.async_create_deployment(owner=self.owner, repo=self.repo_name, **params)
        return response.parsed_data

    @handle_github_422
    @retry_on_rate_limit()
    async def create_deployment_status(
        self,
        deployment_id: int,
        state: str,
        description: str | None = None,
        environment_url: str | None = None,
        log_url: str | None = None,
        auto_inactive: bool | None = None,
        **kwargs: Any,
    ) -> DeploymentStatus:
        """Create a status for a deployment."""
        params = self._omit_null_parameters(
            state=state,
            description=description,
            environment_url=environment_url,
            log_url=log_url,
            auto_inactive=auto_inactive,
            **kwargs,
        )
        response: Response[DeploymentStatus] = await self.client.rest.repos.async_create_deployment_status(
            owner=self.owner,
            repo=self.repo_name,
            deployment_id=deployment_id,
            **params,
        )
        return response.parsed_data

    # Releases
    @handle_github_422
    @retry_on_rate_limit()
    async def create_release(
        self,
        tag_name: str,
        name: str | None = None,
        body: str | None = None,
        generate_release_notes: bool = False,
        draft: bool = False,
        prerelease: bool = False,
        **kwargs: Any,
    ) -> Release:
        """Create a release for a tag."""
        params = self._omit_null_parameters(
            tag_name=tag_name,
            name=name,
            body=body,
            generate_release_notes=generate_release_notes,
            draft=draft,
            prerelease=prerelease,
            **kwargs,
        )
        response: Response[Release] = await self.client.rest.repos.async_create_release(owner=self.owner, repo=self.repo_name, **params)
        return response.parsed_data

    @retry_on_rate_limit()
    async def get_release_by_tag(self, tag_name: str) -> Release:
        """Get the release for a tag."""
        response: Response[Release] = await self.client.rest.repos.async_get_release_by_tag(owner=self.owner, repo=self.repo_name, tag=tag_name)
        return response.parsed_data

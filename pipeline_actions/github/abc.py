"""Base ABC for GitHub clients."""

from abc import ABC, abstractmethod
from typing import Any


class GitHubClientBase(ABC):
    """Base ABC for GitHub clients."""

    # Deployments
    @abstractmethod
    async def create_deployment(
        self,
        ref: str,
        environment: str,
        description: str | None = None,
        auto_merge: bool = False,
        required_contexts: list[str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Create a deployment for a ref."""
        pass

    @abstractmethod
    async def create_deployment_status(
        self,
        deployment_id: int,
        state: str,
        description: str | None = None,
        environment_url: str | None = None,
        log_url: str | None = None,
        auto_inactive: bool | None = None,
        **kwargs: Any,
    ) -> Any:
        """Create a status for a deployment."""
        pass

    # Releases
    @abstractmethod
    async def create_release(
        self,
        tag_name: str,
        name: str | None = None,
        body: str | None = None,
        generate_release_notes: bool = False,
        draft: bool = False,
        prerelease: bool = False,
        **kwargs: Any,
    ) -> Any:
        """Create a release for a tag."""
        pass

    @abstractmethod
    async def get_release_by_tag(self, tag_name: str) -> Any:
        """Get the release for a tag."""
        pass

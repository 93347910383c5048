"""Create deployments and report their status on GitHub."""

from enum import Enum

import structlog

from pipeline_actions.exceptions import PipelineActionError
from pipeline_actions.github.abc import GitHubClientBase

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class DeploymentState(str, Enum):
    """States accepted by the deployment status API."""

    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    INACTIVE = "inactive"
    IN_PROGRESS = "in_progress"
    QUEUED = "queued"
    PENDING = "pending"


class DeploymentNotCreatedError(PipelineActionError):
    """Raised when GitHub accepted the request but did not create a deployment."""

    pass


def parse_deployment_state(state: str) -> DeploymentState:
    """Parse a state name, failing before any API call when it is not allowed."""
    try:
        return DeploymentState(state.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(s.value for s in DeploymentState)
        raise ValueError(f"Invalid deployment state '{state}'. Expected one of: {allowed}") from exc


async def create_deployment(
    adapter: GitHubClientBase,
    ref: str,
    environment: str,
    description: str | None = None,
    auto_merge: bool = False,
    required_contexts: list[str] | None = None,
) -> int:
    """Create a deployment of `ref` to `environment` and return its ID."""
    logger.info("Creating deployment", ref=ref, environment=environment)
    deployment = await adapter.create_deployment(
        ref=ref,
        environment=environment,
        description=description,
        auto_merge=auto_merge,
        required_contexts=required_contexts if required_contexts is not None else [],
    )
    deployment_id = getattr(deployment, "id", None)
    if deployment_id is None:
        message = getattr(deployment, "message", None) or "no deployment returned"
        raise DeploymentNotCreatedError(f"GitHub did not create a deployment for {ref} in {environment}: {message}")
    logger.info("Created deployment", deployment_id=deployment_id, ref=ref, environment=environment)
    return int(deployment_id)


async def update_deployment_status(
    adapter: GitHubClientBase,
    deployment_id: int,
    state: DeploymentState | str,
    description: str | None = None,
    environment_url: str | None = None,
    log_url: str | None = None,
    auto_inactive: bool | None = None,
) -> None:
    """Record a new status for a deployment."""
    if not isinstance(state, DeploymentState):
        state = parse_deployment_state(state)
    # GitHub rejects descriptions longer than 140 characters.
    if description is not None and len(description) > 140:
        description = description[:137] + "..."
    await adapter.create_deployment_status(
        deployment_id=deployment_id,
        state=state.value,
        description=description,
        environment_url=environment_url or None,
        log_url=log_url or None,
        auto_inactive=auto_inactive,
    )
    logger.info("Updated deployment status", deployment_id=deployment_id, state=state.value)

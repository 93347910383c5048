"""Exceptions raised by the bastion tunnel actions."""

from pipeline_actions.exceptions import PipelineActionError


class BastionResolutionError(PipelineActionError):
    """Raised when an environment name cannot be resolved to exactly one bastion."""

    def __init__(self, message: str, environment_name: str, tag_value: str) -> None:
        """Initializes the exception with the environment and the tag that was searched for."""
        super().__init__(message)
        self.environment_name = environment_name
        self.tag_value = tag_value


class BastionNotFoundError(BastionResolutionError):
    """Raised when no running instance carries the bastion tag."""

    pass


class BastionAmbiguousError(BastionResolutionError):
    """Raised when more than one running instance carries the bastion tag."""

    def __init__(self, message: str, environment_name: str, tag_value: str, instance_ids: list[str]) -> None:
        """Initializes the exception with the conflicting instance IDs."""
        super().__init__(message, environment_name, tag_value)
        self.instance_ids = instance_ids


class InvalidTunnelTransitionError(PipelineActionError):
    """Raised when a tunnel session is moved to a state it cannot reach."""

    pass

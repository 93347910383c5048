"""Contains exceptions raised when reconciling application configuration."""

from pipeline_actions.exceptions import PipelineActionError


class GitHubAuthenticationConfigurationUndefinedError(PipelineActionError):
    """Raised when no GitHub token is available for a command that needs one."""

    pass


class RequiredConfigurationElementError(PipelineActionError):
    """Raised when a required configuration element is missing."""

    def __init__(self, name: str, cli_name: str, env_name: str) -> None:
        """Initializes the exception with the name of the missing element."""
        super().__init__(f"Missing required configuration element: {name} (command line option {cli_name}, environment variable {env_name})")
        self.name = name
        self.cli_name = cli_name
        self.env_name = env_name

"""Base exceptions shared by every pipeline action."""

from typing import Sequence


class PipelineActionError(Exception):
    """Base class for errors that should fail the current pipeline step."""

    pass


class CommandFailedError(PipelineActionError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, details: str) -> None:
        """Initializes the exception with the command, its exit status and output."""
        super().__init__(f"Command failed ({returncode}): {' '.join(args)}\n{details}".rstrip())
        self.args_list = list(args)
        self.returncode = returncode
        self.details = details


class CommandOutputError(PipelineActionError):
    """Raised when an external command produced output that could not be parsed."""

    pass


class CommandNotFoundError(PipelineActionError):
    """Raised when an external command is not installed on the runner."""

    def __init__(self, command: str) -> None:
        """Initializes the exception with the name of the missing command."""
        super().__init__(f"Command not found: {command}. Is it installed and on PATH?")
        self.command = command

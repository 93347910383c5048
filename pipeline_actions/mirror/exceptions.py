"""Exceptions raised by the mirror actions."""

from pipeline_actions.exceptions import PipelineActionError


class MirrorDivergedError(PipelineActionError):
    """Raised when the mirror holds commits the source does not have.

    This always needs a human: pushing would discard the mirror-only history.
    """

    def __init__(self, remote_ref: str, mirror_tip: str, local_commit_sha: str) -> None:
        """Initializes the exception with the diverging commits."""
        super().__init__(
            f"Mirror {remote_ref} is at {mirror_tip}, which is not an ancestor of {local_commit_sha}; "
            "refusing to overwrite commits that only exist on the mirror"
        )
        self.remote_ref = remote_ref
        self.mirror_tip = mirror_tip
        self.local_commit_sha = local_commit_sha


class UnknownCommitError(PipelineActionError):
    """Raised when the commit to mirror does not exist in the local repository."""

    pass

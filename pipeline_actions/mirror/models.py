"""Data models for mirroring a commit into another repository."""

from enum import Enum

from pydantic import BaseModel

from pipeline_actions.mirror.exceptions import MirrorDivergedError


class DivergenceStatus(str, Enum):
    """How the mirror's tip relates to the commit being mirrored."""

    ALREADY_PRESENT = "already_present"
    IN_SYNC = "in_sync"
    DIVERGED = "diverged"


class SyncAction(str, Enum):
    """What the guard decided to do with the mirror."""

    PUSH = "push"
    SKIP_ALREADY_PRESENT = "skip_already_present"
    ABORT_DIVERGED = "abort_diverged"


class SyncOutcome(str, Enum):
    """What actually happened to the mirror."""

    PUSHED = "pushed"
    SKIPPED = "skipped"
    ABORTED = "aborted"


class Identity(BaseModel):
    """A git author identity."""

    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class CommitAuthorship(BaseModel):
    """The author recorded on the source commit and the actor who triggered the mirror."""

    original: Identity
    actor: Identity
    effective: Identity


class MirrorSyncDecision(BaseModel):
    """The guard's decision for one invocation; never persisted."""

    action: SyncAction
    status: DivergenceStatus
    mirror_tip: str | None
    commit_author_name: str
    commit_author_email: str


class MirrorSyncResult(BaseModel):
    """Outcome of a sync, including the commit that ended up on the mirror."""

    outcome: SyncOutcome
    decision: MirrorSyncDecision
    remote_ref: str
    local_commit: str
    pushed_commit: str | None = None

    def raise_for_abort(self) -> None:
        """Raise MirrorDivergedError if the sync was aborted."""
        if self.outcome == SyncOutcome.ABORTED:
            raise MirrorDivergedError(self.remote_ref, self.decision.mirror_tip or "", self.local_commit)

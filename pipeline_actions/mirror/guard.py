"""Push a source commit to a mirror repository without ever discarding mirror history.

Mirroring is one-way. Before pushing, the guard compares the mirror's tip with
the commit being mirrored:

- the mirror already contains the commit: nothing to do;
- the mirror's tip is an ancestor of the commit: a fast-forward, safe to push;
- anything else: the mirror was edited out of band, so the guard refuses.

Bot-authored commits reach the mirror attributed to the human actor. Such a
copy gets a `Mirrored-from:` trailer naming the source commit, so the next run
can relate the mirror's tip to the source history. New source commits are then
rebuilt on top of the mirror's tip, and every push stays a fast-forward.
"""

import structlog

from pipeline_actions.mirror.authorship import resolve_authorship
from pipeline_actions.mirror.exceptions import UnknownCommitError
from pipeline_actions.mirror.git import GitRepository, normalize_branch_ref, scoped_credentials
from pipeline_actions.mirror.models import (
    CommitAuthorship,
    DivergenceStatus,
    Identity,
    MirrorSyncDecision,
    MirrorSyncResult,
    SyncAction,
    SyncOutcome,
)
from pipeline_actions.utils.constants import (
    DEFAULT_BOT_AUTHOR_PATTERN,
    MIRROR_FETCH_REF,
    MIRRORED_FROM_PATTERN,
    MIRRORED_FROM_TRAILER,
)

logger = structlog.get_logger(__name__)


def mirrored_source_of(repository: GitRepository, mirror_tip: str) -> str | None:
    """Return the source commit a rewritten mirror commit stands for, if it is known locally."""
    match = MIRRORED_FROM_PATTERN.search(repository.message_of(mirror_tip))
    if match is None:
        return None
    return repository.rev_parse(match.group(1))


def effective_tip_of(repository: GitRepository, mirror_tip: str | None) -> str | None:
    """Return the source commit the mirror's tip stands for; a tip that is not a rewrite stands for itself."""
    if mirror_tip is None:
        return None
    return mirrored_source_of(repository, mirror_tip) or mirror_tip


def classify_divergence(repository: GitRepository, local_commit_sha: str, mirror_tip: str | None) -> DivergenceStatus:
    """Relate the mirror's (effective) tip to the local commit using git's ancestry queries."""
    if mirror_tip is None:
        return DivergenceStatus.IN_SYNC
    if mirror_tip == local_commit_sha or repository.is_ancestor(local_commit_sha, mirror_tip):
        return DivergenceStatus.ALREADY_PRESENT
    if repository.is_ancestor(mirror_tip, local_commit_sha):
        return DivergenceStatus.IN_SYNC
    return DivergenceStatus.DIVERGED


def fetch_mirror_tip(repository: GitRepository, mirror_url: str, remote_ref: str) -> str | None:
    """Fetch the mirror's tip for `remote_ref` so its history is available locally.

    Returns None when the ref does not exist on the mirror yet.
    """
    remote_ref = normalize_branch_ref(remote_ref)
    tip = repository.ls_remote(mirror_url, remote_ref)
    if tip is None:
        logger.info("Mirror ref does not exist yet", remote_ref=remote_ref)
        return None
    repository.fetch(mirror_url, remote_ref, MIRROR_FETCH_REF)
    logger.info("Fetched mirror tip", remote_ref=remote_ref, mirror_tip=tip)
    return tip


def check_divergence(repository: GitRepository, local_commit_sha: str, mirror_url: str, remote_ref: str) -> tuple[DivergenceStatus, str | None]:
    """Compare the mirror's current tip for `remote_ref` with `local_commit_sha`.

    Returns the status and the mirror's actual tip (None if the ref is absent).
    A tip that is a rewrite of a source commit is compared as that source commit.
    """
    local_sha = repository.rev_parse(local_commit_sha)
    if local_sha is None:
        raise UnknownCommitError(f"Commit {local_commit_sha} does not exist in {repository.path}")

    mirror_tip = fetch_mirror_tip(repository, mirror_url, remote_ref)
    effective_tip = effective_tip_of(repository, mirror_tip)

    status = classify_divergence(repository, local_sha, effective_tip)
    logger.info("Checked mirror divergence", local_commit=local_sha, mirror_tip=mirror_tip, effective_tip=effective_tip, status=status.value)
    return status, mirror_tip


def decide(status: DivergenceStatus, mirror_tip: str | None, authorship: CommitAuthorship) -> MirrorSyncDecision:
    """Turn a divergence status into the action the guard takes."""
    action = {
        DivergenceStatus.ALREADY_PRESENT: SyncAction.SKIP_ALREADY_PRESENT,
        DivergenceStatus.IN_SYNC: SyncAction.PUSH,
        DivergenceStatus.DIVERGED: SyncAction.ABORT_DIVERGED,
    }[status]
    return MirrorSyncDecision(
        action=action,
        status=status,
        mirror_tip=mirror_tip,
        commit_author_name=authorship.effective.name,
        commit_author_email=authorship.effective.email,
    )


def apply_authorship(repository: GitRepository, local_commit_sha: str, author: Identity, parents: list[str] | None = None) -> str:
    """Return the commit to push: the local commit itself, or a copy attributed to `author`.

    The copy keeps the tree, message and author date of the original and
    records the original SHA in a trailer. It keeps the original's parents
    unless `parents` is given.
    """
    original_parents = repository.parents_of(local_commit_sha)
    if parents is None:
        parents = original_parents
    if parents == original_parents and repository.author_of(local_commit_sha) == author:
        return local_commit_sha

    message = repository.message_of(local_commit_sha)
    message = f"{message}\n\n{MIRRORED_FROM_TRAILER}: {local_commit_sha}"
    rewritten = repository.commit_tree(
        tree=repository.tree_of(local_commit_sha),
        parents=parents,
        message=message,
        author=author,
        author_date=repository.author_date_of(local_commit_sha),
    )
    logger.info("Rewrote commit for the mirror", original=local_commit_sha, rewritten=rewritten, author=str(author), parents=parents)
    return rewritten


def rebuild_onto_mirror(
    repository: GitRepository,
    base: str,
    mirror_tip: str,
    local_commit_sha: str,
    authorship: CommitAuthorship,
    bot_pattern: str = DEFAULT_BOT_AUTHOR_PATTERN,
) -> str:
    """Carry the source commits after `base` over to the mirror's tip and return the new tip.

    `base` is the source commit `mirror_tip` stands for (the tip itself when
    it was pushed unchanged). Each commit in `base..local_commit_sha` gets its
    author resolved and its parents mapped to their mirror counterparts, so the
    result always descends from `mirror_tip`. Commits that need neither change
    are kept as they are.
    """
    counterparts = {base: mirror_tip}
    for sha in repository.rev_list(local_commit_sha, exclude=base):
        if sha == local_commit_sha:
            author = authorship.effective
        else:
            author = resolve_authorship(repository.author_of(sha), authorship.actor, pattern=bot_pattern).effective
        parents = [counterparts.get(parent, parent) for parent in repository.parents_of(sha)]
        counterparts[sha] = apply_authorship(repository, sha, author, parents=parents)
    return counterparts[local_commit_sha]


def sync(
    repository: GitRepository,
    local_commit_sha: str,
    mirror_url: str,
    remote_ref: str,
    authorship: CommitAuthorship,
    token: str | None = None,
    bot_pattern: str = DEFAULT_BOT_AUTHOR_PATTERN,
) -> MirrorSyncResult:
    """Mirror `local_commit_sha` to `remote_ref` on `mirror_url`.

    Credentials for the mirror live in the local git config only while this
    function runs. The push is always a fast-forward of the mirror's tip.

    A diverged mirror is returned as `aborted`; call
    `MirrorSyncResult.raise_for_abort` to turn it into a failure.
    """
    remote_ref = normalize_branch_ref(remote_ref)
    with scoped_credentials(repository, mirror_url, token):
        try:
            local_sha = repository.rev_parse(local_commit_sha)
            if local_sha is None:
                raise UnknownCommitError(f"Commit {local_commit_sha} does not exist in {repository.path}")
            status, mirror_tip = check_divergence(repository, local_sha, mirror_url, remote_ref)
            decision = decide(status, mirror_tip, authorship)

            if decision.action == SyncAction.SKIP_ALREADY_PRESENT:
                logger.info("Mirror already contains commit, skipping push", local_commit=local_sha, remote_ref=remote_ref)
                return MirrorSyncResult(outcome=SyncOutcome.SKIPPED, decision=decision, remote_ref=remote_ref, local_commit=local_sha)

            if decision.action == SyncAction.ABORT_DIVERGED:
                logger.error("Mirror has diverged from source", local_commit=local_sha, mirror_tip=mirror_tip, remote_ref=remote_ref)
                return MirrorSyncResult(outcome=SyncOutcome.ABORTED, decision=decision, remote_ref=remote_ref, local_commit=local_sha)

            if mirror_tip is None:
                commit_to_push = apply_authorship(repository, local_sha, authorship.effective)
            else:
                base = mirrored_source_of(repository, mirror_tip) or mirror_tip
                commit_to_push = rebuild_onto_mirror(repository, base, mirror_tip, local_sha, authorship, bot_pattern=bot_pattern)
            repository.push(mirror_url, commit_to_push, remote_ref)
            logger.info("Pushed commit to mirror", commit=commit_to_push, remote_ref=remote_ref, mirror_tip=mirror_tip)
            return MirrorSyncResult(
                outcome=SyncOutcome.PUSHED,
                decision=decision,
                remote_ref=remote_ref,
                local_commit=local_sha,
                pushed_commit=commit_to_push,
            )
        finally:
            repository.delete_ref(MIRROR_FETCH_REF)


def sync_commit(
    repository: GitRepository,
    local_commit_sha: str,
    mirror_url: str,
    remote_ref: str,
    actor: Identity,
    original: Identity | None = None,
    token: str | None = None,
    bot_pattern: str = DEFAULT_BOT_AUTHOR_PATTERN,
) -> MirrorSyncResult:
    """Resolve authorship for `local_commit_sha` and mirror it.

    When `original` is not given it is read from the commit itself.
    """
    local_sha = repository.rev_parse(local_commit_sha)
    if local_sha is None:
        raise UnknownCommitError(f"Commit {local_commit_sha} does not exist in {repository.path}")
    if original is None:
        original = repository.author_of(local_sha)
    authorship = resolve_authorship(original, actor, pattern=bot_pattern)
    return sync(repository, local_sha, mirror_url, remote_ref, authorship, token=token, bot_pattern=bot_pattern)

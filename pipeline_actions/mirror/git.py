"""Git operations used by the mirror guard.

Ancestry questions are answered by git itself (`merge-base --is-ancestor`,
`rev-parse`) rather than by walking history here.
"""

import base64
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import structlog

from pipeline_actions.exceptions import CommandFailedError
from pipeline_actions.mirror.models import Identity
from pipeline_actions.utils.process import probe_cmd, run_cmd

logger = structlog.get_logger(__name__)


def normalize_branch_ref(ref: str) -> str:
    """Expand a short branch name ('main') to a full ref ('refs/heads/main')."""
    ref = ref.strip()
    if not ref:
        raise ValueError("A remote ref is required")
    if ref.startswith("refs/"):
        return ref
    return f"refs/heads/{ref}"


class GitRepository:
    """A local git repository driven through the git CLI."""

    def __init__(self, path: Path | str) -> None:
        """Initialize the wrapper for the repository at `path`."""
        self.path = Path(path)

    def _args(self, *args: str) -> list[str]:
        return ["git", "-C", str(self.path), *args]

    def run(self, *args: str, env: dict[str, str] | None = None, redact: tuple[str, ...] = ()) -> str:
        """Run a git command in the repository and return its stripped stdout."""
        full_env = {**os.environ, **env} if env else None
        return run_cmd(self._args(*args), env=full_env, redact=redact).strip()

    def rev_parse(self, rev: str) -> str | None:
        """Resolve `rev` to a full commit SHA, or None if it does not name a commit."""
        result = probe_cmd(self._args("rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"))
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """Return True when `ancestor` is reachable from `descendant` (a commit is its own ancestor)."""
        args = self._args("merge-base", "--is-ancestor", ancestor, descendant)
        result = probe_cmd(args)
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise CommandFailedError(args, result.returncode, result.stderr.strip())

    def ls_remote(self, url: str, ref: str) -> str | None:
        """Return the SHA `ref` points at on the remote, or None if the ref does not exist."""
        output = self.run("ls-remote", url, ref)
        for line in output.splitlines():
            sha, _, name = line.partition("\t")
            if name == ref:
                return sha
        return None

    def fetch(self, url: str, ref: str, destination: str) -> None:
        """Fetch `ref` from `url` into the local ref `destination`."""
        self.run("fetch", "--no-tags", "--quiet", url, f"+{ref}:{destination}")

    def delete_ref(self, ref: str) -> None:
        """Delete a local ref if it exists."""
        probe_cmd(self._args("update-ref", "-d", ref))

    def author_of(self, sha: str) -> Identity:
        """Return the author identity recorded on a commit."""
        output = self.run("log", "-1", "--format=%an%x00%ae", sha)
        name, _, email = output.partition("\x00")
        return Identity(name=name, email=email)

    def author_date_of(self, sha: str) -> str:
        """Return the author date of a commit in git's raw format."""
        return self.run("log", "-1", "--format=%ad", "--date=raw", sha)

    def message_of(self, sha: str) -> str:
        """Return the full commit message."""
        return self.run("log", "-1", "--format=%B", sha)

    def tree_of(self, sha: str) -> str:
        """Return the tree SHA of a commit."""
        return self.run("rev-parse", f"{sha}^{{tree}}")

    def parents_of(self, sha: str) -> list[str]:
        """Return the parent SHAs of a commit."""
        output = self.run("rev-list", "--parents", "-n", "1", sha)
        return output.split()[1:]

    def commit_tree(self, tree: str, parents: list[str], message: str, author: Identity, author_date: str) -> str:
        """Create a commit object without touching any branch and return its SHA.

        The committer is set to the author as well, so the rewritten commit
        carries only the identity it is attributed to.
        """
        args = ["commit-tree", tree]
        for parent in parents:
            args.extend(["-p", parent])
        args.extend(["-m", message])
        env = {
            "GIT_AUTHOR_NAME": author.name,
            "GIT_AUTHOR_EMAIL": author.email,
            "GIT_AUTHOR_DATE": author_date,
            "GIT_COMMITTER_NAME": author.name,
            "GIT_COMMITTER_EMAIL": author.email,
        }
        return self.run(*args, env=env)

    def rev_list(self, include: str, exclude: str) -> list[str]:
        """Return the commits reachable from `include` but not from `exclude`, parents first."""
        output = self.run("rev-list", "--reverse", "--topo-order", include, f"^{exclude}")
        return output.split()

    def push(self, url: str, source: str, destination: str) -> None:
        """Push `source` to `destination` on `url`; the remote rejects anything but a fast-forward."""
        self.run("push", "--porcelain", url, f"{source}:{destination}")

    def config_set(self, key: str, value: str) -> None:
        """Set a repository-local config value."""
        self.run("config", "--local", key, value, redact=(value,))

    def config_unset_all(self, key: str) -> None:
        """Remove every value of a repository-local config key; a missing key is not an error."""
        args = self._args("config", "--local", "--unset-all", key)
        result = probe_cmd(args)
        # 5 means the key was not set.
        if result.returncode not in (0, 5):
            raise CommandFailedError(args, result.returncode, result.stderr.strip())


def basic_auth_header(token: str, username: str = "x-access-token") -> str:
    """Build the HTTP Authorization header git sends for token authentication."""
    encoded = base64.b64encode(f"{username}:{token}".encode()).decode()
    return f"AUTHORIZATION: basic {encoded}"


@contextmanager
def scoped_credentials(repository: GitRepository, url: str, token: str | None) -> Iterator[None]:
    """Install an auth header for `url` in the local git config for the duration of the block.

    The header is removed on every exit path, including exceptions. Without a
    token (e.g. a mirror on the local filesystem) nothing is installed.
    """
    if not token:
        yield
        return

    key = f"http.{url}.extraheader"
    header = basic_auth_header(token)
    repository.config_set(key, header)
    logger.debug("Installed scoped git credentials", url=url)
    try:
        yield
    finally:
        repository.config_unset_all(key)
        logger.debug("Removed scoped git credentials", url=url)

"""Pytest configuration for integration tests.

Integration tests drive real git repositories (a source clone and a bare
mirror in a temporary directory) and real processes. No cloud or GitHub
access is needed.
"""

import subprocess
from pathlib import Path
from typing import Callable

import pytest
from dotenv import load_dotenv

GIT_IDENTITY = ["-c", "user.name=Integration Tests", "-c", "user.email=integration@example.com", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false"]


@pytest.fixture(autouse=True, scope="session")
def load_env() -> None:
    """Load environment variables from .env.integration or .env, if present."""
    project_root = Path(__file__).parent.parent.parent

    integration_env = project_root / ".env.integration"
    if integration_env.exists():
        load_dotenv(dotenv_path=integration_env)

    default_env = project_root / ".env"
    if default_env.exists():
        load_dotenv(dotenv_path=default_env)


def run_git(repo: Path, *args: str) -> str:
    """Run git in `repo` with a fixed identity and return stripped stdout."""
    result = subprocess.run(["git", *GIT_IDENTITY, "-C", str(repo), *args], capture_output=True, text=True, check=True)
    return result.stdout.strip()


@pytest.fixture
def git() -> Callable[..., str]:
    """Return a helper that runs git in a repository."""
    return run_git


@pytest.fixture
def commit() -> Callable[..., str]:
    """Return a helper that creates a commit and returns its SHA.

    Usage: commit(repo, "message", author="Name <email>", files={"a.txt": "content"}).
    """

    def _commit(repo: Path, message: str, author: str | None = None, files: dict[str, str] | None = None) -> str:
        for name, content in (files or {}).items():
            path = repo / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
            run_git(repo, "add", name)
        args = ["commit", "--allow-empty", "-m", message]
        if author:
            args.extend(["--author", author])
        run_git(repo, *args)
        return run_git(repo, "rev-parse", "HEAD")

    return _commit


@pytest.fixture
def source_repo(tmp_path: Path) -> Path:
    """Create an empty source repository on branch main."""
    repo = tmp_path / "source"
    repo.mkdir()
    run_git(repo, "init", "--quiet", "-b", "main")
    return repo


@pytest.fixture
def mirror_repo(tmp_path: Path) -> Path:
    """Create an empty bare repository acting as the mirror."""
    repo = tmp_path / "mirror.git"
    subprocess.run(["git", "init", "--quiet", "--bare", "-b", "main", str(repo)], capture_output=True, text=True, check=True)
    return repo

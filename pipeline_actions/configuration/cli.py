"""Defines the Command Line Interface (CLI) using Typer.

Every command is one pipeline step. Inputs come from options (each with an
environment variable fallback) and results are written as step outputs.
"""

import asyncio
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from pipeline_actions.bastion.inventory import resolve_bastion
from pipeline_actions.bastion.models import TunnelSession, TunnelState
from pipeline_actions.bastion.tunnel import await_ready, close_tunnel, open_tunnel
from pipeline_actions.configuration.env import settings
from pipeline_actions.configuration.log_config import configure_logging
from pipeline_actions.configuration.reconcile import validate_github_token_configuration
from pipeline_actions.deployments.status import create_deployment, update_deployment_status
from pipeline_actions.exceptions import PipelineActionError
from pipeline_actions.github.adapter import GitHubKitAdapter
from pipeline_actions.mirror.git import GitRepository
from pipeline_actions.mirror.guard import sync_commit
from pipeline_actions.mirror.models import Identity, SyncOutcome
from pipeline_actions.publish.npm import configure_npm_registry, npm_publish
from pipeline_actions.publish.release import create_and_push_tag, create_release
from pipeline_actions.publish.versioning import BumpType, next_version
from pipeline_actions.secret_store.retrieval import extract_fields, get_secret
from pipeline_actions.utils import actions
from pipeline_actions.utils.github import noreply_email

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Reusable CI/CD pipeline steps.")


@contextmanager
def report_step_errors() -> Iterator[None]:
    """Turn known errors into an error annotation and a failing exit status.

    OSError covers local failures such as a missing working directory or an
    unwritable output file.
    """
    try:
        yield
    except (PipelineActionError, ValueError, OSError) as exc:
        actions.error(str(exc))
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


@typer_app.callback()
def main_callback(
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug logging.")] = settings.DEBUG,
) -> None:
    """Reusable CI/CD pipeline steps."""
    configure_logging(debug)


# --- Bastion tunnel commands ---
bastion_app = typer.Typer(help="Bastion port-forward commands")

RegionOption = Annotated[str | None, Option(envvar="AWS_REGION", help="AWS region.")]


@bastion_app.command(name="resolve")
def bastion_resolve_cli(
    environment: Annotated[str, Argument(envvar="BASTION_ENVIRONMENT", help="Environment name, e.g. dev or prod.")],
    region: RegionOption = settings.AWS_REGION,
    tag_suffix: Annotated[str, Option(envvar="BASTION_TAG_SUFFIX", help="Suffix of the bastion's Name tag.")] = settings.BASTION_TAG_SUFFIX,
) -> None:
    """Find the running bastion instance for an environment."""
    with report_step_errors():
        target = resolve_bastion(environment, region=region, tag_suffix=tag_suffix)
    typer.echo(target.instance_id)
    actions.write_github_outputs({"instance-id": target.instance_id})


@bastion_app.command(name="open")
def bastion_open_cli(
    instance_id: Annotated[str, Option(envvar="BASTION_INSTANCE_ID", help="Bastion instance ID.")],
    remote_host: Annotated[str, Option(envvar="TUNNEL_REMOTE_HOST", help="Host to reach through the bastion.")],
    remote_port: Annotated[int, Option(envvar="TUNNEL_REMOTE_PORT", help="Port on the remote host.")] = 5432,
    local_port: Annotated[int, Option(envvar="TUNNEL_LOCAL_PORT", help="Local port to listen on.")] = 5432,
    region: RegionOption = settings.AWS_REGION,
) -> None:
    """Start a background port forward and print the session as JSON."""
    with report_step_errors():
        session = open_tunnel(instance_id, remote_host, remote_port, local_port, region=region)
    _write_session_outputs(session)


@bastion_app.command(name="await-ready")
def bastion_await_ready_cli(
    session_json: Annotated[str, Argument(envvar="TUNNEL_SESSION", help="Session JSON printed by 'bastion open'.")],
    timeout: Annotated[float, Option(envvar="TUNNEL_READY_TIMEOUT_SECONDS", help="Seconds to wait for the tunnel.")] = (
        settings.TUNNEL_READY_TIMEOUT_SECONDS
    ),
    poll_interval: Annotated[float, Option(envvar="TUNNEL_POLL_INTERVAL_SECONDS", help="Seconds between connection attempts.")] = (
        settings.TUNNEL_POLL_INTERVAL_SECONDS
    ),
) -> None:
    """Wait until the tunnel's local port accepts connections.

    A timeout is reported as a warning only; the step still succeeds.
    """
    with report_step_errors():
        session = TunnelSession.model_validate_json(session_json)
        session = await_ready(session, timeout_seconds=timeout, poll_interval=poll_interval)
    _warn_if_not_ready(session, timeout)
    _write_session_outputs(session)


@bastion_app.command(name="connect")
def bastion_connect_cli(
    environment: Annotated[str, Argument(envvar="BASTION_ENVIRONMENT", help="Environment name, e.g. dev or prod.")],
    remote_host: Annotated[str, Option(envvar="TUNNEL_REMOTE_HOST", help="Host to reach through the bastion.")],
    remote_port: Annotated[int, Option(envvar="TUNNEL_REMOTE_PORT", help="Port on the remote host.")] = 5432,
    local_port: Annotated[int, Option(envvar="TUNNEL_LOCAL_PORT", help="Local port to listen on.")] = 5432,
    region: RegionOption = settings.AWS_REGION,
    tag_suffix: Annotated[str, Option(envvar="BASTION_TAG_SUFFIX", help="Suffix of the bastion's Name tag.")] = settings.BASTION_TAG_SUFFIX,
    timeout: Annotated[float, Option(envvar="TUNNEL_READY_TIMEOUT_SECONDS", help="Seconds to wait for the tunnel.")] = (
        settings.TUNNEL_READY_TIMEOUT_SECONDS
    ),
    poll_interval: Annotated[float, Option(envvar="TUNNEL_POLL_INTERVAL_SECONDS", help="Seconds between connection attempts.")] = (
        settings.TUNNEL_POLL_INTERVAL_SECONDS
    ),
) -> None:
    """Resolve the bastion, open the port forward and wait for it in one step."""
    with report_step_errors():
        target = resolve_bastion(environment, region=region, tag_suffix=tag_suffix)
        session = open_tunnel(target.instance_id, remote_host, remote_port, local_port, region=region)
        session = await_ready(session, timeout_seconds=timeout, poll_interval=poll_interval)
    _warn_if_not_ready(session, timeout)
    _write_session_outputs(session)


@bastion_app.command(name="close")
def bastion_close_cli(
    process_id: Annotated[int, Argument(envvar="TUNNEL_PROCESS_ID", help="Process ID of the port forward.")],
) -> None:
    """Stop a port forward. Never fails the step."""
    if close_tunnel(process_id):
        typer.echo(f"Tunnel process {process_id} stopped")
    else:
        actions.warning(f"Could not stop tunnel process {process_id}")


def _warn_if_not_ready(session: TunnelSession, timeout: float) -> None:
    if session.state == TunnelState.FAILED:
        actions.warning(
            f"Tunnel on local port {session.local_port} was not ready after {timeout:g}s; "
            f"process {session.process_id} is still running"
        )


def _write_session_outputs(session: TunnelSession) -> None:
    session_json = session.model_dump_json()
    typer.echo(session_json)
    actions.write_github_outputs(
        {
            "session": session_json,
            "instance-id": session.instance_id,
            "process-id": str(session.process_id),
            "local-port": str(session.local_port),
            "state": session.state.value,
        }
    )


typer_app.add_typer(bastion_app, name="bastion")


# --- Mirror commands ---
mirror_app = typer.Typer(help="Repository mirroring commands")


@mirror_app.command(name="sync")
def mirror_sync_cli(
    mirror_url: Annotated[str, Option(envvar="MIRROR_URL", help="URL (or path) of the mirror repository.")],
    actor: Annotated[str, Option(envvar="GITHUB_ACTOR", help="User who triggered the run.")],
    sha: Annotated[str, Option(envvar="GITHUB_SHA", help="Commit to mirror.")] = "HEAD",
    remote_ref: Annotated[str, Option(envvar="MIRROR_REF", help="Branch or ref on the mirror.")] = "main",
    repo_dir: Annotated[Path, Option(envvar="GITHUB_WORKSPACE", help="Local clone of the source repository.")] = Path("."),
    token: Annotated[str | None, Option(envvar="MIRROR_TOKEN", help="Token for the mirror's host.")] = None,
    actor_id: Annotated[str | None, Option(envvar="GITHUB_ACTOR_ID", help="Numeric ID of the actor.")] = None,
    actor_email: Annotated[str | None, Option(envvar="MIRROR_ACTOR_EMAIL", help="Email of the actor.")] = None,
    author_name: Annotated[str | None, Option(envvar="MIRROR_AUTHOR_NAME", help="Original author name (default: from the commit).")] = None,
    author_email: Annotated[str | None, Option(envvar="MIRROR_AUTHOR_EMAIL", help="Original author email (default: from the commit).")] = None,
    bot_pattern: Annotated[str, Option(envvar="MIRROR_BOT_AUTHOR_PATTERN", help="Regex matching bot authors.")] = settings.MIRROR_BOT_AUTHOR_PATTERN,
) -> None:
    """Push a commit to a mirror unless it is already there or the mirror diverged."""
    if token:
        actions.add_mask(token)
    actor_identity = Identity(name=actor, email=actor_email or noreply_email(actor, actor_id))
    original = None
    if author_name and author_email:
        original = Identity(name=author_name, email=author_email)

    with report_step_errors():
        result = sync_commit(
            GitRepository(repo_dir),
            sha,
            mirror_url,
            remote_ref,
            actor=actor_identity,
            original=original,
            token=token,
            bot_pattern=bot_pattern,
        )
        actions.write_github_outputs(
            {
                "outcome": result.outcome.value,
                "pushed-commit": result.pushed_commit or "",
                "author-name": result.decision.commit_author_name,
                "author-email": result.decision.commit_author_email,
            }
        )
        typer.echo(f"Mirror sync {result.outcome.value}: {result.remote_ref}")
        result.raise_for_abort()
    if result.outcome == SyncOutcome.PUSHED:
        typer.echo(f"Pushed {result.pushed_commit}")


typer_app.add_typer(mirror_app, name="mirror")


# --- Deployment commands ---
deployment_app = typer.Typer(help="Deployment tracking commands")


def github_callback(
    ctx: typer.Context,
    repo: Annotated[str | None, Option(envvar="GITHUB_REPOSITORY", help="Repository name (owner/repo).")] = settings.GITHUB_REPOSITORY,
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = settings.GITHUB_API_URL,
    github_token: Annotated[str | None, Option(envvar="GITHUB_TOKEN", help="GitHub token.")] = settings.GITHUB_TOKEN,
) -> None:
    """Validate the GitHub configuration for the current context."""
    with report_step_errors():
        ctx.obj = asyncio.run(validate_github_token_configuration(github_token=github_token, repo=repo, github_api_url=github_api_url))


deployment_app.callback()(github_callback)


async def _adapter_from_context(ctx: typer.Context) -> GitHubKitAdapter:
    config = ctx.obj
    return await GitHubKitAdapter.create(repo=config.repo, github_token=config.github_token, github_api_url=config.github_api_url)


@deployment_app.command(name="create")
def deployment_create_cli(
    ctx: typer.Context,
    environment: Annotated[str, Option(envvar="DEPLOYMENT_ENVIRONMENT", help="Environment being deployed to.")],
    ref: Annotated[str, Option(envvar="GITHUB_SHA", help="Commit, branch or tag being deployed.")],
    description: Annotated[str | None, Option(help="Short description of the deployment.")] = None,
) -> None:
    """Create a deployment and output its ID."""

    async def run() -> int:
        adapter = await _adapter_from_context(ctx)
        return await create_deployment(adapter, ref=ref, environment=environment, description=description)

    with report_step_errors():
        deployment_id = asyncio.run(run())
    typer.echo(str(deployment_id))
    actions.write_github_outputs({"deployment-id": str(deployment_id)})


@deployment_app.command(name="status")
def deployment_status_cli(
    ctx: typer.Context,
    deployment_id: Annotated[int, Argument(envvar="DEPLOYMENT_ID", help="Deployment to update.")],
    state: Annotated[str, Argument(help="success, failure, error, inactive, in_progress, queued or pending.")],
    description: Annotated[str | None, Option(help="Short description of the status.")] = None,
    environment_url: Annotated[str | None, Option(envvar="DEPLOYMENT_URL", help="URL of the deployed environment.")] = None,
    log_url: Annotated[str | None, Option(help="URL of the deployment logs.")] = None,
    auto_inactive: Annotated[bool | None, Option(help="Mark earlier deployments to this environment inactive.")] = None,
) -> None:
    """Record a new status on a deployment."""

    async def run() -> None:
        adapter = await _adapter_from_context(ctx)
        await update_deployment_status(
            adapter,
            deployment_id,
            state,
            description=description,
            environment_url=environment_url,
            log_url=log_url,
            auto_inactive=auto_inactive,
        )

    with report_step_errors():
        asyncio.run(run())
    typer.echo(f"Deployment {deployment_id} is now {state}")


typer_app.add_typer(deployment_app, name="deployment")


# --- Secret commands ---
secrets_app = typer.Typer(help="Secret retrieval commands")


@secrets_app.command(name="get")
def secrets_get_cli(
    secret_id: Annotated[str, Argument(envvar="SECRET_ID", help="Secret name or ARN.")],
    fields: Annotated[list[str], Option("--field", "-f", help="Field of the JSON secret to expose (repeatable).")],
    region: RegionOption = settings.AWS_REGION,
) -> None:
    """Fetch a JSON secret and expose the requested fields as masked step outputs."""
    with report_step_errors():
        values = extract_fields(secret_id, get_secret(secret_id, region=region), fields)
    actions.write_github_outputs(values)
    typer.echo(f"Exposed {len(values)} field(s) from {secret_id}: {', '.join(sorted(values))}")


typer_app.add_typer(secrets_app, name="secrets")


# --- Release commands ---
release_app = typer.Typer(help="Version and release commands")

RepoDirOption = Annotated[Path, Option(envvar="GITHUB_WORKSPACE", help="Local clone of the repository.")]


@release_app.command(name="next-version")
def release_next_version_cli(
    bump: Annotated[BumpType, Option(envvar="RELEASE_BUMP", help="Part of the version to increment.")] = BumpType.PATCH,
    prefix: Annotated[str, Option(help="Prefix of version tags.")] = "v",
    repo_dir: RepoDirOption = Path("."),
) -> None:
    """Compute the next version from the latest version tag."""
    with report_step_errors():
        version = next_version(repo_dir, bump=bump, prefix=prefix)
    typer.echo(version)
    actions.write_github_outputs({"version": version, "tag": f"{prefix}{version}"})


@release_app.command(name="tag")
def release_tag_cli(
    tag: Annotated[str, Argument(help="Tag to create, e.g. v1.2.3.")],
    message: Annotated[str | None, Option(help="Tag message (default: the tag name).")] = None,
    ref: Annotated[str, Option(help="Commit to tag.")] = "HEAD",
    remote: Annotated[str, Option(help="Remote to push the tag to.")] = "origin",
    repo_dir: RepoDirOption = Path("."),
) -> None:
    """Create an annotated tag and push it."""
    with report_step_errors():
        create_and_push_tag(repo_dir, tag, message=message, ref=ref, remote=remote)
    typer.echo(f"Tagged {ref} as {tag}")


@release_app.command(name="create")
def release_create_cli(
    tag: Annotated[str, Argument(help="Tag to release.")],
    name: Annotated[str | None, Option(help="Release title (default: the tag).")] = None,
    generate_notes: Annotated[bool, Option(help="Let GitHub generate release notes.")] = True,
    draft: Annotated[bool, Option(help="Create a draft release.")] = False,
    prerelease: Annotated[bool, Option(help="Mark the release as a prerelease.")] = False,
    repo: Annotated[str | None, Option(envvar="GITHUB_REPOSITORY", help="Repository name (owner/repo).")] = settings.GITHUB_REPOSITORY,
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = settings.GITHUB_API_URL,
    github_token: Annotated[str | None, Option(envvar="GITHUB_TOKEN", help="GitHub token.")] = settings.GITHUB_TOKEN,
) -> None:
    """Create a GitHub release for a tag."""

    async def run() -> str:
        config = await validate_github_token_configuration(github_token=github_token, repo=repo, github_api_url=github_api_url)
        adapter = await GitHubKitAdapter.create(repo=config.repo, github_token=config.github_token, github_api_url=config.github_api_url)
        return await create_release(adapter, tag, name=name, generate_notes=generate_notes, draft=draft, prerelease=prerelease)

    with report_step_errors():
        url = asyncio.run(run())
    typer.echo(url)
    actions.write_github_outputs({"release-url": url})


typer_app.add_typer(release_app, name="release")


# --- npm commands ---
npm_app = typer.Typer(help="npm registry commands")


@npm_app.command(name="configure")
def npm_configure_cli(
    registry_url: Annotated[str, Option(envvar="NPM_REGISTRY_URL", help="Registry URL.")] = "https://registry.npmjs.org/",
    scope: Annotated[str | None, Option(envvar="NPM_SCOPE", help="Package scope to route to the registry.")] = None,
    token_env: Annotated[str, Option(help="Environment variable holding the registry token.")] = "NODE_AUTH_TOKEN",
    npmrc: Annotated[Path, Option(envvar="NPM_CONFIG_USERCONFIG", help="Path of the .npmrc to write.")] = Path(".npmrc"),
) -> None:
    """Point npm at a registry, authenticating through an environment variable."""
    with report_step_errors():
        configure_npm_registry(npmrc, registry_url, scope=scope, token_env=token_env)
    typer.echo(f"Configured {npmrc} for {registry_url}")


@npm_app.command(name="publish")
def npm_publish_cli(
    package_dir: Annotated[Path, Option(help="Directory containing package.json.")] = Path("."),
    tag: Annotated[str | None, Option(help="Dist-tag to publish under.")] = None,
    access: Annotated[str | None, Option(help="public or restricted.")] = None,
    dry_run: Annotated[bool, Option(help="Run npm publish --dry-run.")] = False,
) -> None:
    """Publish the package in a directory."""
    with report_step_errors():
        package_json = package_dir / "package.json"
        if not package_json.exists():
            raise ValueError(f"No package.json found in {package_dir.absolute()}")
        version = json.loads(package_json.read_text(encoding="utf-8")).get("version", "")
        output = npm_publish(package_dir, tag=tag, access=access, dry_run=dry_run)
    typer.echo(output)
    actions.write_github_outputs({"version": version})


typer_app.add_typer(npm_app, name="npm")


if __name__ == "__main__":
    typer_app()

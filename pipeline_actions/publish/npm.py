"""Configure an npm registry and publish a package with the npm CLI."""

from pathlib import Path
from urllib.parse import urlparse

import structlog

from pipeline_actions.utils.process import run_cmd

logger = structlog.get_logger(__name__)


def npmrc_lines(registry_url: str, scope: str | None = None, token_env: str = "NODE_AUTH_TOKEN") -> list[str]:
    """Return the .npmrc lines pointing npm (or one scope) at `registry_url`.

    The token is referenced through `${token_env}` so it is never written to disk.
    """
    parsed = urlparse(registry_url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Registry URL must be absolute, got '{registry_url}'")
    registry_url = registry_url.rstrip("/") + "/"
    auth_prefix = registry_url[len(parsed.scheme) + 1 :]

    lines = []
    if scope:
        scope = scope if scope.startswith("@") else f"@{scope}"
        lines.append(f"{scope}:registry={registry_url}")
    else:
        lines.append(f"registry={registry_url}")
    lines.append(f"{auth_prefix}:_authToken=${{{token_env}}}")
    lines.append("always-auth=true")
    return lines


def configure_npm_registry(npmrc_path: Path, registry_url: str, scope: str | None = None, token_env: str = "NODE_AUTH_TOKEN") -> None:
    """Write (or extend) an .npmrc so npm authenticates against `registry_url`.

    Lines already present are not duplicated.
    """
    existing = npmrc_path.read_text(encoding="utf-8").splitlines() if npmrc_path.exists() else []
    new_lines = [line for line in npmrc_lines(registry_url, scope, token_env) if line not in existing]
    if not new_lines:
        logger.info("npm registry already configured", npmrc=str(npmrc_path), registry=registry_url)
        return
    npmrc_path.parent.mkdir(parents=True, exist_ok=True)
    npmrc_path.write_text("\n".join(existing + new_lines) + "\n", encoding="utf-8")
    logger.info("Configured npm registry", npmrc=str(npmrc_path), registry=registry_url, scope=scope)


def npm_publish(package_dir: Path, tag: str | None = None, access: str | None = None, dry_run: bool = False) -> str:
    """Run `npm publish` in `package_dir` and return npm's output."""
    command = ["npm", "publish"]
    if tag:
        command.extend(["--tag", tag])
    if access:
        command.extend(["--access", access])
    if dry_run:
        command.append("--dry-run")
    logger.info("Publishing npm package", package_dir=str(package_dir), tag=tag, dry_run=dry_run)
    return run_cmd(command, cwd=str(package_dir))

"""Open, wait for, and close a Session Manager port forward through a bastion.

The forward runs as a detached `aws ssm start-session` process so that it
outlives the step that opened it. Its process ID is the only handle later
steps need to close it.
"""

import json
import os
import signal
import socket
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Callable

import structlog

from pipeline_actions.bastion.exceptions import InvalidTunnelTransitionError
from pipeline_actions.bastion.models import TunnelSession, TunnelState
from pipeline_actions.exceptions import CommandNotFoundError
from pipeline_actions.utils.constants import (
    DEFAULT_TUNNEL_POLL_INTERVAL_SECONDS,
    DEFAULT_TUNNEL_READY_TIMEOUT_SECONDS,
    PORT_FORWARD_DOCUMENT,
)

logger = structlog.get_logger(__name__)


def _validate_port(name: str, port: int) -> None:
    if not 1 <= port <= 65535:
        raise ValueError(f"{name} must be between 1 and 65535, got {port}")


def build_port_forward_command(
    instance_id: str,
    remote_host: str,
    remote_port: int,
    local_port: int,
    region: str | None = None,
) -> list[str]:
    """Build the `aws ssm start-session` command for a port forward to a remote host."""
    parameters = {
        "host": [remote_host],
        "portNumber": [str(remote_port)],
        "localPortNumber": [str(local_port)],
    }
    command = [
        "aws",
        "ssm",
        "start-session",
        "--target",
        instance_id,
        "--document-name",
        PORT_FORWARD_DOCUMENT,
        "--parameters",
        json.dumps(parameters, separators=(",", ":")),
    ]
    if region:
        command.extend(["--region", region])
    return command


def open_tunnel(
    instance_id: str,
    remote_host: str,
    remote_port: int,
    local_port: int,
    region: str | None = None,
    log_path: Path | None = None,
) -> TunnelSession:
    """Start the port forward in the background and return immediately.

    The session starts in `starting`; use `await_ready` to learn whether the
    local port accepts connections. Output of the session process goes to
    `log_path` (a file in the temp directory by default).
    """
    _validate_port("remote_port", remote_port)
    _validate_port("local_port", local_port)
    command = build_port_forward_command(instance_id, remote_host, remote_port, local_port, region=region)
    if log_path is None:
        log_path = Path(tempfile.gettempdir()) / f"ssm-port-forward-{local_port}.log"

    with open(log_path, "ab") as log_file:
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
        except FileNotFoundError as exc:
            raise CommandNotFoundError(command[0]) from exc

    logger.info(
        "Started port forward",
        instance_id=instance_id,
        remote_host=remote_host,
        remote_port=remote_port,
        local_port=local_port,
        pid=process.pid,
        log_path=str(log_path),
    )
    return TunnelSession(
        instance_id=instance_id,
        remote_host=remote_host,
        remote_port=remote_port,
        local_port=local_port,
        process_id=process.pid,
    )


def port_accepts_connections(port: int, host: str = "127.0.0.1", timeout: float = 1.0) -> bool:
    """Return True when a TCP connection to host:port succeeds."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def await_ready(
    session: TunnelSession,
    timeout_seconds: float = DEFAULT_TUNNEL_READY_TIMEOUT_SECONDS,
    poll_interval: float = DEFAULT_TUNNEL_POLL_INTERVAL_SECONDS,
    host: str = "127.0.0.1",
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> TunnelSession:
    """Poll the local end of the tunnel until it accepts a connection or time runs out.

    On success the session becomes `established`. On timeout it becomes
    `failed`, but the session process is left running: the forward may still
    come up, and closing it is the caller's decision.

    A session that is already `established` or `failed` is returned as is, so
    re-running a step with its own output does not poll again. A `stopped`
    session raises InvalidTunnelTransitionError.
    """
    if session.state in (TunnelState.ESTABLISHED, TunnelState.FAILED):
        logger.info("Tunnel readiness already decided", local_port=session.local_port, state=session.state.value)
        return session
    if session.state == TunnelState.STOPPED:
        raise InvalidTunnelTransitionError(f"Tunnel session (pid {session.process_id}) is stopped and cannot become ready")

    deadline = clock() + timeout_seconds
    attempts = 0
    while True:
        attempts += 1
        remaining = deadline - clock()
        if port_accepts_connections(session.local_port, host=host, timeout=max(min(poll_interval, remaining), 0.05)):
            logger.info("Tunnel is ready", local_port=session.local_port, pid=session.process_id, attempts=attempts)
            return session.transition(TunnelState.ESTABLISHED)
        if clock() >= deadline:
            break
        logger.debug("Tunnel not ready yet", local_port=session.local_port, attempt=attempts)
        sleep(min(poll_interval, max(deadline - clock(), 0)))

    logger.warning(
        "Tunnel did not become ready before the timeout",
        local_port=session.local_port,
        pid=session.process_id,
        timeout_seconds=timeout_seconds,
        attempts=attempts,
    )
    return session.transition(TunnelState.FAILED)


def close_tunnel(process_id: int) -> bool:
    """Send SIGTERM to the session process.

    A process that no longer exists counts as already stopped, so calling this
    twice is safe. Any other failure is logged and reported as False; it never
    raises, because the runner is torn down after the job anyway.
    """
    try:
        os.kill(process_id, signal.SIGTERM)
    except ProcessLookupError:
        logger.info("Tunnel process already stopped", pid=process_id)
        return True
    except OSError as exc:
        logger.warning("Failed to stop tunnel process", pid=process_id, error=str(exc))
        return False
    logger.info("Sent SIGTERM to tunnel process", pid=process_id)
    return True


def close_session(session: TunnelSession) -> TunnelSession:
    """Close the session's process and mark the session stopped.

    Closing an already stopped session is a no-op.
    """
    if session.state == TunnelState.STOPPED:
        return session
    if not close_tunnel(session.process_id):
        logger.warning("Tunnel process may still be running", pid=session.process_id)
    return session.transition(TunnelState.STOPPED)

"""Data models for the bastion tunnel lifecycle.

Each pipeline step runs in a fresh process, so these models are the only
state that travels between the step that opens a tunnel and the step that
closes it. They serialize to JSON for step outputs.
"""

from enum import Enum

from pydantic import BaseModel, Field

from pipeline_actions.bastion.exceptions import InvalidTunnelTransitionError


class TunnelState(str, Enum):
    """Lifecycle states of a port-forwarding session."""

    STARTING = "starting"
    ESTABLISHED = "established"
    FAILED = "failed"
    STOPPED = "stopped"


ALLOWED_TRANSITIONS: dict[TunnelState, frozenset[TunnelState]] = {
    TunnelState.STARTING: frozenset({TunnelState.ESTABLISHED, TunnelState.FAILED, TunnelState.STOPPED}),
    TunnelState.ESTABLISHED: frozenset({TunnelState.STOPPED}),
    TunnelState.FAILED: frozenset({TunnelState.STOPPED}),
    TunnelState.STOPPED: frozenset(),
}


class BastionTarget(BaseModel):
    """A bastion instance resolved from an environment name."""

    environment_name: str = Field(min_length=1)
    instance_id: str = Field(min_length=1)


class TunnelSession(BaseModel):
    """One port forward from a local port to a remote host through a bastion."""

    instance_id: str
    remote_host: str
    remote_port: int = Field(ge=1, le=65535)
    local_port: int = Field(ge=1, le=65535)
    process_id: int
    state: TunnelState = TunnelState.STARTING

    def transition(self, new_state: TunnelState) -> "TunnelSession":
        """Move the session to `new_state`, rejecting transitions the lifecycle does not allow."""
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTunnelTransitionError(f"Tunnel session (pid {self.process_id}) cannot move from {self.state.value} to {new_state.value}")
        self.state = new_state
        return self

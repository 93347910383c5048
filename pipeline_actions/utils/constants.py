"""Shared constants used across the application."""

import re

# Bastion Tunnel Constants
# ------------------------

DEFAULT_BASTION_TAG_SUFFIX = "-github-bastion"
"""Suffix appended to the environment name to build the bastion's Name tag."""

PORT_FORWARD_DOCUMENT = "AWS-StartPortForwardingSessionToRemoteHost"
"""Session Manager document used to forward a local port to a remote host."""

DEFAULT_TUNNEL_POLL_INTERVAL_SECONDS = 1.0
"""Delay between two local connection attempts while waiting for a tunnel."""

DEFAULT_TUNNEL_READY_TIMEOUT_SECONDS = 30.0
"""Total time to wait for a tunnel before reporting it as failed."""

# Mirror Constants
# ----------------

DEFAULT_BOT_AUTHOR_PATTERN = r"(?i)(\[bot\]|^copilot$|(^|\+)copilot@users\.noreply\.github\.com$)"
"""Matches the name or email of automated co-authoring bots (e.g. `Copilot`, `dependabot[bot]`)."""

MIRRORED_FROM_TRAILER = "Mirrored-from"
"""Commit trailer recording the source commit a rewritten mirror commit stands for."""

MIRRORED_FROM_PATTERN = re.compile(rf"^{MIRRORED_FROM_TRAILER}:\s*([0-9a-f]{{40}})\s*$", re.MULTILINE)
"""Pattern to extract the source commit SHA from a rewritten mirror commit message."""

MIRROR_FETCH_REF = "refs/pipeline-actions/mirror-tip"
"""Local ref the mirror's current tip is fetched into."""

# Release Constants
# -----------------

DEFAULT_TAG_PREFIX = "v"
"""Prefix for version tags (e.g. v1.2.3)."""

SEMVER_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")
"""Pattern for a plain major.minor.patch version."""

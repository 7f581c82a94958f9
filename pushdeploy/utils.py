"""
CLI Utilities

Small helpers shared by the models, services and commands.
"""

import re
from typing import List, Optional

from pushdeploy.constants import (
    LOGICAL_NAME_SUFFIX,
    TOKEN_MASK_HEAD,
    TOKEN_MASK_TAIL,
)

REPO_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def mask_secret(
    value: Optional[str], head: int = TOKEN_MASK_HEAD, tail: int = TOKEN_MASK_TAIL
) -> str:
    """
    Mask secret value for safe display.

    Args:
        value: Secret value to mask
        head: Number of leading characters to keep
        tail: Number of trailing characters to keep

    Returns:
        Masked string (e.g., "ghp_ab...wxyz"), or "***" when the value is
        too short to reveal anything
    """
    if not value:
        return "***"

    if len(value) <= head + tail:
        return "***"

    return f"{value[:head]}...{value[-tail:]}"


def repo_name_from_url(repo_url: str) -> str:
    """
    Derive the repository base name from its URL.

    Examples:
        https://example.com/acme/app.git  -> app
        git@example.com:acme/app          -> app
    """
    stripped = repo_url.strip().rstrip("/")
    name = re.split(r"[/:]", stripped)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def logical_name_for(repo_name: str) -> str:
    """Container/image/compose-project safe name for a repository."""
    sanitized = re.sub(r"[^a-z0-9_-]", "_", repo_name.lower())
    return f"{sanitized}{LOGICAL_NAME_SUFFIX}"


def ssh_failure_hint(error_text: str) -> str:
    """Translate common ssh stderr messages into an actionable hint."""
    lowered = (error_text or "").lower()
    if "no route to host" in lowered:
        return "No route to host. Check VPN/LAN reachability and the host address."
    if "timed out" in lowered:
        return "SSH timed out. Verify the server is online and port 22 is reachable."
    if "connection refused" in lowered:
        return "SSH connection refused. Confirm the SSH daemon is running."
    if "permission denied" in lowered:
        return "SSH authentication failed. Verify the private key is authorized for this user."
    if "could not resolve hostname" in lowered:
        return "Host resolution failed. Check the host name for typos/DNS issues."
    return ""


def tail_text(text: str, lines: int = 20) -> str:
    """Return the last *lines* lines of *text*."""
    return "\n".join((text or "").strip().splitlines()[-lines:])


def sh(script: str, *args: str) -> List[str]:
    """Wrap a constant shell *script*; *args* arrive as $1, $2, ..."""
    return ["sh", "-c", script, "sh", *args]

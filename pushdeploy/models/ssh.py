"""
SSH Configuration Models

Dataclass models describing one authenticated connection to the remote host.
"""

import shlex
from dataclasses import dataclass
from pathlib import Path

from pushdeploy.constants import SSH_CONNECTION_TIMEOUT


@dataclass(frozen=True)
class SSHConfig:
    """SSH credentials: private key and login user."""

    key_path: str
    user: str

    @property
    def key_path_expanded(self) -> Path:
        """Get expanded key path (resolves ~)."""
        return Path(self.key_path).expanduser()

    @property
    def key_exists(self) -> bool:
        """Check if private key file exists."""
        return self.key_path_expanded.is_file()

    def __repr__(self) -> str:
        return f"SSHConfig(user={self.user}, key={self.key_path})"


@dataclass(frozen=True)
class SSHConnection:
    """
    SSH connection details for the deployment host.

    Recreated per invocation, never persisted. Authentication must already be
    possible with the key alone: BatchMode makes ssh fail instead of asking
    for a password.
    """

    host: str
    config: SSHConfig
    port: int = 22
    connect_timeout: int = SSH_CONNECTION_TIMEOUT

    @property
    def connection_string(self) -> str:
        """Get SSH connection string (user@host)."""
        return f"{self.config.user}@{self.host}"

    @property
    def ssh_options(self) -> list[str]:
        """Options shared by ssh, scp and rsync's remote shell."""
        return [
            "-i",
            str(self.config.key_path_expanded),
            "-o",
            "BatchMode=yes",
            "-o",
            f"ConnectTimeout={self.connect_timeout}",
            "-o",
            "StrictHostKeyChecking=accept-new",
        ]

    @property
    def ssh_command_prefix(self) -> list[str]:
        """Get SSH command prefix for subprocess."""
        return ["ssh", "-p", str(self.port), *self.ssh_options, self.connection_string]

    @property
    def scp_command_prefix(self) -> list[str]:
        """Get scp command prefix (source and destination appended by caller)."""
        return ["scp", "-P", str(self.port), *self.ssh_options]

    @property
    def rsync_remote_shell(self) -> str:
        """Value for rsync's -e option."""
        return shlex.join(["ssh", "-p", str(self.port), *self.ssh_options])

    def remote_address(self, remote_path: str) -> str:
        """Address a remote path for scp/rsync (user@host:path)."""
        return f"{self.connection_string}:{remote_path}"

    def build_command(self, remote_command: str) -> list[str]:
        """Build full SSH command with remote command."""
        return self.ssh_command_prefix + [remote_command]

    def __repr__(self) -> str:
        return f"SSHConnection(host={self.host}, user={self.config.user})"

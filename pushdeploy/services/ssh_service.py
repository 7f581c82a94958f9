"""SSH service for executing commands on the deployment host."""

import shlex
import subprocess
import time
from typing import Optional, Sequence

from pushdeploy.constants import SSH_CONNECTIVITY_MARKER, SSH_FAILURE_EXIT_CODE
from pushdeploy.exceptions import ConnectivityError, RemoteCommandError
from pushdeploy.logger import DeployLogger
from pushdeploy.models.results import SSHResult
from pushdeploy.models.ssh import SSHConnection
from pushdeploy.utils import ssh_failure_hint


class SSHService:
    """
    Service for SSH operations.

    Commands are argument vectors. They are quoted with shlex.join before
    reaching the remote shell, so values such as names and paths are never
    re-parsed. Shell features (pipes, redirects) go through
    ``["sh", "-c", SCRIPT, "sh", *args]`` with a constant SCRIPT.
    """

    def __init__(self, connection: SSHConnection, logger: DeployLogger):
        """
        Initialize SSH service.

        Args:
            connection: SSH connection to the deployment host
            logger: Deployment logger
        """
        self.connection = connection
        self.logger = logger

    @property
    def host(self) -> str:
        return self.connection.host

    def run(
        self,
        command: Sequence[str],
        *,
        input_text: Optional[str] = None,
        timeout: Optional[int] = None,
        check: bool = False,
    ) -> SSHResult:
        """
        Execute command on the remote host via SSH.

        Args:
            command: Command argument vector
            input_text: Data fed to the remote command's stdin
            timeout: Overall timeout in seconds (connect timeout always applies)
            check: Raise RemoteCommandError on non-zero exit

        Returns:
            SSHResult with execution details

        Raises:
            ConnectivityError: ssh could not reach or authenticate to the host
            RemoteCommandError: check=True and the command exited non-zero
        """
        remote_command = shlex.join(command)
        ssh_cmd = self.connection.build_command(remote_command)
        self.logger.log_command(remote_command)

        start_time = time.time()
        try:
            result = subprocess.run(
                ssh_cmd,
                input=input_text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise ConnectivityError(
                f"SSH command timed out after {timeout}s",
                context=f"Host: {self.host}, Command: {remote_command}",
            )
        except OSError as e:
            raise ConnectivityError(
                f"Could not start ssh: {e}",
                context="Is the OpenSSH client installed?",
            )

        ssh_result = SSHResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            host=self.host,
            command=remote_command,
            duration_seconds=time.time() - start_time,
        )

        if ssh_result.returncode == SSH_FAILURE_EXIT_CODE:
            detail = ssh_result.stderr.strip()
            hint = ssh_failure_hint(detail)
            raise ConnectivityError(
                f"Unable to reach {self.connection.connection_string} over SSH",
                context=f"{detail} {hint}".strip() or None,
            )

        if ssh_result.is_failure:
            self.logger.debug(
                f"Exit code {ssh_result.returncode} from: {remote_command}"
            )
            if ssh_result.stderr.strip():
                self.logger.log_output(ssh_result.stderr, "stderr")

        if check and ssh_result.is_failure:
            raise RemoteCommandError(ssh_result)

        return ssh_result

    def run_quiet(self, command: Sequence[str]) -> bool:
        """Run *command* and report only whether it exited 0."""
        return self.run(command).is_success

    def check_connectivity(self) -> None:
        """
        Verify the host accepts key-based, non-interactive SSH.

        Raises:
            ConnectivityError: If the host is unreachable or refuses the key
        """
        result = self.run(["echo", SSH_CONNECTIVITY_MARKER])
        if SSH_CONNECTIVITY_MARKER not in result.stdout:
            raise ConnectivityError(
                f"Unexpected SSH response from {self.connection.connection_string}",
                context=result.output or None,
            )

"""Sync service: mirror the local working copy to the remote host."""

import posixpath
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import List

from pushdeploy.exceptions import SyncError
from pushdeploy.logger import DeployLogger
from pushdeploy.models.results import ExecutionResult
from pushdeploy.services.ssh_service import SSHService
from pushdeploy.utils import tail_text


class SyncService:
    """
    Mirrors a local directory into a remote directory.

    rsync (delta transfer, --delete) is used when available locally.
    Otherwise the remote directory is recreated and filled with scp -r. Both
    leave the remote tree identical to the local one.
    """

    def __init__(self, ssh: SSHService, logger: DeployLogger):
        self.ssh = ssh
        self.logger = logger

    @property
    def has_rsync(self) -> bool:
        return shutil.which("rsync") is not None

    def sync(self, local_path: Path, remote_path: str) -> None:
        """
        Make *remote_path* an exact copy of *local_path*.

        Args:
            local_path: Local working copy
            remote_path: Remote directory (relative paths resolve against home)

        Raises:
            SyncError: If the remote directory cannot be prepared or the transfer fails
        """
        local_path = Path(local_path)
        if not local_path.is_dir():
            raise SyncError(f"Local path {local_path} is not a directory")

        self._remote(["mkdir", "-p", remote_path], f"Could not create {remote_path}")

        if self.has_rsync:
            self.logger.log(f"Mirroring {local_path} -> {remote_path} (rsync)")
            result = self._local(self.rsync_command(local_path, remote_path))
        else:
            self.logger.warning("rsync not found locally, using scp (slower)")
            self._remote(["rm", "-rf", remote_path], f"Could not clear {remote_path}")
            parent = posixpath.dirname(remote_path.rstrip("/"))
            if parent:
                self._remote(["mkdir", "-p", parent], f"Could not create {parent}")
            result = self._local(self.scp_command(local_path, remote_path))

        if result.is_failure:
            raise SyncError(
                f"File transfer to {self.ssh.host} failed (exit code {result.returncode})",
                context=tail_text(result.output) or None,
            )
        self.logger.success(f"Files synced to {remote_path}")

    def rsync_command(self, local_path: Path, remote_path: str) -> List[str]:
        # Trailing slashes: copy directory contents, not the directory itself
        connection = self.ssh.connection
        return [
            "rsync",
            "-az",
            "--delete",
            "-e",
            connection.rsync_remote_shell,
            f"{str(local_path).rstrip('/')}/",
            connection.remote_address(f"{remote_path.rstrip('/')}/"),
        ]

    def scp_command(self, local_path: Path, remote_path: str) -> List[str]:
        # Destination does not exist yet, so scp creates it as a copy of local_path
        connection = self.ssh.connection
        return [
            *connection.scp_command_prefix,
            "-r",
            str(local_path).rstrip("/"),
            connection.remote_address(remote_path.rstrip("/")),
        ]

    def _remote(self, command: List[str], message: str) -> None:
        result = self.ssh.run(command)
        if result.is_failure:
            raise SyncError(message, context=tail_text(result.output) or None)

    def _local(self, cmd: List[str]) -> ExecutionResult:
        command_text = shlex.join(cmd)
        self.logger.log_command(command_text)
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, encoding="utf-8", errors="replace"
            )
        except OSError as e:
            raise SyncError(f"Could not run {cmd[0]}: {e}")
        execution = ExecutionResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            command=command_text,
        )
        if execution.output:
            self.logger.log_output(execution.output, cmd[0])
        return execution

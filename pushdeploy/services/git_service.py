"""Git service: stage a local working copy of the source repository."""

import os
import shlex
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from pushdeploy.constants import ASKPASS_USERNAME
from pushdeploy.exceptions import CloneError
from pushdeploy.logger import DeployLogger
from pushdeploy.models.deployment import GitCredentials
from pushdeploy.models.results import ExecutionResult
from pushdeploy.utils import repo_name_from_url, tail_text

ASKPASS_SCRIPT = """#!/bin/sh
case "$1" in
  Username*) printf '%s\\n' {username} ;;
  *) printf '%s\\n' {token} ;;
esac
"""


@contextmanager
def transient_askpass(token: str) -> Iterator[str]:
    """
    Create a single-use GIT_ASKPASS helper answering with *token*.

    The helper is an owner-only executable in the temp directory. It is
    removed when the block exits, whether it succeeds, raises or is
    interrupted.

    Yields:
        Path of the helper script
    """
    fd, path = tempfile.mkstemp(prefix="pushdeploy-askpass-", suffix=".sh")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(
                ASKPASS_SCRIPT.format(
                    username=shlex.quote(ASKPASS_USERNAME),
                    token=shlex.quote(token),
                )
            )
        os.chmod(path, 0o700)
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


class GitService:
    """Clones or updates the local working copy at a requested branch."""

    def __init__(self, logger: DeployLogger, work_dir: Optional[Path] = None):
        """
        Initialize git service.

        Args:
            logger: Deployment logger
            work_dir: Directory holding working copies (default: cwd)
        """
        self.logger = logger
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()

    def local_path_for(self, repo_url: str) -> Path:
        """Working copy location for *repo_url* (stable across runs)."""
        return self.work_dir / repo_name_from_url(repo_url)

    def stage(self, repo_url: str, branch: str, credentials: GitCredentials) -> Path:
        """
        Ensure a working copy of *repo_url* checked out at *branch*.

        Args:
            repo_url: HTTPS repository URL
            branch: Branch to check out
            credentials: Access token for private repositories

        Returns:
            Path to the working copy

        Raises:
            CloneError: If neither update nor clone succeeds
        """
        self.logger.register_secret(credentials.token)
        self.logger.log(f"Access token (masked): {credentials.masked}")

        local_path = self.local_path_for(repo_url)

        if (local_path / ".git").is_dir():
            self.logger.log(f"Working copy exists at {local_path}, fetching '{branch}'")
            self._update(local_path, repo_url, branch, credentials)
        elif local_path.exists() and any(local_path.iterdir()):
            raise CloneError(
                f"{local_path} exists but is not a git working copy",
                context="Move it away or delete it, then re-run",
            )
        else:
            self.logger.log(f"Cloning '{branch}' into {local_path}")
            self._clone(local_path, repo_url, branch, credentials)

        head = self._git(["rev-parse", "--short", "HEAD"], cwd=local_path)
        if head.is_success:
            self.logger.log(f"Working copy at {branch}@{head.stdout.strip()}")
        return local_path

    def _update(
        self, local_path: Path, repo_url: str, branch: str, credentials: GitCredentials
    ) -> None:
        self._require(
            self._git(["remote", "set-url", "origin", repo_url], cwd=local_path),
            "git remote set-url failed",
        )

        with transient_askpass(credentials.token) as askpass:
            fetch = self._git(
                ["fetch", "--depth=1", "origin", branch],
                cwd=local_path,
                env=self._auth_env(askpass),
            )
        self._require(fetch, f"git fetch of branch '{branch}' failed")

        self._require(
            self._git(
                ["checkout", "--force", "-B", branch, "FETCH_HEAD"], cwd=local_path
            ),
            f"git checkout of branch '{branch}' failed",
        )

    def _clone(
        self, local_path: Path, repo_url: str, branch: str, credentials: GitCredentials
    ) -> None:
        local_path.parent.mkdir(parents=True, exist_ok=True)
        with transient_askpass(credentials.token) as askpass:
            clone = self._git(
                [
                    "clone",
                    "--depth=1",
                    "--branch",
                    branch,
                    repo_url,
                    str(local_path),
                ],
                env=self._auth_env(askpass),
            )
        self._require(clone, f"git clone of branch '{branch}' failed")

    @staticmethod
    def _auth_env(askpass_path: str) -> Dict[str, str]:
        """Environment pointing git at the askpass helper (path only)."""
        env = os.environ.copy()
        env["GIT_ASKPASS"] = askpass_path
        env["GIT_TERMINAL_PROMPT"] = "0"
        return env

    def _git(
        self,
        args: List[str],
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ExecutionResult:
        # Empty credential.helper keeps the token out of any credential store
        cmd = ["git", "-c", "credential.helper=", *args]
        command_text = shlex.join(cmd)
        self.logger.log_command(command_text)

        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                env=env,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise CloneError(f"Could not run git: {e}", context="Is git installed?")

        execution = ExecutionResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            command=command_text,
        )
        if execution.output:
            self.logger.log_output(execution.output, "git")
        return execution

    @staticmethod
    def _require(result: ExecutionResult, message: str) -> None:
        if result.is_failure:
            raise CloneError(message, context=tail_text(result.output) or None)

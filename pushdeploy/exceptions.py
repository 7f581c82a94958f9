"""
pushdeploy Exception Hierarchy

One exception per failing stage. Each carries the process exit code the CLI
terminates with, so callers never map errors to codes by hand.
"""

from typing import Optional

from pushdeploy.constants import (
    EXIT_CLEANUP_FAILED,
    EXIT_CLONE_FAILED,
    EXIT_DEPLOY_FAILED,
    EXIT_INVALID_INPUT,
    EXIT_PROVISION_FAILED,
    EXIT_PROXY_FAILED,
    EXIT_SSH_FAILED,
    EXIT_VALIDATION_FAILED,
)


class PushDeployError(Exception):
    """Base exception for all pushdeploy errors."""

    exit_code = 1

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class InvalidInputError(PushDeployError):
    """Raised when a required input is missing or malformed."""

    exit_code = EXIT_INVALID_INPUT


class CloneError(PushDeployError):
    """Raised when the local working copy cannot be cloned or updated."""

    exit_code = EXIT_CLONE_FAILED


class ConnectivityError(PushDeployError):
    """Raised when the remote host cannot be reached over SSH."""

    exit_code = EXIT_SSH_FAILED


class RemoteCommandError(PushDeployError):
    """Raised when a command reached the host but exited non-zero."""

    exit_code = EXIT_DEPLOY_FAILED

    def __init__(self, result, message: Optional[str] = None):
        self.result = result
        super().__init__(
            message or f"Remote command failed (exit code {result.returncode})",
            context=f"Command: {result.command}\n{result.output}".strip(),
        )


class ProvisionError(PushDeployError):
    """Raised when a remote service cannot be installed or enabled."""

    exit_code = EXIT_PROVISION_FAILED

    def __init__(self, requirement: str, step: str, detail: Optional[str] = None):
        self.requirement = requirement
        self.step = step
        super().__init__(f"Provisioning '{requirement}' failed at {step} step", detail)


class SyncError(PushDeployError):
    """Raised when project files cannot be mirrored to the remote host."""

    exit_code = EXIT_DEPLOY_FAILED


class DeployError(PushDeployError):
    """Raised when containers cannot be built or started."""

    exit_code = EXIT_DEPLOY_FAILED


class ProxyError(PushDeployError):
    """Raised when the reverse-proxy route cannot be installed."""

    exit_code = EXIT_PROXY_FAILED


class ValidationError(PushDeployError):
    """Raised when a hard validation gate fails."""

    exit_code = EXIT_VALIDATION_FAILED


class CleanupError(PushDeployError):
    """Raised when teardown cannot remove deployed resources."""

    exit_code = EXIT_CLEANUP_FAILED

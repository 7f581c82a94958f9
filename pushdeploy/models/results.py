"""
Result Models

Dataclass models for command outputs and per-stage results.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pushdeploy.constants import HTTP_UNREACHABLE


@dataclass
class ExecutionResult:
    """Result of a local command execution (git, rsync, scp)."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    command: str = ""

    @property
    def is_success(self) -> bool:
        """Check if execution succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if execution failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"ExecutionResult(returncode={self.returncode}, command='{self.command[:50]}...')"


@dataclass
class SSHResult:
    """Result of an SSH command execution."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    host: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if SSH command succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if SSH command failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"SSHResult(host={self.host}, returncode={self.returncode}, duration={self.duration_seconds:.2f}s)"


@dataclass
class ContainerInfo:
    """One row of `docker ps` output."""

    id: str
    name: str
    status: str = ""
    ports: str = ""
    project: str = ""

    def bears(self, logical_name: str) -> bool:
        """Check if this container belongs to the deployment *logical_name*."""
        return self.name == logical_name or self.project == logical_name

    @property
    def summary(self) -> str:
        """Single-line description for logs."""
        return f"{self.name} {self.ports}".strip()


@dataclass
class LaunchResult:
    """Containers left running by the launcher, with settled health."""

    containers: List[ContainerInfo]
    health: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def unhealthy(self) -> List[str]:
        """Names of containers whose health probe did not settle on healthy."""
        return [
            name
            for name, status in self.health.items()
            if status is not None and status != "healthy"
        ]


@dataclass
class ValidationReport:
    """Outcome of post-deploy validation. Never persisted."""

    runtime_up: bool
    container_info: str = ""
    internal_http_status: Optional[str] = None
    external_http_status: Optional[str] = None

    @staticmethod
    def _reachable(status: Optional[str]) -> bool:
        return bool(status) and status != HTTP_UNREACHABLE

    @property
    def internal_reachable(self) -> bool:
        """Check if the loopback probe on the remote host got an answer."""
        return self._reachable(self.internal_http_status)

    @property
    def external_reachable(self) -> bool:
        """Check if the public probe through the proxy got an answer."""
        return self._reachable(self.external_http_status)

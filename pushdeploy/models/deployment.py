"""
Deployment Models

Dataclass models describing what is deployed and where it lands.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pushdeploy.constants import (
    DEFAULT_BRANCH,
    PUBLIC_HTTP_PORT,
    REMOTE_BASE_DIR,
    SSH_CONNECTION_TIMEOUT,
)
from pushdeploy.models.ssh import SSHConfig, SSHConnection
from pushdeploy.utils import logical_name_for, mask_secret, repo_name_from_url


class ManifestMode(Enum):
    """How the application is started on the remote host."""

    SINGLE_CONTAINER = "dockerfile"
    COMPOSE = "compose"


@dataclass(frozen=True)
class GitCredentials:
    """Access token for the source repository."""

    token: str = field(repr=False)

    @property
    def masked(self) -> str:
        """Token form that is safe to log."""
        return mask_secret(self.token)


@dataclass(frozen=True)
class ContainerIdentity:
    """Key for idempotent container replacement."""

    logical_name: str
    internal_port: Optional[int] = None

    @property
    def image_tag(self) -> str:
        """Tag of the image built in single-container mode."""
        return f"{self.logical_name}:latest"


@dataclass(frozen=True)
class ProxyRoute:
    """One reverse-proxy route; at most one exists per name."""

    name: str
    internal_port: Optional[int] = None
    public_port: int = PUBLIC_HTTP_PORT

    @property
    def upstream(self) -> str:
        """Address the proxy forwards to."""
        return f"127.0.0.1:{self.internal_port}"


@dataclass(frozen=True)
class AppManifest:
    """Manifest discovered in the working copy."""

    mode: ManifestMode
    build_context: str = "."
    compose_file: Optional[str] = None
    services: List[str] = field(default_factory=list)

    @property
    def is_compose(self) -> bool:
        """Check if the app is started with docker compose."""
        return self.mode == ManifestMode.COMPOSE


@dataclass(frozen=True)
class ServiceRequirement:
    """
    A remote service the provisioner ensures.

    Attributes:
        name: Human-readable requirement name
        check: Command exiting 0 when the requirement is already installed
        install: Commands run in order when the check fails
        enable: Optional command enabling/starting the service (always run)
        packages: Packages installed through the host package manager
    """

    name: str
    check: List[str]
    install: List[List[str]] = field(default_factory=list)
    enable: Optional[List[str]] = None
    packages: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DeploymentTarget:
    """
    Where the source comes from and where it is deployed.

    All names the remote side is keyed on derive from the repository URL, so
    re-running against the same repository reuses the same working copy,
    container, route and directory.
    """

    repo_url: str
    remote_user: str
    remote_host: str
    ssh_key_path: str
    branch: str = DEFAULT_BRANCH
    app_port: Optional[int] = None
    connect_timeout: int = SSH_CONNECTION_TIMEOUT
    work_dir: Path = field(default_factory=Path.cwd)

    @property
    def repo_name(self) -> str:
        """Repository base name (without .git)."""
        return repo_name_from_url(self.repo_url)

    @property
    def local_path(self) -> Path:
        """Local working copy location."""
        return self.work_dir / self.repo_name

    @property
    def logical_name(self) -> str:
        """Name of the container, image and compose project."""
        return logical_name_for(self.repo_name)

    @property
    def remote_app_dir(self) -> str:
        """Remote application directory, relative to the user's home."""
        return f"{REMOTE_BASE_DIR}/{self.repo_name}"

    @property
    def identity(self) -> ContainerIdentity:
        return ContainerIdentity(self.logical_name, self.app_port)

    @property
    def route(self) -> ProxyRoute:
        return ProxyRoute(self.repo_name, self.app_port)

    @property
    def connection(self) -> SSHConnection:
        """SSH connection for this target."""
        return SSHConnection(
            host=self.remote_host,
            config=SSHConfig(key_path=self.ssh_key_path, user=self.remote_user),
            connect_timeout=self.connect_timeout,
        )

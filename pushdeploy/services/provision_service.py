"""
Provisioning service.

Ensures the remote host runs Docker, the Compose plugin and Nginx. Package
manager differences live in small installer backends, resolved only when a
requirement with packages actually has to be installed.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Type

from pushdeploy.constants import (
    COMPOSE_PLUGIN_DIR,
    COMPOSE_PLUGIN_URL,
    DOCKER_INSTALL_SCRIPT_URL,
    NGINX_PACKAGE,
)
from pushdeploy.exceptions import ProvisionError
from pushdeploy.logger import DeployLogger
from pushdeploy.models.deployment import ServiceRequirement
from pushdeploy.services.ssh_service import SSHService
from pushdeploy.utils import sh, tail_text

DETECT_PACKAGE_MANAGER_SCRIPT = (
    'for pm in "$@"; do '
    'if command -v "$pm" >/dev/null 2>&1; then echo "$pm"; exit 0; fi; '
    "done; exit 1"
)
COMMAND_EXISTS_SCRIPT = 'command -v "$1" >/dev/null 2>&1'
DOCKER_INSTALL_SCRIPT = (
    'tmp=$(mktemp) && curl -fsSL "$1" -o "$tmp" && sudo sh "$tmp"; '
    'rc=$?; rm -f "$tmp"; exit $rc'
)
COMPOSE_PLUGIN_INSTALL_SCRIPT = (
    'sudo mkdir -p "$2" && '
    'sudo curl -fsSL "$1/docker-compose-$(uname -s)-$(uname -m)" -o "$2/docker-compose" && '
    'sudo chmod +x "$2/docker-compose"'
)
IN_DOCKER_GROUP_SCRIPT = 'id -nG "$(id -un)" | grep -qw docker'
ADD_TO_DOCKER_GROUP_SCRIPT = 'sudo usermod -aG docker "$(id -un)"'
ENABLE_SERVICE_SCRIPT = (
    "if command -v systemctl >/dev/null 2>&1; then "
    'sudo systemctl enable --now "$1"; fi'
)


class InstallerBackend(ABC):
    """Package-manager specific install recipes."""

    name: str = ""

    @abstractmethod
    def refresh_command(self) -> List[str]:
        """Command refreshing the package index."""

    @abstractmethod
    def install_commands(self, package: str) -> List[List[str]]:
        """Commands installing *package* non-interactively."""


class AptBackend(InstallerBackend):
    name = "apt-get"

    def refresh_command(self) -> List[str]:
        return ["sudo", "apt-get", "update", "-y"]

    def install_commands(self, package: str) -> List[List[str]]:
        return [
            ["sudo", "DEBIAN_FRONTEND=noninteractive", "apt-get", "install", "-y", package]
        ]


class YumBackend(InstallerBackend):
    name = "yum"

    # Packages that live in EPEL on RHEL-family hosts
    EPEL_PACKAGES = {NGINX_PACKAGE}

    def refresh_command(self) -> List[str]:
        return ["sudo", self.name, "makecache", "-y"]

    def install_commands(self, package: str) -> List[List[str]]:
        commands = []
        if package in self.EPEL_PACKAGES:
            commands.append(["sudo", self.name, "install", "-y", "epel-release"])
        commands.append(["sudo", self.name, "install", "-y", package])
        return commands


class DnfBackend(YumBackend):
    name = "dnf"


BACKENDS: Dict[str, Type[InstallerBackend]] = {
    AptBackend.name: AptBackend,
    DnfBackend.name: DnfBackend,
    YumBackend.name: YumBackend,
}


def detect_backend(ssh: SSHService) -> InstallerBackend:
    """
    Pick the installer backend for the remote host (apt-get, dnf, yum).

    Raises:
        ProvisionError: If no supported package manager is found
    """
    result = ssh.run(sh(DETECT_PACKAGE_MANAGER_SCRIPT, *BACKENDS))
    name = result.stdout.strip()
    if result.is_failure or name not in BACKENDS:
        raise ProvisionError(
            "package manager",
            "check",
            f"None of {', '.join(BACKENDS)} found on the remote host",
        )
    return BACKENDS[name]()


def default_requirements() -> List[ServiceRequirement]:
    """Docker runtime, Compose plugin, docker group membership, Nginx (in order)."""
    return [
        ServiceRequirement(
            name="docker",
            check=sh(COMMAND_EXISTS_SCRIPT, "docker"),
            install=[sh(DOCKER_INSTALL_SCRIPT, DOCKER_INSTALL_SCRIPT_URL)],
            enable=sh(ENABLE_SERVICE_SCRIPT, "docker"),
        ),
        ServiceRequirement(
            name="docker-compose",
            check=["docker", "compose", "version"],
            install=[
                sh(COMPOSE_PLUGIN_INSTALL_SCRIPT, COMPOSE_PLUGIN_URL, COMPOSE_PLUGIN_DIR)
            ],
        ),
        ServiceRequirement(
            name="docker-group",
            check=sh(IN_DOCKER_GROUP_SCRIPT),
            install=[sh(ADD_TO_DOCKER_GROUP_SCRIPT)],
        ),
        ServiceRequirement(
            name="nginx",
            check=sh(COMMAND_EXISTS_SCRIPT, "nginx"),
            packages=[NGINX_PACKAGE],
            enable=sh(ENABLE_SERVICE_SCRIPT, "nginx"),
        ),
    ]


class ProvisionService:
    """Idempotently installs and enables required remote services."""

    def __init__(
        self,
        ssh: SSHService,
        logger: DeployLogger,
        backend: Optional[InstallerBackend] = None,
    ):
        """
        Initialize provisioning service.

        Args:
            ssh: Remote executor
            logger: Deployment logger
            backend: Installer backend (detected on first use when omitted)
        """
        self.ssh = ssh
        self.logger = logger
        self._backend = backend
        self._index_refreshed = False

    @property
    def backend(self) -> InstallerBackend:
        if self._backend is None:
            self._backend = detect_backend(self.ssh)
            self.logger.log(f"Package manager: {self._backend.name}")
        return self._backend

    def ensure_defaults(self) -> None:
        """Ensure the standard requirement set for this host."""
        self.ensure(default_requirements())
        self.report_versions()

    def ensure(self, requirements: Sequence[ServiceRequirement]) -> None:
        """
        Check, install if absent, then enable each requirement in order.

        Raises:
            ProvisionError: Naming the requirement and the failing step
        """
        for requirement in requirements:
            if self.ssh.run_quiet(requirement.check):
                self.logger.log(f"{requirement.name}: already installed")
            else:
                self._install(requirement)

            if requirement.enable:
                result = self.ssh.run(requirement.enable)
                if result.is_failure:
                    raise ProvisionError(
                        requirement.name, "enable", tail_text(result.output) or None
                    )

            self.logger.success(f"{requirement.name} ready")

    def _install(self, requirement: ServiceRequirement) -> None:
        self.logger.log(f"{requirement.name}: installing")
        commands = list(requirement.install)
        if requirement.packages:
            self._refresh_index(requirement)
            for package in requirement.packages:
                commands.extend(self.backend.install_commands(package))

        for command in commands:
            result = self.ssh.run(command)
            if result.is_failure:
                raise ProvisionError(
                    requirement.name, "install", tail_text(result.output) or None
                )

        if not self.ssh.run_quiet(requirement.check):
            raise ProvisionError(
                requirement.name,
                "install",
                "Install commands succeeded but the check still fails",
            )

    def _refresh_index(self, requirement: ServiceRequirement) -> None:
        """Refresh the package index once per run, before the first package install."""
        if self._index_refreshed:
            return
        result = self.ssh.run(self.backend.refresh_command())
        if result.is_failure:
            raise ProvisionError(
                requirement.name,
                "install",
                f"Package index refresh failed: {tail_text(result.output, 5)}",
            )
        self._index_refreshed = True

    def report_versions(self) -> None:
        """Log installed versions (diagnostics only)."""
        for command in (
            ["docker", "--version"],
            ["docker", "compose", "version"],
            ["nginx", "-v"],
        ):
            result = self.ssh.run(command)
            # nginx -v prints to stderr
            self.logger.debug(result.output or f"{command[0]}: no version output")

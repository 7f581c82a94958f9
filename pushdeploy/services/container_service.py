"""
Container service.

Replaces and starts the application containers on the remote host, either
as a single container built from the Dockerfile or as a Compose project.
Every container and the Compose project carry the deployment's logical name,
which is the key for idempotent replacement.
"""

import posixpath
import time
from typing import List, Optional

from pushdeploy.constants import (
    COMPOSE_PROJECT_LABEL,
    CONTAINER_RESTART_POLICY,
    CONTAINER_SETTLE_DELAY,
    HEALTH_POLL_ATTEMPTS,
    HEALTH_POLL_INTERVAL,
    LOG_TAIL_LINES,
)
from pushdeploy.exceptions import DeployError
from pushdeploy.logger import DeployLogger
from pushdeploy.models.deployment import AppManifest, ContainerIdentity
from pushdeploy.models.results import ContainerInfo, LaunchResult, SSHResult
from pushdeploy.services.ssh_service import SSHService
from pushdeploy.utils import tail_text

# Tab separated: id, name, status, ports, compose project
PS_FORMAT = (
    "{{.ID}}\t{{.Names}}\t{{.Status}}\t{{.Ports}}\t"
    '{{.Label "' + COMPOSE_PROJECT_LABEL + '"}}'
)
HEALTH_FORMAT = "{{if .State.Health}}{{.State.Health.Status}}{{end}}"


def parse_ps_output(output: str) -> List[ContainerInfo]:
    """Parse `docker ps --format PS_FORMAT` output into ContainerInfo rows."""
    containers = []
    for line in output.splitlines():
        if not line.strip():
            continue
        fields = line.split("\t")
        fields += [""] * (5 - len(fields))
        container_id, name, status, ports, project = fields[:5]
        containers.append(
            ContainerInfo(
                id=container_id.strip(),
                name=name.strip(),
                status=status.strip(),
                ports=ports.strip(),
                project=project.strip(),
            )
        )
    return containers


class ContainerService:
    """Builds, replaces and inspects containers of one deployment."""

    def __init__(self, ssh: SSHService, logger: DeployLogger):
        """
        Initialize container service.

        Args:
            ssh: Remote executor
            logger: Deployment logger
        """
        self.ssh = ssh
        self.logger = logger

    def list_containers(self, all: bool = False) -> List[ContainerInfo]:
        """
        List containers on the remote host.

        Args:
            all: Include stopped containers

        Raises:
            DeployError: If the container runtime cannot be queried
        """
        command = ["docker", "ps"]
        if all:
            command.append("-a")
        command += ["--format", PS_FORMAT]

        result = self.ssh.run(command)
        if result.is_failure:
            raise DeployError(
                "Could not list containers", context=tail_text(result.output) or None
            )
        return parse_ps_output(result.stdout)

    def containers_bearing(
        self, logical_name: str, all: bool = False
    ) -> List[ContainerInfo]:
        """Containers whose name or Compose project equals *logical_name*."""
        return [c for c in self.list_containers(all=all) if c.bears(logical_name)]

    def remove_existing(self, logical_name: str) -> List[ContainerInfo]:
        """
        Stop and remove every container bearing *logical_name*.

        Compose projects are brought down first (which also removes their
        networks), then any leftover container is force-removed. Nothing to
        remove is not an error.

        Returns:
            The containers that were found
        """
        existing = self.containers_bearing(logical_name, all=True)
        if not existing:
            self.logger.log(f"No existing containers for {logical_name}")
            return existing

        self.logger.log(
            f"Removing {len(existing)} existing container(s) for {logical_name}"
        )

        if any(c.project == logical_name for c in existing):
            self._require(
                self.ssh.run(
                    ["docker", "compose", "-p", logical_name, "down", "--remove-orphans"]
                ),
                f"docker compose down failed for {logical_name}",
            )

        leftovers = self.containers_bearing(logical_name, all=True)
        if leftovers:
            self._require(
                self.ssh.run(["docker", "rm", "-f", *[c.id for c in leftovers]]),
                f"Could not remove containers for {logical_name}",
            )

        self.logger.success(f"Previous containers of {logical_name} removed")
        return existing

    def launch(
        self, remote_path: str, manifest: AppManifest, identity: ContainerIdentity
    ) -> LaunchResult:
        """
        Replace and start the application.

        Args:
            remote_path: Remote application directory
            manifest: Detected manifest (decides compose vs single container)
            identity: Logical name and internal port

        Returns:
            LaunchResult with the running containers and their settled health

        Raises:
            DeployError: If the build/start fails or nothing is running afterwards
        """
        name = identity.logical_name
        self.remove_existing(name)

        if manifest.is_compose:
            self._launch_compose(remote_path, manifest, name)
        else:
            self._launch_single(remote_path, manifest, identity)

        self.logger.log(f"Waiting {CONTAINER_SETTLE_DELAY}s for containers to settle")
        time.sleep(CONTAINER_SETTLE_DELAY)

        running = self.containers_bearing(name)
        if not running:
            raise DeployError(
                f"No running container found for {name}",
                context=tail_text(self.fetch_logs(identity, manifest, 50)) or None,
            )

        for container in running:
            self.logger.log(f"Running: {container.summary} ({container.status})")

        health = {c.name: self.wait_for_health(c.name) for c in running}
        return LaunchResult(containers=running, health=health)

    def _launch_compose(self, remote_path: str, manifest: AppManifest, name: str) -> None:
        compose = self._compose_base(remote_path, manifest, name)

        pull = self.ssh.run([*compose, "pull"])
        if pull.is_failure:
            self.logger.warning("docker compose pull failed, continuing with build")

        self.logger.log(f"Starting compose project {name}")
        self._require(
            self.ssh.run([*compose, "up", "-d", "--build", "--remove-orphans"]),
            "docker compose up failed",
        )
        self.logger.success(f"Compose project {name} started")

    def _launch_single(
        self, remote_path: str, manifest: AppManifest, identity: ContainerIdentity
    ) -> None:
        if identity.internal_port is None:
            raise DeployError("An internal port is required to run a single container")

        context = posixpath.normpath(posixpath.join(remote_path, manifest.build_context))
        self.logger.log(f"Building image {identity.image_tag}")
        self._require(
            self.ssh.run(["docker", "build", "-t", identity.image_tag, context]),
            f"docker build failed for {identity.image_tag}",
        )
        self.logger.success(f"Image {identity.image_tag} built")

        port = str(identity.internal_port)
        self._require(
            self.ssh.run(
                [
                    "docker",
                    "run",
                    "-d",
                    "--name",
                    identity.logical_name,
                    "-p",
                    f"{port}:{port}",
                    "--restart",
                    CONTAINER_RESTART_POLICY,
                    identity.image_tag,
                ]
            ),
            f"docker run failed for {identity.logical_name}",
        )
        self.logger.success(f"Container {identity.logical_name} started")

    def wait_for_health(self, container_name: str) -> Optional[str]:
        """
        Poll a container's health probe until it reports healthy.

        Returns:
            Last observed health status, or None when no probe is declared.
            Never raises on an unhealthy result.
        """
        status: Optional[str] = None
        for attempt in range(1, HEALTH_POLL_ATTEMPTS + 1):
            result = self.ssh.run(
                ["docker", "inspect", "--format", HEALTH_FORMAT, container_name]
            )
            status = result.stdout.strip() if result.is_success else ""
            if not status:
                self.logger.debug(f"{container_name}: no health check declared")
                return None
            if status == "healthy":
                self.logger.success(f"{container_name} is healthy")
                return status
            self.logger.debug(
                f"{container_name}: {status} (attempt {attempt}/{HEALTH_POLL_ATTEMPTS})"
            )
            if attempt < HEALTH_POLL_ATTEMPTS:
                time.sleep(HEALTH_POLL_INTERVAL)

        self.logger.warning(f"{container_name} health is '{status}' after polling")
        return status

    def fetch_logs(
        self,
        identity: ContainerIdentity,
        manifest: Optional[AppManifest] = None,
        lines: int = LOG_TAIL_LINES,
    ) -> str:
        """Return the last *lines* lines of the application's runtime log."""
        name = identity.logical_name
        if manifest is not None and manifest.is_compose:
            command = ["docker", "compose", "-p", name, "logs", "--no-color"]
            command += ["--tail", str(lines)]
        else:
            command = ["docker", "logs", "--tail", str(lines), name]
        return self.ssh.run(command).output

    @staticmethod
    def _compose_base(remote_path: str, manifest: AppManifest, name: str) -> List[str]:
        compose_file = posixpath.join(remote_path, manifest.compose_file)
        return ["docker", "compose", "-p", name, "-f", compose_file]

    @staticmethod
    def _require(result: SSHResult, message: str) -> None:
        if result.is_failure:
            raise DeployError(message, context=tail_text(result.output) or None)

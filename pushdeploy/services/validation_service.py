"""Validation service: confirm the deployment through independent signals."""

from typing import Optional

import requests

from pushdeploy.constants import HTTP_PROBE_TIMEOUT, HTTP_UNREACHABLE
from pushdeploy.exceptions import DeployError, ValidationError
from pushdeploy.logger import DeployLogger
from pushdeploy.models.deployment import ContainerIdentity
from pushdeploy.models.results import ValidationReport
from pushdeploy.services.container_service import ContainerService
from pushdeploy.services.ssh_service import SSHService
from pushdeploy.utils import tail_text


class ValidationService:
    """
    Post-deploy checks.

    The container runtime and a running container bearing the logical name
    are hard gates. The two HTTP probes are informational: an app that does
    not serve "/" is still a successful deployment.
    """

    def __init__(
        self,
        ssh: SSHService,
        logger: DeployLogger,
        containers: Optional[ContainerService] = None,
    ):
        self.ssh = ssh
        self.logger = logger
        self.containers = containers or ContainerService(ssh, logger)

    def validate(
        self,
        identity: ContainerIdentity,
        internal_port: Optional[int],
        remote_host: str,
    ) -> ValidationReport:
        """
        Validate a finished deployment.

        Args:
            identity: Logical name of the deployment
            internal_port: Loopback port the app listens on (None skips that probe)
            remote_host: Public host name or address

        Returns:
            ValidationReport (hard gates passed)

        Raises:
            ValidationError: If the runtime is down or no container is running
        """
        runtime = self.ssh.run(["docker", "info", "--format", "{{.ServerVersion}}"])
        if runtime.is_failure:
            raise ValidationError(
                "Docker runtime is not responding",
                context=tail_text(runtime.output, 5) or None,
            )
        self.logger.success(f"Docker runtime up (server {runtime.stdout.strip()})")

        try:
            running = self.containers.containers_bearing(identity.logical_name)
        except DeployError as e:
            raise ValidationError(e.message, context=e.context)
        if not running:
            raise ValidationError(
                f"No running container found for {identity.logical_name}"
            )
        container_info = "\n".join(c.summary for c in running)
        self.logger.success(f"Running: {', '.join(c.name for c in running)}")

        report = ValidationReport(runtime_up=True, container_info=container_info)

        if internal_port is not None:
            report.internal_http_status = self.probe_internal(internal_port)
            if report.internal_reachable:
                self.logger.success(
                    f"App answered on 127.0.0.1:{internal_port} "
                    f"(HTTP {report.internal_http_status})"
                )
            else:
                self.logger.warning(
                    f"App did not answer on 127.0.0.1:{internal_port} (it may still be starting)"
                )

        report.external_http_status = self.probe_external(remote_host)
        if report.external_reachable:
            self.logger.success(
                f"http://{remote_host}/ answered (HTTP {report.external_http_status})"
            )
        else:
            self.logger.warning(
                f"http://{remote_host}/ is not reachable from here (check the firewall)"
            )

        return report

    def probe_internal(self, port: int) -> str:
        """HTTP status of the app on the remote loopback, '000' if unreachable."""
        result = self.ssh.run(
            [
                "curl",
                "-s",
                "-o",
                "/dev/null",
                "-w",
                "%{http_code}",
                "--max-time",
                str(HTTP_PROBE_TIMEOUT),
                f"http://127.0.0.1:{port}/",
            ]
        )
        # curl prints 000 and exits non-zero when nothing answers
        return result.stdout.strip() or HTTP_UNREACHABLE

    def probe_external(self, remote_host: str) -> str:
        """HTTP status of the public route from this machine, '000' if unreachable."""
        url = f"http://{remote_host}/"
        try:
            response = requests.get(url, timeout=HTTP_PROBE_TIMEOUT, allow_redirects=False)
        except requests.RequestException as e:
            self.logger.debug(f"GET {url} failed: {e}")
            return HTTP_UNREACHABLE
        return str(response.status_code)

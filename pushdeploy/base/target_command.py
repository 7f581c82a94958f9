"""
Target Command Base Class

Base class for commands acting on one deployment target.
Provides lazy service initialization bound to the target's SSH session.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console

from pushdeploy.models.deployment import DeploymentTarget
from pushdeploy.prompts import InteractivePrompter
from pushdeploy.services import (
    ContainerService,
    ProxyService,
    SSHService,
)

from .base_command import BaseCommand


class TargetCommand(BaseCommand):
    """
    Base class for deploy and cleanup.

    Provides:
    - Target resolution through the interactive prompter
    - Services created on first use, sharing one logger and SSH session
    """

    def __init__(
        self,
        prompter: Optional[InteractivePrompter] = None,
        debug: bool = False,
        log_dir: Optional[Path] = None,
        console: Optional[Console] = None,
        ssh_service: Optional[SSHService] = None,
    ):
        super().__init__(debug=debug, log_dir=log_dir, console=console)
        self.prompter = prompter or InteractivePrompter()
        self.target: Optional[DeploymentTarget] = None

        self.ssh_service = ssh_service
        self.container_service: Optional[ContainerService] = None
        self.proxy_service: Optional[ProxyService] = None

    def log_target(self) -> None:
        """Write the parameter summary to the log file."""
        logger = self.init_logger()
        target = self.target
        logger.log("Parameters summary:")
        logger.log(f"  Repo: {target.repo_url}")
        logger.log(f"  Branch: {target.branch}")
        logger.log(f"  Remote: {target.remote_user}@{target.remote_host}")
        logger.log(f"  SSH key: {target.ssh_key_path}")
        logger.log(f"  App internal port: {target.app_port}")
        logger.log(f"  Logical name: {target.logical_name}")

    def ensure_ssh_service(self) -> SSHService:
        """
        Ensure SSHService is initialized.

        Returns:
            SSHService instance
        """
        if self.ssh_service is None:
            self.ssh_service = SSHService(self.target.connection, self.init_logger())
        return self.ssh_service

    def ensure_container_service(self) -> ContainerService:
        if self.container_service is None:
            self.container_service = ContainerService(
                self.ensure_ssh_service(), self.init_logger()
            )
        return self.container_service

    def ensure_proxy_service(self) -> ProxyService:
        if self.proxy_service is None:
            self.proxy_service = ProxyService(
                self.ensure_ssh_service(), self.init_logger()
            )
        return self.proxy_service

    def check_connectivity(self) -> None:
        logger = self.init_logger()
        logger.step(f"Checking SSH access to {self.target.remote_host}")
        self.ensure_ssh_service().check_connectivity()
        logger.success(
            f"SSH OK ({self.target.remote_user}@{self.target.remote_host})"
        )

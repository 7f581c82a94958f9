"""
Deploy Command

Stage the repository, prepare the host, ship the files, start the
containers, route port 80 to them and validate the result.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console

from pushdeploy.base import TargetCommand
from pushdeploy.constants import LOG_TAIL_LINES
from pushdeploy.models.deployment import GitCredentials
from pushdeploy.models.results import LaunchResult, ValidationReport
from pushdeploy.prompts import InteractivePrompter
from pushdeploy.services import (
    GitService,
    ManifestService,
    ProvisionService,
    SSHService,
    SyncService,
    ValidationService,
)
from pushdeploy.ui_components import show_summary


class DeployCommand(TargetCommand):
    """
    Full deployment pipeline.

    Stages run strictly in order, each only after its predecessor
    succeeded. The first failing stage ends the run with its exit code;
    nothing is rolled back, re-running is the recovery.
    """

    operation = "deploy"

    def __init__(
        self,
        prompter: Optional[InteractivePrompter] = None,
        debug: bool = False,
        log_dir: Optional[Path] = None,
        console: Optional[Console] = None,
        ssh_service: Optional[SSHService] = None,
        git_service: Optional[GitService] = None,
        sync_service: Optional[SyncService] = None,
        provision_service: Optional[ProvisionService] = None,
    ):
        super().__init__(
            prompter=prompter,
            debug=debug,
            log_dir=log_dir,
            console=console,
            ssh_service=ssh_service,
        )
        self.credentials: Optional[GitCredentials] = None
        self.git_service = git_service
        self.sync_service = sync_service
        self.provision_service = provision_service

    def execute(self) -> None:
        """Execute the deploy pipeline."""
        logger = self.init_logger()

        self.target, self.credentials = self.prompter.ask_deploy()
        logger.register_secret(self.credentials.token)
        self.log_target()

        target = self.target
        self.show_header(
            title="Deploy",
            details={
                "Repository": target.repo_name,
                "Branch": target.branch,
                "Host": f"{target.remote_user}@{target.remote_host}",
            },
        )

        self.check_connectivity()

        logger.step("Staging source")
        git = self.git_service or GitService(logger, work_dir=target.work_dir)
        local_path = git.stage(target.repo_url, target.branch, self.credentials)
        logger.success(f"Source ready at {local_path}")

        logger.step("Detecting application manifest")
        manifest = ManifestService(logger).detect(local_path)
        logger.success(f"Start mode: {manifest.mode.value}")

        logger.step("Provisioning remote host")
        provisioner = self.provision_service or ProvisionService(
            self.ensure_ssh_service(), logger
        )
        provisioner.ensure_defaults()

        logger.step(f"Syncing files to ~/{target.remote_app_dir}")
        syncer = self.sync_service or SyncService(self.ensure_ssh_service(), logger)
        syncer.sync(local_path, target.remote_app_dir)

        logger.step(f"Starting containers ({target.logical_name})")
        containers = self.ensure_container_service()
        launch = containers.launch(target.remote_app_dir, manifest, target.identity)

        logger.step("Configuring Nginx reverse proxy")
        self.ensure_proxy_service().configure(target.route)

        logger.step("Validating deployment")
        report = ValidationService(
            self.ensure_ssh_service(), logger, containers=containers
        ).validate(target.identity, target.app_port, target.remote_host)

        logger.step("Application logs")
        app_logs = containers.fetch_logs(target.identity, manifest, LOG_TAIL_LINES)
        logger.log_output(app_logs, "app", show=True)

        self._print_summary(launch, report)

    def _print_summary(self, launch: LaunchResult, report: ValidationReport) -> None:
        target = self.target
        self.console.print("\n[green]✓ Deployment finished[/green]\n")
        rows = {
            "Containers": ", ".join(c.name for c in launch.containers),
            "Remote dir": f"~/{target.remote_app_dir}",
            "Internal": f"127.0.0.1:{target.app_port} "
            f"(HTTP {report.internal_http_status or '-'})",
            "Public": f"http://{target.remote_host}/ "
            f"(HTTP {report.external_http_status or '-'})",
        }
        if launch.unhealthy:
            rows["Unhealthy"] = ", ".join(launch.unhealthy)
        show_summary(rows, console=self.console)
        self.print_log_path()

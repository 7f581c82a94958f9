"""
Cleanup Command

Tear down what a deployment created on the remote host: its containers,
its application directory and its proxy route. The local working copy is
left alone.
"""

from pushdeploy.base import TargetCommand
from pushdeploy.exceptions import CleanupError, ConnectivityError, PushDeployError
from pushdeploy.utils import tail_text


class CleanupCommand(TargetCommand):
    """
    Teardown.

    Every step tolerates absent resources, so cleaning up a target that was
    never deployed (or was already cleaned up) succeeds.
    """

    operation = "cleanup"

    def execute(self) -> None:
        """Execute teardown."""
        logger = self.init_logger()

        self.target = self.prompter.ask_cleanup()
        self.log_target()

        target = self.target
        self.show_header(
            title="Cleanup",
            details={
                "Repository": target.repo_name,
                "Host": f"{target.remote_user}@{target.remote_host}",
            },
        )

        try:
            self.check_connectivity()

            logger.step(f"Removing containers ({target.logical_name})")
            self.ensure_container_service().remove_existing(target.logical_name)

            logger.step(f"Removing ~/{target.remote_app_dir}")
            result = self.ensure_ssh_service().run(["rm", "-rf", target.remote_app_dir])
            if result.is_failure:
                raise CleanupError(
                    f"Could not remove {target.remote_app_dir}",
                    context=tail_text(result.output) or None,
                )
            logger.success("Application directory removed")

            logger.step("Removing Nginx route")
            self.ensure_proxy_service().remove(target.route)
        except (CleanupError, ConnectivityError):
            raise
        except PushDeployError as e:
            raise CleanupError(e.message, context=e.context)

        self.console.print("\n[green]✓ Cleanup finished[/green]\n")
        self.print_log_path()

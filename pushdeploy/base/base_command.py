"""
Base Command Class

Abstract base for pushdeploy commands.
Provides logger setup, header display and exit-code mapping.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from rich.console import Console

from pushdeploy.constants import EXIT_INTERRUPTED
from pushdeploy.exceptions import PushDeployError
from pushdeploy.logger import DeployLogger
from pushdeploy.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization (one log file per invocation)
    - Header display
    - Error handling: every PushDeployError ends the process with its exit code
    """

    operation = "command"

    def __init__(
        self,
        debug: bool = False,
        log_dir: Optional[Path] = None,
        console: Optional[Console] = None,
    ):
        self.debug = debug
        self.log_dir = log_dir
        self.console = console or Console()
        self.logger: Optional[DeployLogger] = None

    def init_logger(self) -> DeployLogger:
        """
        Initialize command logger.

        Returns:
            DeployLogger instance (reused if already created)
        """
        if self.logger is None:
            self.logger = DeployLogger(
                self.operation, log_dir=self.log_dir, debug=self.debug
            )
        return self.logger

    def show_header(
        self,
        title: str,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in debug mode)."""
        if not self.debug:
            show_header(
                title=title,
                details=details,
                console=self.console,
            )

    def print_log_path(self) -> None:
        if self.logger:
            self.console.print(f"[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    def handle_error(self, error: PushDeployError) -> None:
        """
        Handle error with consistent formatting.

        Args:
            error: pushdeploy exception
        """
        if self.logger:
            self.logger.log_error(error.message, context=error.context)
        else:
            self.console.print(f"[red]✗ {error.message}[/red]")
            if error.context:
                self.console.print(f"[dim]Context: {error.context}[/dim]")

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self, **kwargs) -> None:
        """
        Run command with error handling.

        Raises:
            SystemExit: With the failing stage's exit code
        """
        self.init_logger()
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            if self.logger:
                self.logger.log_error("Interrupted by user")
            self.print_log_path()
            raise SystemExit(EXIT_INTERRUPTED)
        except SystemExit:
            raise
        except PushDeployError as e:
            self.handle_error(e)
            self.console.print()
            self.print_log_path()
            raise SystemExit(e.exit_code)
        except Exception as e:
            # Generic error handling
            error_type = type(e).__name__
            self.console.print(f"\n[bold red]✗ {error_type}:[/bold red] {e}\n")
            if self.logger:
                self.logger.log_error(f"{error_type}: {e}")
            self.print_log_path()
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()

#!/usr/bin/env python3
"""pushdeploy CLI - Main entry point"""

import functools
import sys

from rich.console import Console

# Rich-Click: colored CLI help
import rich_click as click
from click.exceptions import Abort, ClickException, Exit, UsageError

from pushdeploy import __version__
from pushdeploy.constants import EXIT_INTERRUPTED, EXIT_INVALID_INPUT, EXIT_OK

# Configure rich-click output
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.MAX_WIDTH = 100

# COMMANDS: Bold cyan
click.rich_click.STYLE_COMMAND = "bold cyan"

# OPTIONS
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"

# HEADERS
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_USAGE_COMMAND = "bold cyan"

# HELP TEXT
click.rich_click.STYLE_HELPTEXT_FIRST_LINE = "bold white"
click.rich_click.STYLE_HELPTEXT = ""
click.rich_click.STYLE_OPTION_HELP = ""
click.rich_click.STYLE_EPILOG_TEXT = "dim"

# PANEL BORDERS
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"

# ALIGNMENT
click.rich_click.ALIGN_OPTIONS_PANEL = "left"
click.rich_click.ALIGN_ERRORS_PANEL = "left"
click.rich_click.ERRORS_EPILOGUE = ""

console = Console()


def handle_cli_errors(func):
    """Decorator mapping click/usage errors onto pushdeploy exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except UsageError as e:
            console.print(f"\n[bold red]✗ Error:[/bold red] {e.format_message()}\n")
            console.print(
                "[dim]Run[/dim] [cyan]pushdeploy --help[/cyan] [dim]for usage information[/dim]\n"
            )
            sys.exit(EXIT_INVALID_INPUT)
        except Exit as e:
            sys.exit(e.exit_code)
        except ClickException as e:
            # Click's built-in exceptions (already formatted)
            e.show()
            sys.exit(e.exit_code)
        except (Abort, KeyboardInterrupt):
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(EXIT_INTERRUPTED)

    return wrapper


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--cleanup",
    is_flag=True,
    help="Remove the deployed containers, remote directory and Nginx route",
)
@click.option(
    "--debug",
    is_flag=True,
    envvar="PUSHDEPLOY_DEBUG",
    help="Show every remote command and its output",
)
@click.version_option(version=__version__, prog_name="pushdeploy")
def cli(cleanup: bool, debug: bool) -> None:
    """
    pushdeploy - Deploy a Dockerized app from a git repository to one server.

    Asks for the repository, access token, branch, SSH target and the app's
    internal port, then clones, provisions Docker and Nginx, syncs files,
    starts the containers and routes port 80 to them.

    \b
    Examples:
      pushdeploy              # Deploy (interactive)
      pushdeploy --debug      # Deploy, showing every command
      pushdeploy --cleanup    # Tear the deployment down
    """
    # Imported here so --help and --version stay fast
    from pushdeploy.commands import CleanupCommand, DeployCommand

    command_class = CleanupCommand if cleanup else DeployCommand
    command_class(debug=debug).run()


@handle_cli_errors
def main(args=None) -> None:
    """Console script entry point."""
    cli.main(args=args, prog_name="pushdeploy", standalone_mode=False)
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()

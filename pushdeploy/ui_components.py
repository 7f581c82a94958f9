"""
pushdeploy - UI Components
Standardized headers and summaries
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape

BRAND = "pushdeploy"

BRAND_COLOR = "color(214)"


def _prefix() -> str:
    return f" [bold {BRAND_COLOR}]{BRAND}[/bold {BRAND_COLOR}] [dim]›[/dim]"


def show_header(
    title: str,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized pushdeploy command header.

    Args:
        title: Main title (e.g., "Deploy", "Cleanup")
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Deploy",
            details={"Repository": "app", "Host": "ubuntu@203.0.113.10"}
        )
    """
    if console is None:
        console = Console()

    console.print(f"{_prefix()} [bold white]{escape(title)}[/bold white]")

    if details:
        for key, value in details.items():
            console.print(f"{_prefix()} {key}: [cyan]{escape(str(value))}[/cyan]")

    # Single blank line after header
    console.print()


def show_summary(rows: dict, console: Optional[Console] = None):
    """Print aligned key/value lines after a finished operation."""
    if console is None:
        console = Console()

    width = max((len(key) for key in rows), default=0)
    for key, value in rows.items():
        console.print(f"  [dim]{key.ljust(width)}[/dim]  {escape(str(value))}")
    console.print()

"""
Logging system for pushdeploy
Writes a timestamped log file per invocation with clean console output
"""

import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from rich.console import Console
from rich.markup import escape

from pushdeploy.constants import LOG_FILE_PREFIX, LOG_FILE_TIMESTAMP_FORMAT
from pushdeploy.utils import mask_secret

console = Console(stderr=True)
_default_console = console

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class DeployLogger:
    """
    Manages logging for deployment operations
    - Appends every message to deploy_<timestamp>.log in real-time
    - Shows clean progress UI in console (everything when debug is on)
    - Redacts registered secrets from file and console output
    """

    def __init__(
        self,
        operation: str,
        log_dir: Optional[Path] = None,
        debug: bool = False,
        console: Optional[Console] = None,
    ):
        """
        Initialize logger

        Args:
            operation: Operation name (e.g., 'deploy', 'cleanup')
            log_dir: Directory receiving the log file (default: working directory)
            debug: If True, record debug diagnostics and show all output in console
            console: Rich console (default: module console on stderr)
        """
        self.operation = operation
        self.debug_enabled = debug
        self.console = console if console is not None else _default_console
        self.log_file: Optional[TextIO] = None
        self.current_step = ""
        self.has_errors = False
        self._secrets: List[str] = []

        log_dir = Path(log_dir) if log_dir else Path.cwd()
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime(LOG_FILE_TIMESTAMP_FORMAT)
        self.log_path = log_dir / f"{LOG_FILE_PREFIX}_{timestamp}.log"

        # Append-only, line buffered
        self.log_file = open(self.log_path, "a", buffering=1, encoding="utf-8")

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
pushdeploy Log
{"=" * 80}
Operation: {self.operation}
Started: {datetime.now().astimezone().isoformat(timespec="seconds")}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def register_secret(self, value: Optional[str]) -> None:
        """Never write *value* anywhere; its masked form is written instead."""
        if value and value not in self._secrets:
            self._secrets.append(value)

    def redact(self, text: str) -> str:
        """Replace registered secrets in *text* with their masked form."""
        for secret in self._secrets:
            text = text.replace(secret, mask_secret(secret))
        return text

    def _write(self, line: str) -> None:
        if self.log_file:
            self.log_file.write(self.redact(line))
            self.log_file.flush()

    def _print(self, message: str, style: Optional[str] = None) -> None:
        text = escape(self.redact(message))
        self.console.print(f"[{style}]{text}[/{style}]" if style else text)

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        timestamp = datetime.now().astimezone().isoformat(timespec="seconds")
        self._write(f"[{timestamp}] [{level}] {message}\n")

        # Show in console if debug
        if self.debug_enabled:
            if level == "ERROR":
                self._print(message, "red")
            elif level == "WARNING":
                self._print(message, "yellow")
            elif level == "DEBUG":
                self._print(message, "dim")
            else:
                self._print(message)

    def debug(self, message: str):
        """Log a diagnostic message (dropped unless debug is on)"""
        if self.debug_enabled:
            self.log(message, "DEBUG")

    def log_command(self, command: str):
        """Log a command being executed"""
        self.debug(f"Executing: {command}")

    def log_output(self, output: str, stream: str = "stdout", show: bool = False):
        """
        Log command output

        Always written to the log file. Shown in console when debug is on or
        when *show* is set.

        Args:
            output: Command output (single line or multiline)
            stream: Stream name (stdout, stderr)
            show: Print to console even without debug
        """
        if not output:
            return

        clean_output = ANSI_ESCAPE.sub("", output)
        for line in clean_output.splitlines():
            self._write(f"  [{stream}] {line}\n")

        if self.debug_enabled or show:
            self._print(clean_output, "dim")

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., command that failed)
        """
        self.has_errors = True

        # Clear markers for grepping
        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
        if context:
            error_block += f"\nContext: {context}\n"

        error_block += f"{'!' * 80}\n\n"
        self._write(error_block)

        self.console.print()
        self._print(f"✗ {error}", "bold red")
        if context:
            self._print(f"  {context}", "color(208)")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        if self.current_step and not self.debug_enabled:
            self.console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.debug_enabled:
            self.console.print(
                f"[color(214)]▶[/color(214)] [white]{escape(self.redact(step_name))}[/white]"
            )

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.debug_enabled:
            self._print(f"  ✓ {message}", "dim")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.debug_enabled:
            self._print(f"  ⚠ {message}", "yellow")

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().astimezone().isoformat(timespec="seconds")}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None

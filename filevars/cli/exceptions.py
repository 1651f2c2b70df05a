"""
FileVars CLI exception hierarchy.

This module defines CLI-specific exceptions for the FileVars application.
"""

import traceback

from rich.console import Console
from rich.panel import Panel

from filevars.exceptions import FileVarsError

console = Console(stderr=True)


class FileVarsCLIError(FileVarsError):
    """
    Base exception class for CLI-related errors.

    These relate to command-line interface operations.
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        code: int = 1,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.code = code
        self.original_exception = original_exception

    def format_rich(self) -> str:
        """Format the error message for rich display."""
        error_message = f"[red bold]Error:[/] {self.message}"

        if self.hint:
            error_message += f"\n[yellow]Hint:[/] {self.hint}"

        if self.original_exception:
            error_message += "\n\n[dim]Original error:[/]"
            error_message += (
                f"\n[dim]{self.original_exception.__class__.__name__}: {self.original_exception!s}[/]"
            )

            tb = "".join(traceback.format_tb(self.original_exception.__traceback__))
            if tb:
                error_message += f"\n[dim]Traceback:[/]\n[dim]{tb}[/]"

        return error_message

    def show(self) -> None:
        """Display the error message using Rich formatting."""
        console.print(Panel(self.format_rich(), title="[red]FileVars CLI Error[/]", border_style="red"))


class CLIShowError(FileVarsCLIError):
    """Raised when there are errors displaying information via CLI."""


class CLIRunError(FileVarsCLIError):
    """Raised when the daemon cannot be started or stops on an error."""


class CLIRenderError(FileVarsCLIError):
    """Raised when a one-shot render fails."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer
from tabulate import tabulate
from termcolor import colored

from filevars import FileVarsBuilder, FileVarsService
from filevars.cli.constants import CWD, EXIT_CONFIG_ERROR
from filevars.cli.exceptions import CLIShowError
from filevars.exceptions import FileVarsError

app = typer.Typer()


@app.command()
def show(
    ctx: typer.Context,
    registry: bool = typer.Option(
        False, "--registry", "-r", help="Register the definition file and display the result"
    ),
    settings: bool = typer.Option(False, "--settings", "-s", help="Display current FileVars Settings"),
    file: str | None = typer.Option(
        None, "--file", "-f", help="Variable definition file, overriding 'config_file' from the settings"
    ),
    all: bool = typer.Option(False, "--all", "-a", help="Display all information"),
) -> None:
    """
    Displays the effective settings and which file variables would be served.
    """
    if not any([registry, settings, all]):
        raise typer.BadParameter("You must provide at least one option: --registry, --settings, or --all.")

    try:
        builder = FileVarsBuilder()

        if ctx.obj and ctx.obj.get("settings"):
            builder.with_settings_path(ctx.obj.get("settings"))

        if file:
            builder.with_config_path(file)

        service = builder.build()

        if settings or all:
            show_filevars_settings(service)
        if registry or all:
            show_registry(service)

    except FileVarsError as e:
        CLIShowError(
            message=f"FileVars configuration error: {e}",
            hint="Check your FileVars settings and the variable definition file.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    except (FileNotFoundError, PermissionError) as e:
        CLIShowError(
            message=f"File system error: {e}",
            hint="Check file permissions and ensure all referenced files exist.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    except Exception as e:
        CLIShowError(
            message=f"Failed to show requested information: {e}",
            hint="Check your configuration and try again.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None


def show_filevars_settings(service: FileVarsService) -> None:
    """Display the FileVars settings."""
    show_formatted_table("FILEVARS SETTINGS", render_settings_table_data, ["Setting", "Value"], service)


def show_registry(service: FileVarsService) -> None:
    """Register the configured definitions, display them, and disconnect."""
    try:
        service.start()
        show_formatted_table(
            "FILE VARIABLES",
            render_registry_table_data,
            ["Variable", "Handle", "Template (file path)", "Status"],
            service,
        )
    finally:
        service.stop()


def show_formatted_table(
    banner_text: str,
    table_data_renderer: Callable[[FileVarsService], list[list[str]]],
    headers: list[str],
    service: FileVarsService,
) -> None:
    """Display information in a formatted table.

    Args:
        banner_text: The text to display in the banner.
        table_data_renderer: The function to prepare the data for the table.
        headers: The headers for the table.
        service: The FileVarsService object.
    """
    table_data = table_data_renderer(service)

    if not table_data:
        typer.echo(f"\n{banner_text}: nothing to display")
        return

    colored_headers = get_colored_headers(headers, "blue")
    colalign = ["center"] + ["left"] * (len(headers) - 1)
    table = tabulate(table_data, headers=colored_headers, tablefmt="rounded_grid", colalign=colalign)
    display_banner(banner_text, table)
    typer.echo(table)


def render_registry_table_data(service: FileVarsService) -> list[list[str]]:
    """Registered variables first, then the skipped definitions with their reason.

    Args:
        service: A started FileVarsService.

    Returns:
        The table data.
    """
    table_data = []
    for entry in service.registry:
        table_data.append(
            [
                colored(entry.name, "cyan", attrs=["bold"]),
                str(entry.handle),
                colored(display_path(entry.file_path), "yellow"),
                colored("registered", "green"),
            ]
        )

    for error in service.setup_errors:
        table_data.append(
            [
                colored(error.var_name or "-", "cyan", attrs=["bold"]),
                "-",
                colored(display_path(error.file_path) if error.file_path else "-", "yellow"),
                colored(f"skipped: {error}", "red"),
            ]
        )
    return table_data


def render_settings_table_data(service: FileVarsService) -> list[list[str]]:
    """Render the FileVars settings as a list of lists.

    Args:
        service: The FileVarsService object.

    Returns:
        The table data.
    """
    return render_table_data(service.settings.as_dict)


def render_table_data(
    data: dict[str, Any], key_color: str = "cyan", value_color: str = "yellow"
) -> list[list[str]]:
    """Render a dictionary as a list of lists.

    Args:
        data: The dictionary to render.
        key_color: The color for the keys.
        value_color: The color for the values.

    Returns:
        The table data.
    """
    table_data = []
    for key, value in data.items():
        colored_key = colored(key, key_color, attrs=["bold"])
        formatted_value = format_value(value, value_color)
        table_data.append([colored_key, formatted_value])
    return table_data


def format_value(value: Any, color: str = "yellow") -> str:
    """Format the value for display in the table.

    Args:
        value: The value to format.
        color: The color to use for the formatted value.

    Returns:
        The formatted value.
    """
    if isinstance(value, dict):
        value_str = json.dumps(value, indent=2, default=str)
        value_str = value_str[1:-1].strip()
    else:
        value_str = str(value)
    return colored(value_str, color)


def display_path(file_path: str) -> str:
    """Show paths under the working directory as './relative/path'."""
    path = Path(file_path)
    try:
        return f"./{path.relative_to(CWD)}"
    except ValueError:
        return str(path)


def get_colored_headers(headers: list[str], color: str) -> list[str]:
    """Color the headers.

    Args:
        headers: The headers to color.
        color: The color to use.

    Returns:
        The colored headers.
    """
    return [colored(header, color, attrs=["bold"]) for header in headers]


def display_banner(banner_text: str, table: str) -> None:
    """Create a banner with the given text and display it above the table.

    Args:
        banner_text: The text to display in the banner.
        table: The table string to determine the width for centering the banner.
    """
    banner = colored(banner_text, "magenta", attrs=["bold", "underline"])

    table_width = len(table.split("\n")[0])
    centered_banner = banner.center(table_width + 5)

    typer.echo("\n\n" + centered_banner)

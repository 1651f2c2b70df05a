import sys

import typer

from filevars import FileVarsBuilder
from filevars.cli.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_FILE_NOT_FOUND,
    EXIT_FILEVARS_ERROR,
    EXIT_PERMISSION_DENIED,
    EXIT_UNEXPECTED_ERROR,
)
from filevars.cli.exceptions import CLIRunError
from filevars.exceptions import ConfigError, FileVarsError, InitializationError, SettingsError

app = typer.Typer(help="Run the FileVars daemon")


def get_filevars_builder(
    settings_file: str = "", config_file: str | None = None, verbose: bool = False
) -> FileVarsBuilder:
    """
    Prepare a builder from the CLI options.

    Args:
        settings_file: The path to a YAML settings file for FileVarsSettings.
        config_file: Definition file overriding the one in the settings.
        verbose: Print debug output to stderr.

    Returns:
        FileVarsBuilder: The configured builder.
    """
    builder = FileVarsBuilder()

    if settings_file:
        builder.with_settings_path(settings_file)

    if config_file:
        builder.with_config_path(config_file)

    if verbose:
        builder.with_overrides(verbose=True)

    return builder


FILE_OPTION = typer.Option(
    None,
    "--file",
    "-f",
    help="Variable definition file (JSON or YAML) with a 'config' list of {var, file} records. "
    "Overrides 'config_file' from the settings.",
)

VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Print debug output to stderr [default: False]",
)


@app.command()
def run(
    ctx: typer.Context,
    file: str | None = FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Serves the template files of a definition file until SIGINT/SIGTERM.

    Variable names are resolved in the 'namespace' backend from the settings.
    The default in-memory backend starts empty, so configure a real backend
    (or its 'args.variables') for the definitions to register.
    """
    try:
        settings = ctx.obj.get("settings")
        service = get_filevars_builder(settings, file, verbose).build()

        if not service.settings.config_file:
            raise CLIRunError(
                message="No variable definition file given.",
                hint="Usage: filevars run -f <definitions.json>, or set 'config_file' in filevars.yaml.",
                code=EXIT_CONFIG_ERROR,
            )

        exit_code = service.run()

        if exit_code != 0:
            sys.exit(exit_code)

    except CLIRunError as e:
        e.show()
        raise typer.Exit(code=e.code)  # noqa: B904

    except (ConfigError, SettingsError, InitializationError) as e:
        CLIRunError(
            message=f"Configuration error: {e}",
            hint="Check the settings file and the variable definition file.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_CONFIG_ERROR)  # noqa: B904

    except FileVarsError as e:
        CLIRunError(
            message=f"FileVars error: {e}",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_FILEVARS_ERROR)  # noqa: B904

    except FileNotFoundError as e:
        CLIRunError(
            message=f"File not found: {e}",
            hint="Check that the referenced files exist and are accessible.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_FILE_NOT_FOUND)  # noqa: B904

    except PermissionError as e:
        CLIRunError(
            message=f"Permission denied: {e}",
            hint="Check that you have sufficient permissions to access the required files.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_PERMISSION_DENIED)  # noqa: B904

    except Exception as e:
        CLIRunError(
            message=f"Unexpected error while running the daemon: {e}",
            hint="This may be a bug. Please report it if the issue persists.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_UNEXPECTED_ERROR)  # noqa: B904

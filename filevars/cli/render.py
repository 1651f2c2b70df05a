import ast
import re
from typing import Any

import typer

from filevars import FileVarsBuilder
from filevars.cli.constants import EXIT_CONFIG_ERROR, EXIT_FILEVARS_ERROR, EXIT_UNEXPECTED_ERROR
from filevars.cli.exceptions import CLIRenderError
from filevars.config import load_definitions
from filevars.constants import PrintStatus
from filevars.exceptions import ConfigError, FileVarsError, InitializationError, NamespaceError, SettingsError
from filevars.namespace import InMemoryNamespace

app = typer.Typer(help="Render a single file variable")

# Splits on commas that are not inside quotes or brackets
PAIR_SEPARATOR = re.compile(
    r"""
    ,                           # Match a comma
    (?=                         # Followed by (positive lookahead)
        (?:                     # Non-capturing group
            [^"'{}()[\]]*       # Any chars except quotes/brackets
            (?:                 # Non-capturing group
                "[^"]*"         # Double quoted content
                |'[^']*'        # OR single quoted content
                |{[^}]*}        # OR curly bracket content
                |\([^)]*\)      # OR parentheses content
                |\[[^\]]*\]     # OR square bracket content
            )
        )*                      # Zero or more times
        [^"'{}()[\]]*           # Any chars except quotes/brackets
        $                       # Until end of string
    )
    """,
    re.VERBOSE,
)


def process_value(value_str: str) -> Any:
    """
    Process a string value into the appropriate Python type.

    Python literals (numbers, lists, dicts, booleans) are evaluated; an unquoted
    comma-separated value becomes a list; anything else stays a string.
    """
    try:
        return ast.literal_eval(value_str)
    except (ValueError, SyntaxError):
        if "," in value_str and not value_str.startswith(("{", "[", "(")):
            return [item.strip() for item in value_str.split(",")]
        return value_str


def _unquote(text: str) -> tuple[str, bool]:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):  # noqa: PLR2004
        return text[1:-1], True
    return text, False


def parse_vars(value: str | None) -> dict[str, Any]:
    """
    Convert a string of key=value pairs into variable values for the namespace.

    Args:
        value: String in one of these formats:
            - "hostname='gw-01', uptime=3600, dns=['10.0.0.1', '10.0.0.2']"
            - "'/sys/info/hostname'=gw-01"

    Returns:
        Dictionary of variable name to value.

    Raises:
        CLIRenderError: If a pair has no '='.
    """
    if not value:
        return {}

    parsed: dict[str, Any] = {}
    for pair in PAIR_SEPARATOR.split(value):
        if "=" not in pair:
            raise CLIRenderError(
                message=f"Invalid vars format: {pair.strip()!r}",
                hint="Use key=value pairs separated by commas, e.g. \"hostname='gw-01', uptime=3600\"",
                code=EXIT_CONFIG_ERROR,
            )

        k, v = pair.split("=", 1)
        key, _ = _unquote(k.strip())
        raw_value, quoted = _unquote(v.strip())
        parsed[key] = raw_value if quoted else process_value(raw_value)

    return parsed


FILE_OPTION = typer.Option(None, "--file", "-f", help="Variable definition file (JSON or YAML)")

VARS_OPTION = typer.Option(
    None,
    "--vars",
    help="Variable values available to the template."
    "\nExamples:\n- \"hostname='gw-01', uptime=3600\"\n- \"'/sys/info/hostname'=gw-01\"",
)


@app.command()
def render(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="The variable to render"),
    file: str | None = FILE_OPTION,
    vars: str | None = VARS_OPTION,
) -> None:
    """
    Renders the template bound to a variable once and writes it to stdout.

    The variable is served through an in-process namespace holding every
    defined variable plus the values given with --vars.
    """
    try:
        values = parse_vars(vars)
        namespace = InMemoryNamespace(values)

        builder = FileVarsBuilder().with_namespace(namespace)
        if ctx.obj and ctx.obj.get("settings"):
            builder.with_settings_path(ctx.obj.get("settings"))
        if file:
            builder.with_config_path(file)

        service = builder.build()
        config_file = service.settings.config_file
        if not config_file:
            raise CLIRenderError(
                message="No variable definition file given.",
                hint="Usage: filevars render NAME -f <definitions.json>",
                code=EXIT_CONFIG_ERROR,
            )

        known = namespace.snapshot()
        for record in load_definitions(config_file):
            if record.name and record.name not in known:
                namespace.define(record.name)

        service.start()
        try:
            try:
                token = namespace.request_print(name)
            except NamespaceError as e:
                raise CLIRenderError(
                    message=f"'{name}' is not a registered file variable: {e}",
                    hint="Run 'filevars show --registry -f <definitions>' to list the variables.",
                    code=EXIT_CONFIG_ERROR,
                ) from e
            result = service.dispatcher.run_once(timeout=0)
        finally:
            service.stop()

        if result is None or not result.ok:
            status = result.status if result else PrintStatus.INVALID
            raise CLIRenderError(
                message=f"Rendering '{name}' failed ({status}): {result.error if result else 'no request'}",
                code=EXIT_CONFIG_ERROR if status is PrintStatus.LOOKUP_MISS else EXIT_FILEVARS_ERROR,
            )

        typer.echo(namespace.output_for(token).decode(service.settings.encoding), nl=False)

    except CLIRenderError as e:
        e.show()
        raise typer.Exit(code=e.code)  # noqa: B904

    except (ConfigError, SettingsError, InitializationError) as e:
        CLIRenderError(
            message=f"Configuration error: {e}",
            hint="Check the settings file and the variable definition file.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_CONFIG_ERROR)  # noqa: B904

    except FileVarsError as e:
        CLIRenderError(message=f"FileVars error: {e}", original_exception=e).show()
        raise typer.Exit(code=EXIT_FILEVARS_ERROR)  # noqa: B904

    except Exception as e:
        CLIRenderError(
            message=f"Unexpected error while rendering {name}: {e}",
            hint="This may be a bug. Please report it if the issue persists.",
            original_exception=e,
        ).show()
        raise typer.Exit(code=EXIT_UNEXPECTED_ERROR)  # noqa: B904

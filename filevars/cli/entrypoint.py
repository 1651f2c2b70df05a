import typer

from filevars.cli import render, run, show

app = typer.Typer(
    help="FileVars serves the contents of template files as read-only variables of a variable server.",
    add_completion=False,
)


def settings_callback(ctx: typer.Context, settings: str | None = None) -> None:
    """
    Priority order (highest to lowest):
    1. --settings CLI argument (caller's explicit intent)
    2. FILEVARS_SETTINGS environment variable (handled by FileVarsSettings.load)
    3. Default filevars.yaml (handled by FileVarsSettings.load)
    """
    ctx.obj = {"settings": settings if settings else ""}


@app.callback()
def main(
    ctx: typer.Context,
    settings: str | None = typer.Option(
        None, "--settings", "-s", help="Specify a path to a custom settings file."
    ),
) -> None:
    settings_callback(ctx, settings)


app.command()(run.run)
app.command()(show.show)
app.command()(render.render)

if __name__ == "__main__":
    app()

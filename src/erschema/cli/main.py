"""erschema CLI - Main entry point."""

import logging
from typing import Annotated

import typer

import erschema
from erschema.cli.context import CLIContext
from erschema.cli.output import OutputFormatter
from erschema.dialect import available_dialects, get_dialect

# Create main Typer app
app = typer.Typer(
    name="erschema",
    help="erschema CLI - Reverse-engineer database schemas and generate DDL",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    url: Annotated[
        str | None,
        typer.Option(
            "--url",
            "-u",
            envvar="ERSCHEMA_URL",
            help="SQLAlchemy database URL",
        ),
    ] = None,
    dialect: Annotated[
        str | None,
        typer.Option(
            "--dialect",
            "-D",
            envvar="ERSCHEMA_DIALECT",
            help="Dialect name (default: derived from the URL)",
        ),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option(
            "--user",
            envvar="ERSCHEMA_USER",
            help="User name overriding the URL's",
        ),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option(
            "--password",
            envvar="ERSCHEMA_PASSWORD",
            help="Password overriding the URL's",
        ),
    ] = None,
    driver: Annotated[
        str | None,
        typer.Option(
            "--driver",
            help="SQLAlchemy driver, e.g. mysql+pymysql (default: the dialect's)",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log progress to stderr",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
            force=True,
        )

    # Store in Typer context for command access
    ctx.obj = CLIContext(
        url=url,
        dialect_name=dialect,
        user=user,
        password=password,
        driver=driver,
        json_output=json_output,
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"erschema v{erschema.__version__}")


@app.command()
def dialects(ctx: typer.Context) -> None:
    """List the supported dialects and their datatypes."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    rows = []
    for name in available_dialects():
        dialect = get_dialect(name)
        rows.append(
            {
                "name": dialect.unique_name,
                "casing": dialect.casing.value,
                "max_name_length": dialect.max_name_length,
                "default_driver": dialect.default_driver,
                "data_types": ", ".join(t.name for t in dialect.get_data_types()),
            }
        )
    formatter.print_table(
        "Dialects",
        rows,
        ["name", "casing", "max_name_length", "default_driver", "data_types"],
    )


# Register commands
from erschema.cli.commands import reverse

app.command(name="reverse")(reverse.reverse_command)
app.command(name="script")(reverse.script_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

"""Reverse engineering and script generation commands."""

from pathlib import Path
from typing import Annotated

import typer

from erschema.cli.context import CLIContext
from erschema.cli.output import OutputFormatter
from erschema.core.types import ReverseEngineeringOptions, SchemaEntry, TableEntry, TableNaming
from erschema.dialect import get_dialect
from erschema.model.model import Model
from erschema.reverse import CollectingReverseEngineeringNotifier, reverse_engineer
from erschema.reverse.notifier import format_message
from erschema.tracker.history import HistoryModificationTracker

SchemaOption = Annotated[
    list[str] | None,
    typer.Option("--schema", "-s", help="Schema to read (repeatable; default: all)"),
]
TableOption = Annotated[
    list[str] | None,
    typer.Option("--table", "-t", help="Only read this table (repeatable)"),
]
IncludeSchemaOption = Annotated[
    bool,
    typer.Option("--include-schema", help="Qualify table names with their schema"),
]
SkipViewsOption = Annotated[
    bool,
    typer.Option("--skip-views", help="Do not import views"),
]


def build_options(
    schemas: list[str] | None,
    tables: list[str] | None,
    include_schema: bool,
    skip_views: bool,
) -> ReverseEngineeringOptions:
    """Reverse-engineering options from command-line flags.

    Tables given with ``--table`` are looked up in the single ``--schema``
    when exactly one is given, otherwise in the default schema.
    """
    schema_entries = [SchemaEntry(schema_name=name) for name in schemas or []]
    table_schema = schema_entries[0].schema_name if len(schema_entries) == 1 else None
    return ReverseEngineeringOptions(
        table_naming=TableNaming.INCLUDE_SCHEMA if include_schema else TableNaming.STANDARD,
        schemas=schema_entries,
        table_entries=[TableEntry(name=name, schema_name=table_schema) for name in tables or []],
        skip_views=skip_views,
    )


def run_reverse(
    cli_ctx: CLIContext,
    options: ReverseEngineeringOptions,
    notifier: CollectingReverseEngineeringNotifier,
) -> Model:
    """Reverse-engineer the database of the CLI context into a new model."""
    return reverse_engineer(
        cli_ctx.get_dialect(),
        cli_ctx.require_url(),
        user=cli_ctx.user,
        password=cli_ctx.password,
        driver=cli_ctx.driver,
        options=options,
        notifier=notifier,
    )


def reverse_command(
    ctx: typer.Context,
    schemas: SchemaOption = None,
    tables: TableOption = None,
    include_schema: IncludeSchemaOption = False,
    skip_views: SkipViewsOption = False,
    journal: Annotated[
        Path | None,
        typer.Option("--journal", help="Write the change journal of the import to this file"),
    ] = None,
) -> None:
    """Read a database catalog into a model and print it.

    Examples:

        erschema --url sqlite:///./shop.db reverse
        erschema --url mysql+pymysql://root@localhost/shop reverse -s shop --json
        erschema --url sqlite:///./shop.db reverse --journal shop.json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)
    notifier = CollectingReverseEngineeringNotifier()

    try:
        options = build_options(schemas, tables, include_schema, skip_views)
        model = run_reverse(cli_ctx, options, notifier)

        if journal is not None:
            tracker = model.modification_tracker
            if not isinstance(tracker, HistoryModificationTracker):
                raise ValueError("The imported model has no history to write")
            journal.write_text(tracker.dump_json(indent=2))

        warnings = [format_message(key, *args) for key, args in notifier.warnings()]
        formatter.print_model_info(model.describe(), warnings)

    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


def script_command(
    ctx: typer.Context,
    target: Annotated[
        str | None,
        typer.Option("--target", "-T", help="Dialect of the script (default: the source's)"),
    ] = None,
    terminator: Annotated[
        str,
        typer.Option("--terminator", help="Statement terminator"),
    ] = ";",
    schemas: SchemaOption = None,
    tables: TableOption = None,
    include_schema: IncludeSchemaOption = False,
    skip_views: SkipViewsOption = False,
) -> None:
    """Read a database catalog and print the DDL that recreates it.

    Examples:

        erschema --url sqlite:///./shop.db script
        erschema --url sqlite:///./shop.db script --target PostgreSQL
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)
    notifier = CollectingReverseEngineeringNotifier()

    try:
        options = build_options(schemas, tables, include_schema, skip_views)
        model = run_reverse(cli_ctx, options, notifier)
        dialect = get_dialect(target) if target else cli_ctx.get_dialect()
        statements = dialect.create_sql_generator().create_script(model)
        formatter.print_script(dialect.unique_name, statements, terminator)

    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

"""Output formatting for CLI commands."""

import json
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from erschema.core.types import ModelInfo
from erschema.exceptions import ERSchemaError

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print data as Rich table or JSON array.

        Args:
            title: Table title
            data: List of row dictionaries
            columns: Column names to display
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*[str(row.get(col, "")) for col in columns])
            console.print(table)

    def print_model_info(self, info: ModelInfo, warnings: list[str] | None = None) -> None:
        """Print a model's tables, relations and views.

        Args:
            info: Structural description of the model
            warnings: Messages about skipped or substituted elements
        """
        if self.json_mode:
            output = info.model_dump(mode="json")
            output["warnings"] = warnings or []
            print(json.dumps(output, default=str, indent=2))
            return

        console.print(
            f"\n[bold]Model[/bold] ({info.dialect or 'no dialect'}): "
            f"{info.total_tables} tables, {info.total_attributes} attributes"
        )
        for table_info in info.tables:
            title = table_info.name
            if table_info.comment:
                title = f"{title} - {table_info.comment}"
            columns_table = Table(title=title, show_header=True, header_style="bold cyan")
            columns_table.add_column("Name")
            columns_table.add_column("Type")
            columns_table.add_column("Nullable")
            columns_table.add_column("Default")
            columns_table.add_column("Extra")
            for attribute in table_info.attributes:
                type_text = attribute.domain or attribute.datatype or ""
                if attribute.size is not None:
                    params = [str(attribute.size)]
                    if attribute.fraction is not None:
                        params.append(str(attribute.fraction))
                    type_text = f"{type_text}({','.join(params)})"
                columns_table.add_row(
                    attribute.name,
                    type_text,
                    "✓" if attribute.nullable else "",
                    attribute.default_value or "",
                    attribute.extra or "",
                )
            console.print(columns_table)
            for index in table_info.indexes:
                console.print(
                    f"  {index.index_type.value} {index.name} ({', '.join(index.expressions)})",
                    style="dim",
                )

        if info.relations:
            console.print(f"\n[bold]Relations ({len(info.relations)}):[/bold]")
            relations_table = Table(show_header=True, header_style="bold cyan")
            relations_table.add_column("Name")
            relations_table.add_column("From")
            relations_table.add_column("To")
            relations_table.add_column("Columns")
            relations_table.add_column("On Delete")
            for relation in info.relations:
                relations_table.add_row(
                    relation.name,
                    relation.importing_table,
                    relation.exporting_table,
                    ", ".join(f"{imp} -> {exp}" for exp, imp in relation.mapping),
                    relation.on_delete.value,
                )
            console.print(relations_table)

        if info.views:
            console.print(f"\n[bold]Views ({len(info.views)}):[/bold]")
            for view in info.views:
                console.print(f"  {view.name} ({', '.join(view.attributes)})")

        for warning in warnings or []:
            console.print(f"! {warning}", style="yellow")

    def print_script(self, dialect: str, statements: list[str], terminator: str = ";") -> None:
        """Print SQL statements, one per line, or a JSON object with the list.

        Args:
            dialect: Target dialect name
            statements: Statements in execution order
            terminator: Appended to every statement in terminal mode
        """
        if self.json_mode:
            print(json.dumps({"dialect": dialect, "statements": statements}, indent=2))
        else:
            # Plain echo so the script can be piped; SQL is not Rich markup
            for statement in statements:
                typer.echo(f"{statement}{terminator}")

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, ERSchemaError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            # For ERSchemaError, include context if available
            if isinstance(error, ERSchemaError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)

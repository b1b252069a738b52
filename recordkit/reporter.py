"""
Rich rendering for the recordkit CLI: schema tables and compiled queries.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from recordkit.domain.fields import FieldSpec, FieldType, Schema


def _plain(value: Any) -> Any:
    # IntEnum members print as their number
    if isinstance(value, int) and not isinstance(value, bool):
        return int(value)
    return value


def _default(spec: FieldSpec) -> str:
    if spec.type is FieldType.ENUM:
        return f"{_plain(spec.default)} ({spec.label(spec.default)})"
    return repr(_plain(spec.default))


def _allowed(labels: Mapping[Any, str]) -> str:
    return ", ".join(f"{_plain(value)}={label}" for value, label in labels.items())


def schema_table(schema: Schema) -> Table:
    """Build a table listing every field of ``schema``."""
    table = Table(title=f"{schema.name}", box=box.ROUNDED)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Default", justify="right", style="green")
    table.add_column("Allowed values", style="yellow")

    for name, spec in schema.items():
        table.add_row(name, spec.type.value, _default(spec), _allowed(schema.labels(name)))
    return table


def print_schemas(schemas: Sequence[Schema], console: Optional[Console] = None) -> None:
    """Render each schema as a rich table."""
    console = console or Console()
    if not schemas:
        console.print("[yellow]No schemas registered.[/yellow]")
        return
    for schema in schemas:
        console.print(schema_table(schema))


def print_query(sql: Sequence[str], params: Sequence[Any], console: Optional[Console] = None) -> None:
    """Render compiled SQL clauses and their positional params."""
    console = console or Console()
    console.print("[bold]SQL[/bold]")
    for clause in sql:
        console.print(f"  {clause}", highlight=False)
    table = Table(box=box.SIMPLE, title="Params")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Value", style="green")
    for index, value in enumerate(params, start=1):
        table.add_row(str(index), repr(value))
    console.print(table)


__all__ = ["print_query", "print_schemas", "schema_table"]

from __future__ import annotations

import json
import sys
from typing import Callable, Dict, List, Optional

import typer

from recordkit.config import get_settings
from recordkit.domain.alert import AlertFinder
from recordkit.domain.fields import registry
from recordkit.errors import RecordkitError
from recordkit.query.builder import Direction, SortKey
from recordkit.query.finder import ModelFinder
from recordkit.reporter import print_query, print_schemas
from recordkit.utils.logging import configure_logging

app = typer.Typer(help="recordkit developer CLI.")


def _finder_factories() -> Dict[str, Callable[[], ModelFinder]]:
    """Registry of finders reachable from the CLI."""
    return {
        "Alert": lambda: AlertFinder(),
    }


def _resolve_finder(name: str) -> ModelFinder:
    factories = _finder_factories()
    if name not in factories:
        raise typer.BadParameter(f"Unknown model '{name}'. Available: {', '.join(sorted(factories))}")
    return factories[name]()


def _parse_sort(values: List[str]) -> List[SortKey]:
    """``column`` or ``column:asc|desc``."""
    keys: List[SortKey] = []
    for value in values:
        column, _, direction = value.partition(":")
        keys.append((column, Direction((direction or "asc").upper())))
    return keys


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size}) "
        f"statement_timeout={settings.db_statement_timeout_ms}ms "
        f"archive_mode={settings.archive_mode}"
    )


@app.command()
def schemas() -> None:
    """
    List registered record schemas.
    """
    print_schemas([registry.get(name) for name in registry.names()])


@app.command()
def explain(
    model: str = typer.Option("Alert", "--model", "-m", help="Record class name."),
    filters: str = typer.Option("{}", "--filters", "-f", help="JSON filter map."),
    count: Optional[int] = typer.Option(None, "--count", "-c", help="LIMIT."),
    offset: Optional[int] = typer.Option(None, "--offset", "-o", help="OFFSET."),
    sort: Optional[List[str]] = typer.Option(None, "--sort", "-s", help="column[:asc|desc], repeatable."),
    reverse: bool = typer.Option(False, "--reverse", help="Flip every sort direction."),
) -> None:
    """
    Compile a filter map into SQL and params without executing it.
    """
    try:
        query = json.loads(filters)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--filters is not valid JSON: {exc}") from exc
    if not isinstance(query, dict):
        raise typer.BadParameter("--filters must be a JSON object")

    finder = _resolve_finder(model)
    try:
        sql, params = finder.generate_query(
            ["*"], query, count, offset, _parse_sort(sort or []), reverse=reverse
        )
    except (RecordkitError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    print_query(sql, params)


@app.command("active-counts")
def active_counts() -> None:
    """
    Show the number of New and In Progress alerts.
    """
    try:
        new, in_progress = AlertFinder().get_active_counts()
    except RecordkitError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(json.dumps({"new": new, "in_progress": in_progress}))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()

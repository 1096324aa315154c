"""
CLI: ``syncguard db`` — database management commands.
"""

from __future__ import annotations

import typer

from syncguard.cli.utils import cli_errors, load_settings, output_result
from syncguard.core.connection import create_connection
from syncguard.core.schema import apply_schema

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create the queue, state, transient and lock tables (idempotent)."""
    with cli_errors():
        conn, info = create_connection(load_settings(database).database)
        applied = apply_schema(conn)
        output_result(
            {"database": info.resolved_path or info.url, "tables": ", ".join(applied)},
            as_json=json_out,
            title="Database Init",
        )

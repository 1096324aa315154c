"""
CLI utility helpers — output formatting and context management.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from syncguard.core.errors import DatabaseError, SyncGuardError
from syncguard.core.settings import SyncGuardSettings, get_settings
from syncguard.factory import ReliabilityContext, create_reliability

console = Console()
err_console = Console(stderr=True)


# ── Context helper ───────────────────────────────────────────────────────


def load_settings(database: str | None = None) -> SyncGuardSettings:
    """Environment settings, with ``--database`` taking precedence."""
    settings = get_settings()
    if database:
        settings = settings.model_copy(update={"database": database})
    return settings


def make_context(database: str | None = None) -> ReliabilityContext:
    """Open the database (schema applied) and wire breaker, notifier and queue."""
    try:
        return create_reliability(load_settings(database))
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot open database: {e}", cause=e) from e


@contextmanager
def cli_errors() -> Iterator[None]:
    """Render SyncGuard and storage errors as a red message plus exit code 1."""
    try:
        yield
    except SyncGuardError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=1) from e
    except sqlite3.Error as e:
        err_console.print(f"[bold red]Error[/bold red] (DATABASE): {e}")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output_result(
    data: Any,
    *,
    as_json: bool = False,
    title: str = "",
    columns: list[str] | None = None,
) -> None:
    """Render a value, a dict, or a list of rows to the terminal."""
    if as_json:
        payload = [_to_dict(d) for d in data] if isinstance(data, (list, tuple)) else _to_dict(data)
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, (list, tuple)):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        _print_table(list(data), title=title, columns=columns)
    else:
        _print_dict(_to_dict(data), title=title)


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "", columns: list[str] | None = None) -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    rows = [_to_dict(item) for item in items]
    columns = columns or list(rows[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(row.get(col, "")) for col in columns))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")

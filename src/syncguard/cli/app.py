"""
Root Typer application for the syncguard CLI.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

from syncguard.core.logging import configure_logging

app = Typer(
    name="syncguard",
    help="syncguard — circuit breaker, distributed mutex and durable sync queue.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from syncguard import __version__

        typer.echo(f"syncguard {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override SYNCGUARD_LOG_LEVEL"),
) -> None:
    """syncguard CLI — inspect and maintain the sync queue and circuit breakers."""
    from syncguard.cli.utils import load_settings

    settings = load_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.json_logs,
        stream=sys.stderr,
        cache_loggers=False,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from syncguard.cli.breaker import app as breaker_app  # noqa: E402
from syncguard.cli.db import app as db_app  # noqa: E402
from syncguard.cli.queue import app as queue_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(queue_app, name="queue", help="Sync queue management.")
app.add_typer(breaker_app, name="breaker", help="Circuit breaker status and reset.")

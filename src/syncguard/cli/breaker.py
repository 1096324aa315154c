"""
CLI: ``syncguard breaker`` — circuit breaker inspection and manual reset.
"""

from __future__ import annotations

import typer

from syncguard.cli.utils import cli_errors, console, make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def status(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the global circuit state."""
    with cli_errors():
        ctx = make_context(database)
        output_result(ctx.breaker.get_state(), as_json=json_out, title="Circuit Breaker")


@app.command()
def reset(
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Close the global circuit and clear its failure streak."""
    with cli_errors():
        ctx = make_context(database)
        ctx.breaker.reset()
        console.print("[green]Circuit breaker closed.[/green]")


@app.command()
def modules(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List modules whose circuit is open."""
    with cli_errors():
        ctx = make_context(database)
        rows = [
            {"module": module, **entry}
            for module, entry in ctx.module_breaker.get_open_modules().items()
        ]
        output_result(rows, as_json=json_out, title="Open Module Circuits")


@app.command("reset-module")
def reset_module(
    module: str = typer.Argument(..., help="Module name"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Close one module's circuit."""
    with cli_errors():
        ctx = make_context(database)
        ctx.module_breaker.reset_module(module)
        console.print(f"[green]Module circuit for {module} closed.[/green]")

"""
CLI: ``syncguard queue`` — sync queue commands.
"""

from __future__ import annotations

import json
from typing import Any

import typer

from syncguard.cli.utils import cli_errors, console, make_context, output_result
from syncguard.core.errors import ValidationError

app = typer.Typer(no_args_is_help=True)

_LIST_COLUMNS = [
    "id",
    "module",
    "entity_type",
    "direction",
    "action",
    "wp_id",
    "odoo_id",
    "priority",
    "status",
    "attempts",
    "scheduled_at",
    "created_at",
]


def _parse_payload(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ValidationError(f"--payload is not valid JSON: {e}", field="payload") from e
    if not isinstance(data, dict):
        raise ValidationError("--payload must be a JSON object", field="payload", value=data)
    return data


@app.command()
def push(
    module: str = typer.Argument(..., help="Integration module"),
    entity_type: str = typer.Argument(..., help="Entity type"),
    wp_id: int = typer.Option(..., "--wp-id", help="Local entity id"),
    action: str = typer.Option("update", "--action", "-a", help="create | update | delete"),
    odoo_id: int = typer.Option(0, "--odoo-id", help="Remote entity id, if known"),
    payload: str | None = typer.Option(None, "--payload", help="JSON object"),
    priority: int | None = typer.Option(None, "--priority", "-p", help="1 (urgent) .. 10"),
    debounce: int | None = typer.Option(None, "--debounce", help="Seconds before the job is due"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Enqueue a local → remote job."""
    with cli_errors():
        ctx = make_context(database)
        job_id = ctx.queue.push(
            module,
            entity_type,
            action,
            wp_id,
            odoo_id=odoo_id,
            payload=_parse_payload(payload),
            priority=priority,
            debounce=debounce,
        )
        output_result({"job_id": job_id}, as_json=json_out, title="Queued")


@app.command()
def pull(
    module: str = typer.Argument(..., help="Integration module"),
    entity_type: str = typer.Argument(..., help="Entity type"),
    odoo_id: int = typer.Option(..., "--odoo-id", help="Remote entity id"),
    action: str = typer.Option("update", "--action", "-a", help="create | update | delete"),
    wp_id: int = typer.Option(0, "--wp-id", help="Local entity id, if known"),
    payload: str | None = typer.Option(None, "--payload", help="JSON object"),
    priority: int | None = typer.Option(None, "--priority", "-p", help="1 (urgent) .. 10"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Enqueue a remote → local job."""
    with cli_errors():
        ctx = make_context(database)
        job_id = ctx.queue.pull(
            module,
            entity_type,
            action,
            odoo_id,
            wp_id=wp_id,
            payload=_parse_payload(payload),
            priority=priority,
        )
        output_result({"job_id": job_id}, as_json=json_out, title="Queued")


@app.command("list")
def list_jobs(
    module: str | None = typer.Option(None, "--module", "-m"),
    entity_type: str | None = typer.Option(None, "--entity-type", "-e"),
    status: str | None = typer.Option(None, "--status", "-s", help="Any status; default pending"),
    limit: int = typer.Option(50, "--limit", "-n"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List pending jobs in drain order (or recent jobs by status)."""
    with cli_errors():
        ctx = make_context(database)
        if status and status != "pending":
            jobs = ctx.queue.list_jobs(status, limit, module=module, entity_type=entity_type)
        else:
            jobs = ctx.queue.get_pending(module, entity_type)[:limit]
        output_result(jobs, as_json=json_out, title="Sync Queue", columns=_LIST_COLUMNS)


@app.command()
def cancel(
    job_id: int = typer.Argument(..., help="Job id"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Cancel a job that is still pending."""
    with cli_errors():
        ctx = make_context(database)
        if not ctx.queue.cancel(job_id):
            console.print(f"[yellow]Job {job_id} is not pending; nothing cancelled.[/yellow]")
            raise typer.Exit(code=1)
        console.print(f"[green]Cancelled job {job_id}.[/green]")


@app.command()
def stats(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Counts by status plus queue health."""
    with cli_errors():
        ctx = make_context(database)
        data = {**ctx.queue.get_stats(), **ctx.queue.get_health_metrics()}
        output_result(data, as_json=json_out, title="Queue Stats")


@app.command()
def retry(
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Move every failed job back to pending with attempts reset."""
    with cli_errors():
        ctx = make_context(database)
        count = ctx.queue.retry_failed()
        console.print(f"Requeued {count} failed job(s).")


@app.command()
def cleanup(
    days: int | None = typer.Option(None, "--days", help="Age in days (default from settings)"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Delete done and failed jobs older than N days."""
    with cli_errors():
        ctx = make_context(database)
        count = ctx.queue.cleanup(days if days is not None else ctx.settings.cleanup_days)
        console.print(f"Deleted {count} finished job(s).")

"""Tests for the syncguard CLI (typer CliRunner)."""

import json

import pytest
from typer.testing import CliRunner

from syncguard.cli.app import app
from syncguard.core.connection import create_connection
from syncguard.core.state import StateStore
from syncguard.execution.module_breaker import ModuleCircuitBreaker
from syncguard.execution.queue import QueueManager
from syncguard.execution.repository import SyncQueueRepository

runner = CliRunner()


@pytest.fixture()
def db(tmp_path):
    return str(tmp_path / "syncguard.db")


def invoke(*args: str):
    return runner.invoke(app, ["--log-level", "ERROR", *args])


def invoke_json(*args: str):
    result = invoke(*args, "--json")
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "syncguard 0.1.0" in result.stdout


class TestDbCommands:
    def test_init(self, db):
        data = invoke_json("db", "init", "--database", db)
        assert data["database"].endswith("syncguard.db")
        assert "sync_queue" in data["tables"]


class TestQueueCommands:
    def test_push_and_list(self, db):
        pushed = invoke_json(
            "queue", "push", "crm", "contact",
            "--wp-id", "42", "--action", "create", "--payload", '{"email": "a@b.c"}',
            "--debounce", "0", "--database", db,
        )
        jobs = invoke_json("queue", "list", "--database", db)
        assert [job["id"] for job in jobs] == [pushed["job_id"]]
        assert jobs[0]["action"] == "create"
        assert jobs[0]["direction"] == "wp_to_odoo"

    def test_push_dedups(self, db):
        first = invoke_json("queue", "push", "crm", "contact", "--wp-id", "1", "--database", db)
        second = invoke_json("queue", "push", "crm", "contact", "--wp-id", "1", "--database", db)
        assert first == second

    def test_pull(self, db):
        invoke_json("queue", "pull", "crm", "contact", "--odoo-id", "9", "--database", db)
        [job] = invoke_json("queue", "list", "--module", "crm", "--database", db)
        assert job["direction"] == "odoo_to_wp"
        assert job["odoo_id"] == 9

    def test_bad_action(self, db):
        result = invoke("queue", "push", "crm", "contact", "--wp-id", "1", "--action", "move",
                        "--database", db)
        assert result.exit_code == 1
        assert "VALIDATION" in result.output

    def test_bad_payload(self, db):
        result = invoke("queue", "push", "crm", "contact", "--wp-id", "1", "--payload", "[1]",
                        "--database", db)
        assert result.exit_code == 1

    def test_cancel(self, db):
        pushed = invoke_json("queue", "push", "crm", "contact", "--wp-id", "1", "--database", db)
        job_id = str(pushed["job_id"])

        result = invoke("queue", "cancel", job_id, "--database", db)
        assert result.exit_code == 0
        assert "Cancelled" in result.stdout

        result = invoke("queue", "cancel", job_id, "--database", db)
        assert result.exit_code == 1

    def test_stats(self, db):
        invoke_json("queue", "pull", "crm", "contact", "--odoo-id", "1", "--database", db)
        stats = invoke_json("queue", "stats", "--database", db)
        assert stats["pending"] == 1
        assert stats["total"] == 1
        assert stats["depth_by_module"] == {"crm": 1}
        assert stats["success_rate"] is None

    def test_retry_and_cleanup(self, db):
        result = invoke("queue", "retry", "--database", db)
        assert result.exit_code == 0
        assert "Requeued 0" in result.stdout

        result = invoke("queue", "cleanup", "--days", "7", "--database", db)
        assert result.exit_code == 0
        assert "Deleted 0" in result.stdout

    def test_list_empty_table_output(self, db):
        result = invoke("queue", "list", "--database", db)
        assert result.exit_code == 0
        assert "No items" in result.stdout

    def test_list_filters_by_status_and_module(self, db):
        conn, _ = create_connection(db, init_schema=True)
        queue = QueueManager(SyncQueueRepository(conn))
        crm_failed = queue.pull("crm", "contact", "update", odoo_id=1)
        events_failed = queue.pull("events", "event", "update", odoo_id=2)
        queue.pull("crm", "contact", "update", odoo_id=3)
        queue.update_status(crm_failed, "failed")
        queue.update_status(events_failed, "failed")
        conn.close()

        jobs = invoke_json("queue", "list", "--status", "failed", "--module", "crm", "--database", db)
        assert [job["id"] for job in jobs] == [crm_failed]

        jobs = invoke_json("queue", "list", "--status", "failed", "--database", db)
        assert [job["id"] for job in jobs] == [events_failed, crm_failed]

        jobs = invoke_json("queue", "list", "--status", "pending", "--module", "events", "--database", db)
        assert jobs == []


class TestBreakerCommands:
    def test_status_closed(self, db):
        data = invoke_json("breaker", "status", "--database", db)
        assert data["state"] == "closed"
        assert data["failure_count"] == 0

    def test_reset(self, db):
        result = invoke("breaker", "reset", "--database", db)
        assert result.exit_code == 0
        assert "closed" in result.stdout

    def test_modules_and_reset_module(self, db):
        conn, _ = create_connection(db, init_schema=True)
        breaker = ModuleCircuitBreaker(StateStore(conn), failure_threshold=1)
        breaker.record_module_batch("crm", 0, 3)
        conn.close()

        [row] = invoke_json("breaker", "modules", "--database", db)
        assert row["module"] == "crm"
        assert row["failures"] == 1

        result = invoke("breaker", "reset-module", "crm", "--database", db)
        assert result.exit_code == 0
        assert invoke_json("breaker", "modules", "--database", db) == []

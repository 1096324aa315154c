"""Tests for Job decoding."""

import sqlite3

import pytest

from syncguard.core.errors import JobDecodeError
from syncguard.execution.models import Job, JobAction, JobStatus, SyncDirection


class TestFromRow:
    def test_empty_mapping_uses_defaults(self):
        job = Job.from_row({})
        assert job.id == 0
        assert job.direction == SyncDirection.WP_TO_ODOO
        assert job.action == JobAction.UPDATE
        assert job.status == JobStatus.PENDING
        assert job.priority == 5
        assert job.attempts == 0
        assert job.max_attempts == 3
        assert job.payload is None
        assert job.created_at == ""

    def test_numeric_strings_coerced(self):
        job = Job.from_row({"id": "12", "wp_id": "7", "priority": "2", "attempts": "1.0"})
        assert (job.id, job.wp_id, job.priority, job.attempts) == (12, 7, 2, 1)

    @pytest.mark.parametrize("raw,expected", [(0, 1), (-3, 1), (11, 10), ("abc", 5), (None, 5)])
    def test_priority_clamped(self, raw, expected):
        assert Job.from_row({"priority": raw}).priority == expected

    def test_negative_attempts_floored(self):
        assert Job.from_row({"attempts": -2}).attempts == 0

    def test_unknown_enums_default(self):
        job = Job.from_row({"status": "exploded", "action": "move", "direction": "sideways"})
        assert job.status == JobStatus.PENDING
        assert job.action == JobAction.UPDATE
        assert job.direction == SyncDirection.WP_TO_ODOO

    def test_sqlite_row(self):
        raw = sqlite3.connect(":memory:")
        raw.row_factory = sqlite3.Row
        row = raw.execute(
            "SELECT 3 AS id, 'crm' AS module, 'odoo_to_wp' AS direction, 'done' AS status"
        ).fetchone()
        job = Job.from_row(row)
        assert job.id == 3
        assert job.module == "crm"
        assert job.direction == SyncDirection.ODOO_TO_WP
        assert job.status == JobStatus.DONE
        raw.close()

    @pytest.mark.parametrize("row", [None, 42, "row", [1, 2]])
    def test_non_mapping_raises(self, row):
        with pytest.raises(JobDecodeError):
            Job.from_row(row)


class TestJobHelpers:
    def test_payload_data(self):
        assert Job(payload='{"a": 1}').payload_data == {"a": 1}
        assert Job(payload="not json").payload_data == {}
        assert Job(payload="[1, 2]").payload_data == {}
        assert Job().payload_data == {}

    def test_exhausted_and_terminal(self):
        assert Job(attempts=3, max_attempts=3).is_exhausted is True
        assert Job(attempts=2, max_attempts=3).is_exhausted is False
        assert Job(status=JobStatus.CANCELLED).is_terminal is True
        assert Job(status=JobStatus.PROCESSING).is_terminal is False

    def test_to_dict_uses_values(self):
        data = Job(id=1, status=JobStatus.FAILED).to_dict()
        assert data["status"] == "failed"
        assert data["direction"] == "wp_to_odoo"
        assert data["action"] == "update"
        assert data["id"] == 1

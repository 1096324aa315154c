"""Tests for the durable keyed StateStore."""

import math

import pytest

from syncguard.core.state import StateStore, as_float, as_int


class TestStateStore:
    def test_missing_returns_default(self, state):
        assert state.get("nope") is None
        assert state.get("nope", {}) == {}

    def test_roundtrip_dict(self, state):
        state.set("circuit_breaker_state", {"opened_at": 1700000000, "failures": 3})
        assert state.get("circuit_breaker_state") == {"opened_at": 1700000000, "failures": 3}

    def test_overwrite(self, state):
        state.set("k", 1)
        state.set("k", 2)
        assert state.get("k") == 2

    def test_delete(self, state):
        state.set("k", 1)
        state.delete("k")
        assert state.get("k") is None
        state.delete("k")

    def test_undecodable_value_is_default(self, state, conn):
        conn.execute(
            "INSERT INTO syncguard_state (state_key, value, updated_at) VALUES (?, ?, ?)",
            ("broken", "{not json", "2024-01-01 00:00:00"),
        )
        conn.commit()
        assert state.get("broken", "fallback") == "fallback"

    def test_visible_to_other_instances(self, conn, clock):
        StateStore(conn, clock=clock).set("shared", [1, 2])
        assert StateStore(conn, clock=clock).get("shared") == [1, 2]

    def test_updated_at_from_clock(self, state, conn):
        state.set("k", True)
        row = conn.execute(
            "SELECT updated_at FROM syncguard_state WHERE state_key = ?", ("k",)
        ).fetchone()
        assert row[0] == "2023-11-14 22:13:20"


class TestCoercion:
    @pytest.mark.parametrize(
        "value, expected",
        [(7, 7), ("12", 12), ("12.9", 12), (3.5, 3), (None, 0), ("x", 0), (True, 0), ([1], 0), ("nan", 0)],
    )
    def test_as_int(self, value, expected):
        assert as_int(value) == expected

    def test_as_int_default(self):
        assert as_int("garbage", default=-1) == -1

    @pytest.mark.parametrize(
        "value, expected",
        [(1.5, 1.5), ("1700000000.25", 1700000000.25), (None, 0.0), ("yesterday", 0.0),
         (False, 0.0), ({}, 0.0), (math.inf, 0.0), ("nan", 0.0)],
    )
    def test_as_float(self, value, expected):
        assert as_float(value) == expected

"""Tests for devflow.session.SessionStore."""

import asyncio

from devflow.session import SessionStore


class TestSessionStore:
    def test_get_creates_once(self, make_oracle):
        store = SessionStore(oracle_factory=make_oracle)
        first = store.get("alice")
        assert store.get("alice") is first
        assert "alice" in store
        assert len(store) == 1

    def test_sessions_are_isolated(self, make_oracle, candidate_payload, intake, mock_config):
        oracles = []

        def factory():
            oracles.append(make_oracle(structured=[candidate_payload]))
            return oracles[-1]

        store = SessionStore(oracle_factory=factory)
        asyncio.run(store.get("alice").submit_intake(intake))

        assert store.get("alice").stage == "enumeration"
        assert store.get("bob").stage == "intake"
        assert store.get("bob").snapshot()["candidates"] == []
        assert len(oracles) == 2

    def test_reset_replaces_machine(self, make_oracle):
        store = SessionStore(oracle_factory=make_oracle)
        old = store.get("alice")
        assert store.reset("alice") is not old
        assert store.get("alice").stage == "intake"

    def test_drop(self, make_oracle):
        store = SessionStore(oracle_factory=make_oracle)
        store.get("alice")
        store.drop("alice")
        store.drop("nobody")
        assert "alice" not in store
        assert len(store) == 0

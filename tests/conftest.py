"""Shared fixtures for the DevFlow test suite."""

import asyncio
import copy
from unittest.mock import patch

import pytest

from devflow.agents.enumerator import _to_candidate


class FakeOracle:
    """Scripted stand-in for OracleClient.

    ``structured`` and ``replies`` are consumed in order; an Exception entry is
    raised instead of returned. Setting ``gate`` to an asyncio.Event holds
    every call until the event is set.
    """

    def __init__(self, structured=None, replies=None):
        self.structured = list(structured or [])
        self.replies = list(replies or [])
        self.structured_calls = []
        self.converse_calls = []
        self.gate: asyncio.Event | None = None

    async def generate_structured(self, instruction, schema, system_context):
        self.structured_calls.append(
            {"instruction": instruction, "schema": schema, "system_context": system_context}
        )
        if self.gate is not None:
            await self.gate.wait()
        result = self.structured.pop(0)
        if isinstance(result, Exception):
            raise result
        return copy.deepcopy(result)

    async def converse(self, history, new_message, system_context):
        self.converse_calls.append(
            {"history": copy.deepcopy(history), "new_message": new_message, "system_context": system_context}
        )
        if self.gate is not None:
            await self.gate.wait()
        result = self.replies.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def make_oracle():
    """Factory for scripted oracles: make_oracle(structured=[...], replies=[...])."""
    return FakeOracle


@pytest.fixture
def intake():
    """The study-partner intake used across scenarios."""
    return {
        "problem": "Students can't find study partners",
        "target_user": "undergrad CS students",
        "output_format": "mobile web app",
        "constraints": "must be free-tier, 48h deadline",
    }


@pytest.fixture
def candidate_payload():
    """Oracle JSON for a valid batch of three candidates (wire field names)."""
    return [
        {
            "id": "p1",
            "name": "Serverless PWA",
            "architecture": "Next.js PWA on Vercel with Supabase auth and Postgres.",
            "summary": "A progressive web app backed by managed services.",
            "tools": ["Next.js", "Supabase", "Vercel"],
            "complexity": "Low",
            "risks": ["Free-tier limits"],
            "scalability": "Scales with managed tiers.",
            "pros": ["Fast to ship"],
            "cons": ["Vendor lock-in"],
        },
        {
            "id": "p2",
            "name": "Firebase Realtime App",
            "architecture": "React SPA with Firebase Auth, Firestore and Cloud Functions.",
            "summary": "Realtime matching on Firebase.",
            "tools": ["React", "Firebase"],
            "complexity": "Medium",
            "risks": ["Query limitations"],
            "scalability": "Good for small campuses.",
            "pros": ["Realtime updates"],
            "cons": ["NoSQL modeling effort"],
        },
        {
            "id": "p3",
            "name": "Django Monolith",
            "architecture": "Django server-rendered app on a free PaaS with SQLite.",
            "summary": "Classic monolith.",
            "tools": ["Django", "SQLite"],
            "complexity": "High",
            "risks": ["Cold starts on free PaaS"],
            "scalability": "Vertical only.",
            "pros": ["Batteries included"],
            "cons": ["Less mobile-friendly"],
        },
    ]


@pytest.fixture
def candidates(candidate_payload):
    """The candidate payload mapped into Candidate records."""
    return [_to_candidate(item) for item in candidate_payload]


@pytest.fixture
def evaluation_payload():
    """Oracle JSON for a consistent evaluation of the three candidates."""
    return {
        "selectedPipelineId": "p1",
        "reasoning": "The PWA ships fastest on free tiers and needs no app store review.",
        "reasoningSummary": "Fastest path to a free, mobile-friendly launch.",
        "evaluations": [
            {"candidateId": "p1", "speed": 9, "reliability": 7, "cognitiveLoad": 3, "extensibility": 7},
            {"candidateId": "p2", "speed": 7, "reliability": 8, "cognitiveLoad": 5, "extensibility": 6},
            {"candidateId": "p3", "speed": 5, "reliability": 8, "cognitiveLoad": 6, "extensibility": 8},
        ],
    }


@pytest.fixture
def valid_flowchart():
    return (
        "graph TD\n"
        '    Start["Student signs in"] --> Profile["Enter courses"]\n'
        '    Profile --> Match{"Partner found?"}\n'
        '    Match -->|yes| Chat["Open chat"]\n'
        '    Match -->|no| Wait["Join waitlist"]'
    )


@pytest.fixture
def blueprint_payload(valid_flowchart):
    """Oracle JSON for a blueprint with a renderable flowchart."""
    return {
        "markdown": "## System Architecture\nNext.js front end, Supabase back end.",
        "summary": "Ship a PWA in two days on free tiers.",
        "flowchart": valid_flowchart,
    }


@pytest.fixture
def mock_config(tmp_path):
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "oracle_provider": "google",
        "structured_model": "gemini-test",
        "chat_model": "gemini-test",
        "temperature": 0,
        "oracle_timeout_seconds": 5,
        "llm_max_retries": 2,
        "llm_retry_min_wait": 0,
        "llm_retry_max_wait": 0,
        "min_candidates": 2,
        "max_candidates": 4,
        "reasoning_summary_max_words": 30,
        "output_path": str(tmp_path / "output" / "blueprint.md"),
    }
    with patch("devflow.config._config", test_config):
        yield test_config

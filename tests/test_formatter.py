"""Tests for formatter: _render_markdown, write_blueprint."""

from unittest.mock import patch

import pytest

from devflow.utils.formatter import _render_markdown, _slugify, write_blueprint


@pytest.fixture
def finished_state(intake, candidates, blueprint_payload):
    """Workflow state after a completed blueprint stage."""
    return {
        "stage": "blueprint",
        "intake": intake,
        "candidates": candidates,
        "decision": {
            "selected_candidate_id": "p1",
            "reasoning": "The PWA ships fastest on free tiers.",
            "reasoning_summary": "Fastest path to launch.",
            "scores": {
                "p1": {"speed": 9, "reliability": 7, "cognitive_load": 3, "extensibility": 7},
                "p2": {"speed": 7, "reliability": 8, "cognitive_load": 5, "extensibility": 6},
                "p3": {"speed": 5, "reliability": 8, "cognitive_load": 6, "extensibility": 8},
            },
        },
        "blueprint": blueprint_payload,
        "diagram_issues": [],
    }


# --- _render_markdown (pure function) ---

class TestRenderMarkdown:
    def test_selected_name_in_title(self, finished_state):
        md = _render_markdown(finished_state)
        assert md.startswith("# Serverless PWA — Execution Blueprint")

    def test_project_overview(self, finished_state):
        md = _render_markdown(finished_state)
        assert "- **Problem:** Students can't find study partners" in md
        assert "- **Constraints:** must be free-tier, 48h deadline" in md

    def test_scores_table_marks_selection(self, finished_state):
        md = _render_markdown(finished_state)
        assert "| Serverless PWA (selected) | 9/10 | 7/10 | 3/10 | 7/10 |" in md
        assert "| Django Monolith | 5/10 | 8/10 | 6/10 | 8/10 |" in md

    def test_summary_and_plan(self, finished_state):
        md = _render_markdown(finished_state)
        assert "## Executive Summary" in md
        assert "Ship a PWA in two days on free tiers." in md
        assert "## System Architecture" in md

    def test_flowchart_in_mermaid_block(self, finished_state, valid_flowchart):
        md = _render_markdown(finished_state)
        assert f"```mermaid\n{valid_flowchart}\n```" in md

    def test_all_candidates_listed(self, finished_state):
        md = _render_markdown(finished_state)
        assert "### Firebase Realtime App" in md
        assert "- **Tools:** Django, SQLite" in md

    def test_diagram_warnings(self, finished_state):
        finished_state["diagram_issues"] = ["Node id 'step-1' must be a bare alphanumeric identifier."]
        md = _render_markdown(finished_state)
        assert "## Diagram Warnings" in md
        assert "- Node id 'step-1' must be a bare alphanumeric identifier." in md

    def test_no_warnings_section_for_clean_diagram(self, finished_state):
        assert "Diagram Warnings" not in _render_markdown(finished_state)

    def test_empty_state_gracefully(self):
        md = _render_markdown({})
        assert "Untitled Architecture" in md


class TestSlugify:
    def test_slug(self):
        assert _slugify("Serverless PWA (Next.js + Supabase)") == "serverless-pwa-next-js-supabase"


# --- write_blueprint (file I/O) ---

class TestWriteBlueprint:
    @patch("devflow.utils.formatter.get_config")
    def test_creates_file_named_after_candidate(self, mock_gc, tmp_path, finished_state):
        mock_gc.return_value = {"output_path": str(tmp_path / "out" / "blueprint.md")}
        result = write_blueprint(finished_state)
        assert result == tmp_path / "out" / "serverless-pwa.md"
        assert result.read_text(encoding="utf-8").startswith("# Serverless PWA")

    @patch("devflow.utils.formatter.get_config")
    def test_never_overwrites(self, mock_gc, tmp_path, finished_state):
        mock_gc.return_value = {"output_path": str(tmp_path / "blueprint.md")}
        first = write_blueprint(finished_state)
        second = write_blueprint(finished_state)
        assert first != second
        assert second.name == "serverless-pwa (2).md"

    @patch("devflow.utils.formatter.get_config")
    def test_falls_back_to_configured_name(self, mock_gc, tmp_path):
        mock_gc.return_value = {"output_path": str(tmp_path / "blueprint.md")}
        result = write_blueprint({})
        assert result.name == "blueprint.md"

"""Tests for the autopilot graph: _route_after_stage and run_autopilot."""

import asyncio

from devflow.errors import EMPTY_RESULT, INCONSISTENT_SELECTION, ORACLE_FAILURE, TIMEOUT, OracleError
from devflow.graph import _route_after_stage, initial_autopilot_state, run_autopilot


class TestRouteAfterStage:
    def test_no_error_moves_on(self, intake):
        assert _route_after_stage(initial_autopilot_state(intake)) == "next"

    def test_error_ends(self, intake):
        state = initial_autopilot_state(intake)
        state["error"] = "The oracle proposed no candidate architectures."
        assert _route_after_stage(state) == "end"


class TestRunAutopilot:
    def test_full_run(self, make_oracle, candidate_payload, evaluation_payload, blueprint_payload, intake, mock_config):
        oracle = make_oracle(structured=[candidate_payload, evaluation_payload, blueprint_payload])

        result = asyncio.run(run_autopilot(intake, oracle))

        assert result["error"] is None
        assert len(result["candidates"]) == 3
        assert result["decision"]["selected_candidate_id"] == "p1"
        assert result["blueprint"]["summary"] == "Ship a PWA in two days on free tiers."
        assert result["diagram_issues"] == []
        assert len(oracle.structured_calls) == 3

    def test_stops_on_empty_candidate_set(self, make_oracle, intake, mock_config):
        oracle = make_oracle(structured=[[]])

        result = asyncio.run(run_autopilot(intake, oracle))

        assert result["error_kind"] == EMPTY_RESULT
        assert result["decision"] is None
        assert len(oracle.structured_calls) == 1

    def test_stops_on_inconsistent_selection(self, make_oracle, candidate_payload, evaluation_payload,
                                             intake, mock_config):
        evaluation_payload["selectedPipelineId"] = "p7"
        oracle = make_oracle(structured=[candidate_payload, evaluation_payload])

        result = asyncio.run(run_autopilot(intake, oracle))

        assert result["error_kind"] == INCONSISTENT_SELECTION
        assert result["blueprint"] is None
        assert len(oracle.structured_calls) == 2

    def test_architect_failure_recorded(self, make_oracle, candidate_payload, evaluation_payload, intake, mock_config):
        oracle = make_oracle(structured=[candidate_payload, evaluation_payload, OracleError(TIMEOUT, "slow")])

        result = asyncio.run(run_autopilot(intake, oracle))

        assert result["error_kind"] == ORACLE_FAILURE
        assert result["decision"] is not None

    def test_invalid_diagram_completes(self, make_oracle, candidate_payload, evaluation_payload,
                                       blueprint_payload, intake, mock_config):
        blueprint_payload["flowchart"] = 'graph TD\n    A --> B["Next"]'
        oracle = make_oracle(structured=[candidate_payload, evaluation_payload, blueprint_payload])

        result = asyncio.run(run_autopilot(intake, oracle))

        assert result["error"] is None
        assert result["blueprint"] is not None
        assert result["diagram_issues"] == ["Node 'A' is used before it is defined with a quoted label."]

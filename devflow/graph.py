"""LangGraph StateGraph for the non-interactive (autopilot) run.

Runs enumerate -> evaluate -> architect in one pass and stops at the first
fatal stage error. The interactive path goes through WorkflowMachine instead.
"""

from typing import Optional, TypedDict

from langgraph.graph import END, StateGraph

from devflow.agents.architect import generate_blueprint
from devflow.agents.enumerator import enumerate_candidates
from devflow.agents.evaluator import evaluate_candidates
from devflow.errors import StageError
from devflow.state import Blueprint, Candidate, Decision, Intake, find_candidate
from devflow.workflow import check_candidate_set


class AutopilotState(TypedDict):
    intake: Intake
    candidates: list[Candidate]
    decision: Optional[Decision]
    blueprint: Optional[Blueprint]
    diagram_issues: list[str]
    error: Optional[str]
    error_kind: Optional[str]


def _stage_failed(exc: StageError) -> dict:
    return {"error": str(exc), "error_kind": exc.kind}


def _route_after_stage(state: AutopilotState) -> str:
    """Conditional edge: stop on a recorded error, otherwise move on."""
    return "end" if state.get("error") else "next"


def build_autopilot(oracle):
    """Compile the autopilot graph around an oracle client."""

    async def enumerate_node(state: AutopilotState) -> dict:
        try:
            candidates = check_candidate_set(await enumerate_candidates(state["intake"], oracle))
        except StageError as exc:
            return _stage_failed(exc)
        return {"candidates": candidates}

    async def evaluate_node(state: AutopilotState) -> dict:
        try:
            decision = await evaluate_candidates(state["candidates"], state["intake"], oracle)
        except StageError as exc:
            return _stage_failed(exc)
        return {"decision": decision}

    async def architect_node(state: AutopilotState) -> dict:
        candidate = find_candidate(state["candidates"], state["decision"]["selected_candidate_id"])
        try:
            blueprint, diagram_error = await generate_blueprint(candidate, state["intake"], oracle)
        except StageError as exc:
            return _stage_failed(exc)
        return {
            "blueprint": blueprint,
            "diagram_issues": list(diagram_error.issues) if diagram_error else [],
        }

    workflow = StateGraph(AutopilotState)

    workflow.add_node("enumerate", enumerate_node)
    workflow.add_node("evaluate", evaluate_node)
    workflow.add_node("architect", architect_node)

    workflow.set_entry_point("enumerate")

    workflow.add_conditional_edges("enumerate", _route_after_stage, {"next": "evaluate", "end": END})
    workflow.add_conditional_edges("evaluate", _route_after_stage, {"next": "architect", "end": END})
    workflow.add_edge("architect", END)

    return workflow.compile()


def initial_autopilot_state(intake: Intake) -> AutopilotState:
    return {
        "intake": intake,
        "candidates": [],
        "decision": None,
        "blueprint": None,
        "diagram_issues": [],
        "error": None,
        "error_kind": None,
    }


async def run_autopilot(intake: Intake, oracle) -> AutopilotState:
    """Run the whole pipeline without stopping for user input."""
    graph = build_autopilot(oracle)
    return await graph.ainvoke(initial_autopilot_state(intake))

"""Workflow artifacts and state — the data handed between stages."""

from typing import Literal, Optional, TypedDict

Stage = Literal["intake", "enumeration", "evaluation", "blueprint", "implementation"]
Complexity = Literal["Low", "Medium", "High"]
Role = Literal["user", "assistant"]

STAGES: tuple[str, ...] = ("intake", "enumeration", "evaluation", "blueprint", "implementation")
COMPLEXITY_LEVELS: tuple[str, ...] = ("Low", "Medium", "High")
SCORE_CRITERIA: tuple[str, ...] = ("speed", "reliability", "cognitive_load", "extensibility")


class Intake(TypedDict):
    problem: str
    target_user: str
    output_format: str
    constraints: str


class Candidate(TypedDict):
    id: str  # Unique within its batch.
    name: str
    architecture_description: str
    summary: str
    tools: list[str]
    complexity: Complexity
    risks: list[str]
    scalability_note: str
    pros: list[str]
    cons: list[str]


class Scorecard(TypedDict):
    speed: int
    reliability: int
    cognitive_load: int  # 10 = heaviest load on the developer.
    extensibility: int


class Decision(TypedDict):
    selected_candidate_id: str
    reasoning: str
    reasoning_summary: str
    scores: dict[str, Scorecard]  # Keyed by candidate id, one entry per candidate.


class Blueprint(TypedDict):
    markdown: str
    summary: str
    flowchart: str


class ConversationTurn(TypedDict):
    role: Role
    content: str


class ImplementationContext(TypedDict):
    """Frozen copy of the upstream artifacts the assistant conversation talks about."""

    intake: Intake
    candidate: Candidate
    blueprint: Blueprint


class WorkflowState(TypedDict):
    stage: Stage
    intake: Optional[Intake]
    candidates: list[Candidate]  # Oracle emission order.
    decision: Optional[Decision]
    blueprint: Optional[Blueprint]
    diagram_issues: list[str]  # Grammar defects of blueprint["flowchart"], if any.
    context: Optional[ImplementationContext]
    conversation: list[ConversationTurn]  # Append-only.
    pending_operation: bool
    last_error: Optional[str]


def initial_state() -> WorkflowState:
    """Return a fresh state positioned at the intake stage."""
    return {
        "stage": "intake",
        "intake": None,
        "candidates": [],
        "decision": None,
        "blueprint": None,
        "diagram_issues": [],
        "context": None,
        "conversation": [],
        "pending_operation": False,
        "last_error": None,
    }


def find_candidate(candidates: list[Candidate], candidate_id: str) -> Optional[Candidate]:
    """Return the candidate with the given id, or None."""
    for candidate in candidates:
        if candidate["id"] == candidate_id:
            return candidate
    return None

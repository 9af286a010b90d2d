"""Workflow State Machine — owns the session's WorkflowState and sequences the stages.

Stages run in a fixed order::

    intake -> enumeration -> evaluation -> blueprint -> implementation

Oracle-backed operations are async. While one is in flight
``pending_operation`` is set and every other mutating operation is rejected
with a ``busy`` StageError; ``snapshot()`` stays available.

Failures never move the stage: ``last_error`` is set, the error is re-raised,
and the previous artifacts stay in place. Artifacts are only ever replaced by
complete, validated ones.
"""

import copy
import sys

from devflow.agents.architect import generate_blueprint
from devflow.agents.assistant import greeting_turn, reply
from devflow.agents.enumerator import enumerate_candidates
from devflow.agents.evaluator import evaluate_candidates
from devflow.errors import (
    BUSY,
    EMPTY_RESULT,
    ILLEGAL_TRANSITION,
    INCONSISTENT_SELECTION,
    INVALID_INTAKE,
    INVALID_MESSAGE,
    StageError,
)
from devflow.state import Candidate, WorkflowState, find_candidate, initial_state
from devflow.utils.validator import validate_intake

_BACK = {
    "intake": "intake",
    "enumeration": "intake",
    "evaluation": "intake",
    "blueprint": "evaluation",
    "implementation": "blueprint",
}


def check_candidate_set(candidates: list[Candidate]) -> list[Candidate]:
    """Reject an empty candidate set; return the set unchanged otherwise."""
    if not candidates:
        raise StageError(EMPTY_RESULT, "The oracle proposed no candidate architectures.")
    return candidates


class WorkflowMachine:
    """One session's orchestrator. Not safe to share across sessions."""

    def __init__(self, oracle, state: WorkflowState | None = None):
        self._oracle = oracle
        self._state: WorkflowState = state if state is not None else initial_state()

    # --- Read-only surface ---

    def snapshot(self) -> WorkflowState:
        """Deep copy of the current state; mutating it has no effect on the machine."""
        return copy.deepcopy(self._state)

    @property
    def stage(self) -> str:
        return self._state["stage"]

    @property
    def pending(self) -> bool:
        return self._state["pending_operation"]

    # --- Internals ---

    def _fail(self, error: StageError) -> StageError:
        self._state["last_error"] = str(error)
        return error

    def _check(self, operation: str, allowed: tuple[str, ...]) -> None:
        """Reject the operation if another one is in flight or the stage is wrong."""
        if self._state["pending_operation"]:
            raise StageError(BUSY, f"Cannot {operation}: another operation is still running.")
        if self._state["stage"] not in allowed:
            raise self._fail(
                StageError(ILLEGAL_TRANSITION, f"Cannot {operation} from the {self._state['stage']} stage.")
            )

    async def _call(self, coro):
        """Await a stage executor with the pending flag held."""
        self._state["pending_operation"] = True
        try:
            return await coro
        except StageError as exc:
            raise self._fail(exc)
        finally:
            self._state["pending_operation"] = False

    def _succeed(self, stage: str) -> WorkflowState:
        self._state["stage"] = stage
        self._state["last_error"] = None
        return self.snapshot()

    # --- Transitions ---

    async def submit_intake(self, intake: dict) -> WorkflowState:
        """Replace the intake, clear everything downstream and enumerate candidates."""
        self._check("submit the intake", ("intake",))
        try:
            cleaned = validate_intake(intake)
        except ValueError as exc:
            raise self._fail(StageError(INVALID_INTAKE, str(exc))) from exc

        state = self._state
        state["intake"] = cleaned
        state["candidates"] = []
        state["decision"] = None
        state["blueprint"] = None
        state["diagram_issues"] = []
        state["context"] = None
        state["conversation"] = []

        candidates = await self._call(enumerate_candidates(cleaned, self._oracle))
        try:
            check_candidate_set(candidates)
        except StageError as exc:
            raise self._fail(exc)

        state["candidates"] = candidates
        print(f"[DevFlow] Enumerated {len(candidates)} candidate architecture(s).", file=sys.stderr)
        return self._succeed("enumeration")

    async def run_evaluation(self) -> WorkflowState:
        """Score the current candidate set and select one; replaces any prior decision."""
        self._check("run the evaluation", ("enumeration", "evaluation"))
        state = self._state

        decision = await self._call(evaluate_candidates(state["candidates"], state["intake"], self._oracle))

        state["decision"] = decision
        state["blueprint"] = None
        state["diagram_issues"] = []
        print(f"[DevFlow] Selected candidate '{decision['selected_candidate_id']}'.", file=sys.stderr)
        return self._succeed("evaluation")

    async def generate_blueprint(self) -> WorkflowState:
        """Produce the blueprint for the selected candidate.

        A flowchart that fails the grammar check does not block the
        transition; its issues are stored in ``diagram_issues``.
        """
        self._check("generate the blueprint", ("evaluation",))
        state = self._state
        if state["decision"] is None:
            raise self._fail(StageError(ILLEGAL_TRANSITION, "Cannot generate the blueprint without a decision."))

        candidate = find_candidate(state["candidates"], state["decision"]["selected_candidate_id"])
        if candidate is None:
            raise self._fail(
                StageError(INCONSISTENT_SELECTION, "The selected candidate is not in the current candidate set.")
            )

        blueprint, diagram_error = await self._call(
            generate_blueprint(candidate, state["intake"], self._oracle)
        )

        state["blueprint"] = blueprint
        state["diagram_issues"] = list(diagram_error.issues) if diagram_error else []
        return self._succeed("blueprint")

    def continue_to_implementation(self) -> WorkflowState:
        """Freeze the project context and open the assistant conversation."""
        self._check("continue to implementation", ("blueprint",))
        state = self._state
        if state["blueprint"] is None:
            raise self._fail(StageError(ILLEGAL_TRANSITION, "Cannot continue to implementation without a blueprint."))

        candidate = find_candidate(state["candidates"], state["decision"]["selected_candidate_id"])
        state["context"] = copy.deepcopy({
            "intake": state["intake"],
            "candidate": candidate,
            "blueprint": state["blueprint"],
        })
        state["conversation"] = [greeting_turn()]
        return self._succeed("implementation")

    async def send_message(self, message: str) -> WorkflowState:
        """Send a user message to the implementation assistant.

        The user turn and the assistant turn are appended together.
        """
        self._check("send a message", ("implementation",))
        if not isinstance(message, str) or not message.strip():
            raise self._fail(StageError(INVALID_MESSAGE, "Message must be a non-empty string."))

        state = self._state
        turn = await self._call(
            reply(list(state["conversation"]), message.strip(), state["context"], self._oracle)
        )
        state["conversation"].extend([{"role": "user", "content": message.strip()}, turn])
        return self._succeed("implementation")

    # --- Navigation (never clears artifacts) ---

    def go_back(self) -> WorkflowState:
        self._check("go back", tuple(_BACK))
        self._state["stage"] = _BACK[self._state["stage"]]
        return self.snapshot()

    def go_home(self) -> WorkflowState:
        self._check("go home", tuple(_BACK))
        self._state["stage"] = "intake"
        return self.snapshot()

    def dismiss_error(self) -> WorkflowState:
        self._state["last_error"] = None
        return self.snapshot()

"""Entry point: collects the intake, drives the workflow, writes the blueprint."""

import asyncio
import sys
from pathlib import Path

import yaml

from devflow.errors import StageError
from devflow.graph import run_autopilot
from devflow.oracle import OracleClient
from devflow.utils.formatter import write_blueprint
from devflow.utils.validator import validate_intake
from devflow.workflow import WorkflowMachine

_INTAKE_QUESTIONS = [
    ("problem", "The problem"),
    ("target_user", "Target user"),
    ("output_format", "Output format (e.g. mobile web app, CLI)"),
    ("constraints", "Constraints (budget, deadline, stack)"),
]


def _prompt_intake() -> dict:
    """Ask for each intake field in the terminal."""
    print("What are we building?\n")
    return {field: input(f"{label}: ").strip() for field, label in _INTAKE_QUESTIONS}


def _load_intake(path: str) -> dict:
    """Read an intake from a YAML file with the four intake keys."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    return {field: str(data.get(field, "")) for field, _ in _INTAKE_QUESTIONS}


def _print_candidates(candidates: list[dict]) -> None:
    print("\n--- Candidate architectures ---\n")
    for i, candidate in enumerate(candidates, 1):
        print(f"{i}. {candidate['name']} [{candidate['complexity']}] ({candidate['id']})")
        print(f"   {candidate['summary']}")
        if candidate["tools"]:
            print(f"   Tools: {', '.join(candidate['tools'])}")
    print()


def _print_decision(state: dict) -> None:
    decision = state["decision"]
    print("--- Evaluation ---\n")
    for candidate in state["candidates"]:
        card = decision["scores"][candidate["id"]]
        rec = " [SELECTED]" if candidate["id"] == decision["selected_candidate_id"] else ""
        print(
            f"{candidate['name']}{rec}: speed {card['speed']}, reliability {card['reliability']}, "
            f"cognitive load {card['cognitive_load']}, extensibility {card['extensibility']}"
        )
    print(f"\nWhy: {decision['reasoning_summary']}\n")


async def _attempt(step, label: str) -> dict:
    """Run one oracle-backed step; on failure let the user retry or stop.

    The machine stays on its current stage after a failure, so the same
    step can simply be run again.
    """
    while True:
        try:
            return await step()
        except StageError as exc:
            print(f"[DevFlow] {label} failed ({exc.kind}): {exc}", file=sys.stderr)
            choice = input("[r]etry / [q]uit: ").strip().lower()
            if choice != "r":
                raise
            print(f"[DevFlow] Retrying {label.lower()}...", file=sys.stderr)


async def _run_interactive(machine: WorkflowMachine, intake: dict) -> None:
    """Walk every stage with the user, then open the implementation chat."""
    state = await _attempt(lambda: machine.submit_intake(intake), "Enumeration")
    _print_candidates(state["candidates"])

    while True:
        state = await _attempt(machine.run_evaluation, "Evaluation")
        _print_decision(state)
        choice = input("Proceed with this selection? [Y]es / [r]e-run evaluation: ").strip().lower()
        if choice != "r":
            break

    state = await _attempt(machine.generate_blueprint, "Blueprint")
    output_path = write_blueprint(state)
    print(f"[DevFlow] Blueprint written to: {output_path}")
    for issue in state["diagram_issues"]:
        print(f"[DevFlow] Diagram warning: {issue}")

    state = machine.continue_to_implementation()
    print(f"\nDevFlow: {state['conversation'][0]['content']}")
    print("(Press Enter on an empty line to finish.)\n")
    while True:
        message = input("You: ").strip()
        if not message:
            break
        state = await machine.send_message(message)
        print(f"\nDevFlow: {state['conversation'][-1]['content']}\n")


def run(intake: dict, interactive: bool = True) -> int:
    """Run DevFlow on an intake. Returns a process exit code."""
    try:
        validated = validate_intake(intake)
    except ValueError as exc:
        print(f"[DevFlow] Invalid intake: {exc}", file=sys.stderr)
        return 1

    oracle = OracleClient()

    if not interactive:
        final_state = asyncio.run(run_autopilot(validated, oracle))
        if final_state.get("error"):
            print(f"[DevFlow] Stopped ({final_state['error_kind']}): {final_state['error']}", file=sys.stderr)
            return 1
        output_path = write_blueprint(final_state)
        print(f"[DevFlow] Candidates: {len(final_state['candidates'])}")
        print(f"[DevFlow] Selected: {final_state['decision']['selected_candidate_id']}")
        print(f"[DevFlow] Output written to: {output_path}")
        return 0

    machine = WorkflowMachine(oracle)
    try:
        asyncio.run(_run_interactive(machine, validated))
    except StageError as exc:
        print(f"[DevFlow] Stopped ({exc.kind}): {exc}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    """CLI entry point — intake from --intake FILE or from terminal prompts."""
    interactive = True
    args = sys.argv[1:]

    if "--no-interactive" in args:
        interactive = False
        args.remove("--no-interactive")

    if "--intake" in args:
        index = args.index("--intake")
        if index + 1 >= len(args):
            print("Usage: devflow [--no-interactive] [--intake FILE]", file=sys.stderr)
            sys.exit(2)
        intake = _load_intake(args[index + 1])
    else:
        intake = _prompt_intake()

    sys.exit(run(intake, interactive=interactive))


if __name__ == "__main__":
    main()

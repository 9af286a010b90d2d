"""Architect stage — produces the execution blueprint for the selected candidate.

The blueprint is a markdown plan, an executive summary and a flowchart. The
flowchart goes to an external renderer, so it is grammar-checked here; a bad
diagram degrades the blueprint but does not reject it.
"""

import json
import sys

from devflow.agents.enumerator import wire_candidate
from devflow.agents.persona import SYSTEM_PROMPT_BASE
from devflow.errors import (
    INVALID_DIAGRAM,
    ORACLE_FAILURE,
    SCHEMA_VIOLATION,
    OracleError,
    StageError,
    ValidationError,
)
from devflow.state import Blueprint, Candidate, Intake
from devflow.utils.flowchart import check_flowchart, strip_mermaid_fence
from devflow.utils.schema import validate

BLUEPRINT_SHAPE = {
    "type": "object",
    "properties": {
        "markdown": {"type": "string", "description": "The full markdown execution plan"},
        "summary": {"type": "string", "description": "Executive summary of the plan"},
        "flowchart": {"type": "string", "description": "Mermaid.js flowchart syntax string (graph TD)"},
    },
    "required": ["markdown", "summary", "flowchart"],
}

BLUEPRINT_PROMPT = """\
Generate a structured Execution Blueprint for the selected pipeline.
Include a detailed Markdown document ("markdown") covering:
1. System Architecture (High-level overview)
2. Data Flow
3. Component Responsibilities
4. API Endpoints (List key endpoints with Method, Path, Description)
5. Data Models/Schema (Entities, Fields, Key types)
6. Clear Execution Phases (Step-by-step)

Also provide a "summary" (Executive Summary, max 3-4 sentences) of the entire plan.

Also generate a strict Mermaid.js flowchart (graph TD) representing the execution flow ("flowchart").
Rules for the flowchart:
- Use graph TD
- IMPORTANT: Enclose ALL node labels/text in double quotes to handle special characters. Example: A["User Action"]
- Do NOT use newlines (\\n) inside node labels. Keep labels short.
- Node IDs must be simple alphanumeric strings (e.g., Step1, DecisionA). No punctuation in IDs.
- Define each node (with its label) exactly once; refer to it by bare ID afterwards.
- No decorative nodes or generic labels.
- No duplicate steps.
- Every node must correspond to a real step in the execution plan.
- Focus on the logic flow: Decisions -> Actions -> Outputs."""


def _build_instruction(candidate: Candidate, intake: Intake) -> str:
    """Construct the blueprint instruction from the selected candidate and the intake."""
    return (
        f"{BLUEPRINT_PROMPT}\n\n"
        f"## Selected Pipeline\n```json\n{json.dumps(wire_candidate(candidate), indent=2)}\n```\n\n"
        f"## Project Context\n```json\n{json.dumps(dict(intake), indent=2)}\n```"
    )


def _validate_response(data) -> tuple[Blueprint, StageError | None]:
    """Validate the raw oracle value; return the blueprint and its diagram defect, if any."""
    validate(data, BLUEPRINT_SHAPE)

    blueprint: Blueprint = {
        "markdown": data["markdown"],
        "summary": data["summary"],
        "flowchart": strip_mermaid_fence(data["flowchart"]),
    }

    issues = check_flowchart(blueprint["flowchart"])
    if not issues:
        return blueprint, None

    print(
        f"[DevFlow] Warning: blueprint flowchart has {len(issues)} grammar issue(s); "
        f"the diagram will not render. First: {issues[0]}",
        file=sys.stderr,
    )
    return blueprint, StageError(INVALID_DIAGRAM, "Blueprint flowchart is not renderable.", issues=issues)


async def generate_blueprint(candidate: Candidate, intake: Intake, oracle) -> tuple[Blueprint, StageError | None]:
    """Architect stage executor.

    Returns ``(blueprint, diagram_error)``. ``diagram_error`` is an
    ``invalid_diagram`` StageError listing grammar issues, or None.
    """
    try:
        data = await oracle.generate_structured(
            _build_instruction(candidate, intake), BLUEPRINT_SHAPE, SYSTEM_PROMPT_BASE
        )
        return _validate_response(data)
    except OracleError as exc:
        raise StageError(ORACLE_FAILURE, f"Failed to generate blueprint: {exc}") from exc
    except ValidationError as exc:
        raise StageError(SCHEMA_VIOLATION, f"Blueprint does not match the schema: {exc}") from exc

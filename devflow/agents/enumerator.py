"""Enumerate stage — turns the intake into a batch of candidate architectures.

Oracle output schema (wire names):
[
  {
    "id": "string (unique within the batch)",
    "name": "string",
    "architecture": "string",
    "summary": "string",
    "tools": ["string"],
    "complexity": "Low | Medium | High",
    "risks": ["string"],
    "scalability": "string",
    "pros": ["string"],
    "cons": ["string"]
  }
]
"""

import sys

from devflow.agents.persona import SYSTEM_PROMPT_BASE, format_intake
from devflow.config import get_config
from devflow.errors import (
    DUPLICATE_CANDIDATE,
    ORACLE_FAILURE,
    SCHEMA_VIOLATION,
    OracleError,
    StageError,
    ValidationError,
)
from devflow.state import COMPLEXITY_LEVELS, Candidate, Intake
from devflow.utils.schema import string_list, validate

CANDIDATE_SHAPE = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "architecture": {"type": "string"},
        "summary": {"type": "string"},
        "tools": string_list(),
        "complexity": {"type": "string", "enum": list(COMPLEXITY_LEVELS)},
        "risks": string_list(),
        "scalability": {"type": "string"},
        "pros": string_list(),
        "cons": string_list(),
    },
    "required": [
        "id", "name", "architecture", "summary", "tools",
        "complexity", "risks", "scalability", "pros", "cons",
    ],
}

CANDIDATE_SET_SHAPE = {"type": "array", "items": CANDIDATE_SHAPE}

ENUMERATION_PROMPT = """\
Generate {min_count}-{max_count} viable technical pipelines/architectures for the proposed project.
For each pipeline:
1. Provide a short unique "id" (e.g. "p1") and a "name".
2. Provide a full "architecture" description.
3. Provide a "summary" (max 2 sentences) of the architecture.
4. List specific tools, complexity (Low, Medium or High), risks, scalability, pros and cons.
Be objective. Do not bias towards one yet.
Ensure the tools are modern, popular, and appropriate for the constraints."""


def _build_instruction(intake: Intake) -> str:
    """Construct the enumeration instruction from the intake."""
    config = get_config()
    prompt = ENUMERATION_PROMPT.format(
        min_count=config.get("min_candidates", 2),
        max_count=config.get("max_candidates", 4),
    )
    return f"{prompt}\n\n{format_intake(intake)}"


def _to_candidate(item: dict) -> Candidate:
    return {
        "id": item["id"],
        "name": item["name"],
        "architecture_description": item["architecture"],
        "summary": item["summary"],
        "tools": list(item["tools"]),
        "complexity": item["complexity"],
        "risks": list(item["risks"]),
        "scalability_note": item["scalability"],
        "pros": list(item["pros"]),
        "cons": list(item["cons"]),
    }


def wire_candidate(candidate: Candidate) -> dict:
    """Inverse of _to_candidate: the candidate in the oracle's field names."""
    return {
        "id": candidate["id"],
        "name": candidate["name"],
        "architecture": candidate["architecture_description"],
        "summary": candidate["summary"],
        "tools": candidate["tools"],
        "complexity": candidate["complexity"],
        "risks": candidate["risks"],
        "scalability": candidate["scalability_note"],
        "pros": candidate["pros"],
        "cons": candidate["cons"],
    }


def _validate_response(data) -> list[Candidate]:
    """Validate the raw oracle value and map it into candidates.

    Raises ValidationError on shape mismatch and StageError on duplicate ids.
    """
    validate(data, CANDIDATE_SET_SHAPE)

    seen = set()
    for i, item in enumerate(data):
        if item["id"] in seen:
            raise StageError(
                DUPLICATE_CANDIDATE,
                f"Candidate {i} reuses id '{item['id']}'. Ids must be unique within a batch.",
            )
        seen.add(item["id"])

    config = get_config()
    low = config.get("min_candidates", 2)
    high = config.get("max_candidates", 4)
    if data and not low <= len(data) <= high:
        print(
            f"[DevFlow] Warning: oracle proposed {len(data)} candidates "
            f"(expected {low}-{high}). Keeping as-is.",
            file=sys.stderr,
        )

    return [_to_candidate(item) for item in data]


async def enumerate_candidates(intake: Intake, oracle) -> list[Candidate]:
    """Enumerate stage executor.

    Returns the candidates in oracle emission order. An empty list is returned
    as-is; deciding whether that is acceptable is the workflow's job.
    """
    try:
        data = await oracle.generate_structured(
            _build_instruction(intake), CANDIDATE_SET_SHAPE, SYSTEM_PROMPT_BASE
        )
        return _validate_response(data)
    except OracleError as exc:
        raise StageError(ORACLE_FAILURE, f"Failed to generate candidates: {exc}") from exc
    except ValidationError as exc:
        raise StageError(SCHEMA_VIOLATION, f"Candidate list does not match the schema: {exc}") from exc

"""Evaluate stage — compares the candidates, scores each one and selects a winner.

Required output schema:
{
  "selectedPipelineId": "string (id of the winning candidate)",
  "reasoning": "string",
  "reasoningSummary": "string (max ~30 words)",
  "evaluations": [
    {
      "candidateId": "string",
      "speed": "integer 1-10",
      "reliability": "integer 1-10",
      "cognitiveLoad": "integer 1-10 (10 = heaviest load)",
      "extensibility": "integer 1-10"
    }
  ]
}

A response can match this schema and still be wrong: the selected id and the
evaluated ids must refer to exactly the candidates that were submitted.
"""

import json
import sys

from devflow.agents.enumerator import wire_candidate
from devflow.agents.persona import SYSTEM_PROMPT_BASE
from devflow.config import get_config
from devflow.errors import (
    INCONSISTENT_SELECTION,
    ORACLE_FAILURE,
    SCHEMA_VIOLATION,
    OracleError,
    StageError,
    ValidationError,
)
from devflow.state import Candidate, Decision, Intake, Scorecard
from devflow.utils.schema import score, validate

EVALUATION_SHAPE = {
    "type": "object",
    "properties": {
        "selectedPipelineId": {"type": "string"},
        "reasoning": {"type": "string"},
        "reasoningSummary": {"type": "string"},
        "evaluations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "candidateId": {"type": "string"},
                    "speed": score(),
                    "reliability": score(),
                    "cognitiveLoad": score("1-10 score (10 being highest load)"),
                    "extensibility": score(),
                },
                "required": ["candidateId", "speed", "reliability", "cognitiveLoad", "extensibility"],
            },
        },
    },
    "required": ["selectedPipelineId", "reasoning", "reasoningSummary", "evaluations"],
}

EVALUATION_PROMPT = """\
Compare the provided pipelines.
Evaluate them based on: Speed of development, Reliability, Cognitive Load (for the developer), \
and Future Extensibility. Score every pipeline exactly once, using its "id" as "candidateId".
Select ONE optimal pipeline and put its id in "selectedPipelineId".
Explain why this one wins ("reasoning").
Also provide a "reasoningSummary" (max 30 words) for quick reading.
Be decisive."""


def _build_instruction(candidates: list[Candidate], intake: Intake) -> str:
    """Construct the evaluation instruction from the intake and the candidate set."""
    return (
        f"{EVALUATION_PROMPT}\n\n"
        f"## Project Context\n```json\n{json.dumps(dict(intake), indent=2)}\n```\n\n"
        f"## Pipelines to Evaluate\n"
        f"```json\n{json.dumps([wire_candidate(c) for c in candidates], indent=2)}\n```"
    )


def _check_consistency(data: dict, candidates: list[Candidate]) -> None:
    """Enforce referential integrity between the evaluation and the candidate set."""
    candidate_ids = [c["id"] for c in candidates]
    known = set(candidate_ids)

    if data["selectedPipelineId"] not in known:
        raise StageError(
            INCONSISTENT_SELECTION,
            f"Selected id '{data['selectedPipelineId']}' is not one of the candidates: {candidate_ids}",
        )

    evaluated = [e["candidateId"] for e in data["evaluations"]]
    duplicates = sorted({cid for cid in evaluated if evaluated.count(cid) > 1})
    unknown = sorted(set(evaluated) - known)
    missing = [cid for cid in candidate_ids if cid not in set(evaluated)]

    problems = []
    if duplicates:
        problems.append(f"scored more than once: {duplicates}")
    if unknown:
        problems.append(f"unknown ids: {unknown}")
    if missing:
        problems.append(f"not scored: {missing}")
    if problems:
        raise StageError(INCONSISTENT_SELECTION, "Scores do not cover the candidate set (" + "; ".join(problems) + ").")


def _validate_response(data, candidates: list[Candidate]) -> Decision:
    """Validate the raw oracle value and map it into a Decision."""
    validate(data, EVALUATION_SHAPE)
    _check_consistency(data, candidates)

    max_words = get_config().get("reasoning_summary_max_words", 30)
    word_count = len(data["reasoningSummary"].split())
    if word_count > max_words:
        print(
            f"[DevFlow] Warning: reasoning summary has {word_count} words "
            f"(expected at most {max_words}). Keeping as-is.",
            file=sys.stderr,
        )

    scores: dict[str, Scorecard] = {}
    for entry in data["evaluations"]:
        scores[entry["candidateId"]] = {
            "speed": int(entry["speed"]),
            "reliability": int(entry["reliability"]),
            "cognitive_load": int(entry["cognitiveLoad"]),
            "extensibility": int(entry["extensibility"]),
        }

    return {
        "selected_candidate_id": data["selectedPipelineId"],
        "reasoning": data["reasoning"],
        "reasoning_summary": data["reasoningSummary"],
        "scores": scores,
    }


async def evaluate_candidates(candidates: list[Candidate], intake: Intake, oracle) -> Decision:
    """Evaluate stage executor."""
    try:
        data = await oracle.generate_structured(
            _build_instruction(candidates, intake), EVALUATION_SHAPE, SYSTEM_PROMPT_BASE
        )
        return _validate_response(data, candidates)
    except OracleError as exc:
        raise StageError(ORACLE_FAILURE, f"Failed to evaluate candidates: {exc}") from exc
    except ValidationError as exc:
        raise StageError(SCHEMA_VIOLATION, f"Evaluation does not match the schema: {exc}") from exc

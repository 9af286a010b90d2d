"""Output Formatter — renders the decision and blueprint into a Markdown document."""

import re
from pathlib import Path

from devflow.config import get_config
from devflow.state import find_candidate

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _slugify(name: str) -> str:
    return _SLUG_RE.sub("-", name.lower()).strip("-")


def _render_scores_table(state: dict) -> list[str]:
    decision = state["decision"]
    lines = [
        "| Candidate | Speed | Reliability | Cognitive Load | Extensibility |",
        "|-----------|-------|-------------|----------------|---------------|",
    ]
    for candidate in state.get("candidates", []):
        card = decision["scores"].get(candidate["id"])
        if card is None:
            continue
        marker = " (selected)" if candidate["id"] == decision["selected_candidate_id"] else ""
        lines.append(
            f"| {candidate['name']}{marker} | {card['speed']}/10 | {card['reliability']}/10 "
            f"| {card['cognitive_load']}/10 | {card['extensibility']}/10 |"
        )
    return lines


def _render_markdown(state: dict) -> str:
    """Convert the workflow artifacts into a Markdown blueprint document."""
    lines = []

    decision = state.get("decision")
    selected = None
    if decision:
        selected = find_candidate(state.get("candidates", []), decision["selected_candidate_id"])

    title = selected["name"] if selected else "Untitled Architecture"
    lines.append(f"# {title} — Execution Blueprint")
    lines.append("")

    intake = state.get("intake")
    if intake:
        lines.append("## Project Overview")
        lines.append("")
        lines.append(f"- **Problem:** {intake['problem']}")
        lines.append(f"- **Target user:** {intake['target_user']}")
        lines.append(f"- **Output format:** {intake['output_format']}")
        lines.append(f"- **Constraints:** {intake['constraints']}")
        lines.append("")

    blueprint = state.get("blueprint")
    if blueprint and blueprint.get("summary"):
        lines.append("## Executive Summary")
        lines.append("")
        lines.append(blueprint["summary"])
        lines.append("")

    if decision:
        lines.append("## Decision")
        lines.append("")
        lines.append(f"**{decision['reasoning_summary']}**")
        lines.append("")
        lines.append(decision["reasoning"])
        lines.append("")
        lines.extend(_render_scores_table(state))
        lines.append("")

    candidates = state.get("candidates", [])
    if candidates:
        lines.append("## Candidates Considered")
        lines.append("")
        for candidate in candidates:
            lines.append(f"### {candidate['name']}")
            lines.append("")
            lines.append(f"- **Complexity:** {candidate['complexity']}")
            if candidate["tools"]:
                lines.append(f"- **Tools:** {', '.join(candidate['tools'])}")
            lines.append(f"- **Summary:** {candidate['summary']}")
            if candidate["risks"]:
                lines.append(f"- **Risks:** {'; '.join(candidate['risks'])}")
            lines.append(f"- **Scalability:** {candidate['scalability_note']}")
            lines.append("")

    if blueprint:
        lines.append("## Execution Plan")
        lines.append("")
        lines.append(blueprint["markdown"])
        lines.append("")

        if blueprint.get("flowchart"):
            lines.append("## Workflow")
            lines.append("")
            lines.append("```mermaid")
            lines.append(blueprint["flowchart"])
            lines.append("```")
            lines.append("")

    diagram_issues = state.get("diagram_issues", [])
    if diagram_issues:
        lines.append("---")
        lines.append("")
        lines.append("## Diagram Warnings")
        lines.append("")
        lines.append("The workflow diagram above may not render:")
        lines.append("")
        for issue in diagram_issues:
            lines.append(f"- {issue}")
        lines.append("")

    return "\n".join(lines)


def write_blueprint(state: dict) -> Path:
    """Write the blueprint document to the configured output directory.

    The filename is derived from the selected candidate's name; an existing
    file is never overwritten.

    Returns the Path to the written file.
    """
    config = get_config()
    base_path = Path(__file__).resolve().parent.parent.parent / config["output_path"]
    output_dir = base_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    stem = ""
    decision = state.get("decision")
    if decision:
        selected = find_candidate(state.get("candidates", []), decision["selected_candidate_id"])
        if selected:
            stem = _slugify(selected["name"])
    if not stem:
        stem = base_path.stem  # fallback to config name (e.g., "blueprint")

    # Find a non-conflicting filename
    output_path = output_dir / f"{stem}.md"
    counter = 1
    while output_path.exists():
        counter += 1
        output_path = output_dir / f"{stem} ({counter}).md"

    output_path.write_text(_render_markdown(state), encoding="utf-8")
    return output_path

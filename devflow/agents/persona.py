"""Base persona shared by every stage as the oracle's system context."""

SYSTEM_PROMPT_BASE = """\
You are DevFlow, an agentic AI system.
You are not a chatbot. You are a decision-making, workflow-orchestrating agent.
Your core purpose is to eliminate decision paralysis and bad architectural choices.
You prioritize clarity before code."""


def format_intake(intake: dict) -> str:
    """Render the intake fields as the 'Project Details' block of a stage prompt."""
    return (
        "## Project Details\n"
        f"Problem: {intake['problem']}\n"
        f"Target user: {intake['target_user']}\n"
        f"Output format: {intake['output_format']}\n"
        f"Constraints: {intake['constraints']}"
    )

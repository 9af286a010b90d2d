"""Converse stage — implementation assistant chat over a frozen project context."""

import json
import sys

from devflow.agents.persona import SYSTEM_PROMPT_BASE
from devflow.errors import OracleError
from devflow.state import ConversationTurn, ImplementationContext

GREETING = (
    "I'm ready to help you implement. Ask me to generate boilerplate code, "
    "config files, or explain specific parts of the blueprint."
)
APOLOGY = "Sorry, I encountered an error processing your request."


def greeting_turn() -> ConversationTurn:
    """The assistant turn every conversation starts with."""
    return {"role": "assistant", "content": GREETING}


def build_system_context(context: ImplementationContext) -> str:
    """Persona plus the serialized project context, prepended once per call."""
    return f"{SYSTEM_PROMPT_BASE}\n\nCurrent Project Context:\n{json.dumps(context, indent=2)}"


async def reply(
    conversation: list[ConversationTurn],
    new_message: str,
    context: ImplementationContext,
    oracle,
) -> ConversationTurn:
    """Converse stage executor — returns the assistant turn answering ``new_message``.

    Never raises for oracle failures: an empty or failed reply becomes an
    apology turn so the conversation thread stays usable.
    """
    try:
        text = await oracle.converse(conversation, new_message, build_system_context(context))
    except OracleError as exc:
        print(f"[DevFlow] Assistant reply failed ({exc.kind}): {exc}", file=sys.stderr)
        return {"role": "assistant", "content": APOLOGY}

    if not text or not text.strip():
        print("[DevFlow] Assistant returned an empty reply.", file=sys.stderr)
        return {"role": "assistant", "content": APOLOGY}
    return {"role": "assistant", "content": text.strip()}

"""Oracle Client Adapter — the only code that talks to the LLM provider.

Two capabilities are exposed:

- ``generate_structured``: one instruction in, one JSON value out.
- ``converse``: role-tagged multi-turn free text.

Transport-level failures are retried (see ``ainvoke_with_retry``) and then
normalized into ``OracleError``. Malformed JSON is never repaired or retried
here; that decision belongs to the caller. Calls are not cached and must not
be assumed idempotent.
"""

import asyncio
import json
from typing import Any

import httpx
from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI

from devflow.config import get_config
from devflow.errors import MALFORMED_OUTPUT, TIMEOUT, TRANSPORT_FAILURE, OracleError
from devflow.state import ConversationTurn
from devflow.utils.parsing import ainvoke_with_retry, response_text, strip_fences

STRUCTURED_OUTPUT_RULES = """\
You MUST respond with exactly one JSON value matching this JSON schema:
```json
{schema}
```
Respond ONLY with the JSON value. No markdown fences, no commentary."""


def _make_llm(model_name: str, json_mode: bool = False):
    """Build the configured chat model."""
    config = get_config()
    temperature = config.get("temperature", 0)

    if config.get("oracle_provider", "google") == "anthropic":
        return ChatAnthropic(model=model_name, temperature=temperature)

    if json_mode:
        return ChatGoogleGenerativeAI(
            model=model_name,
            temperature=temperature,
            response_mime_type="application/json",
        )
    return ChatGoogleGenerativeAI(model=model_name, temperature=temperature)


class OracleClient:
    """Async adapter around a LangChain chat model."""

    def __init__(self, structured_llm=None, chat_llm=None):
        config = get_config()
        self._structured_llm = structured_llm or _make_llm(config["structured_model"], json_mode=True)
        self._chat_llm = chat_llm or _make_llm(config.get("chat_model", config["structured_model"]))

    async def _call(self, llm, messages: list[dict]) -> str:
        timeout = get_config().get("oracle_timeout_seconds")
        try:
            response = await asyncio.wait_for(ainvoke_with_retry(llm, messages), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise OracleError(TIMEOUT, f"Oracle call exceeded {timeout}s.") from exc
        except httpx.TimeoutException as exc:
            raise OracleError(TIMEOUT, f"Oracle transport timed out: {exc!r}") from exc
        except Exception as exc:
            raise OracleError(TRANSPORT_FAILURE, f"Oracle call failed: {exc!r}") from exc
        return response_text(response)

    async def generate_structured(self, instruction: str, schema: dict, system_context: str) -> Any:
        """Ask for exactly one JSON value conforming to ``schema`` and return it decoded.

        Raises OracleError(malformed_output) when the reply is empty or not JSON.
        The decoded value is NOT shape-checked here.
        """
        rules = STRUCTURED_OUTPUT_RULES.format(schema=json.dumps(schema, indent=2))
        messages = [
            {"role": "system", "content": system_context},
            {"role": "user", "content": f"{instruction}\n\n{rules}"},
        ]

        content = strip_fences(await self._call(self._structured_llm, messages))
        if not content:
            raise OracleError(MALFORMED_OUTPUT, "Oracle returned an empty response.")
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise OracleError(MALFORMED_OUTPUT, f"Oracle returned invalid JSON: {exc}") from exc

    async def converse(self, history: list[ConversationTurn], new_message: str, system_context: str) -> str:
        """Replay ``history`` after the system context, send ``new_message``, return the reply text."""
        messages = [{"role": "system", "content": system_context}]
        for turn in history:
            messages.append({"role": turn["role"], "content": turn["content"]})
        messages.append({"role": "user", "content": new_message})

        return await self._call(self._chat_llm, messages)

"""Shared parsing and LLM utilities for oracle responses."""

import re
import sys

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

_FENCE_RE = re.compile(r"\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*", re.DOTALL)


def strip_fences(text: str) -> str:
    """Strip a markdown code fence wrapping the whole LLM output, if present.

    Fences inside the payload (e.g. a code block in a JSON string value) are
    left alone.
    """
    match = _FENCE_RE.fullmatch(text)
    return match.group(1).strip() if match else text.strip()


def response_text(response) -> str:
    """Return the text of a chat model response.

    Gemini may return content as a list of parts instead of a plain string.
    """
    content = getattr(response, "content", response)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        content = "".join(parts)
    return (content or "").strip()


def is_transient(exc: BaseException) -> bool:
    """Return True if the exception is a transient HTTP/network error worth retrying."""
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.ConnectError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in (429, 500, 502, 503)
    return False


async def ainvoke_with_retry(llm, messages, max_retries: int = 3):
    """Await llm.ainvoke(messages) with exponential backoff on transient errors.

    Retries on HTTP 429/500/502/503, connection errors, and timeouts.
    Non-transient errors (auth failures, bad requests) are raised immediately.
    """
    from devflow.config import get_config

    config = get_config()
    retries = config.get("llm_max_retries", max_retries)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(retries + 1),  # +1 because first attempt counts
        wait=wait_exponential(
            multiplier=1,
            min=config.get("llm_retry_min_wait", 2),
            max=config.get("llm_retry_max_wait", 16),
        ),
        retry=retry_if_exception(is_transient),
        reraise=True,
        before_sleep=lambda state: print(
            f"[DevFlow] Transient error: {state.outcome.exception()!r}. "
            f"Retrying in {state.next_action.sleep:.0f}s "
            f"(attempt {state.attempt_number}/{retries})...",
            file=sys.stderr,
        ),
    )
    async for attempt in retrying:
        with attempt:
            return await llm.ainvoke(messages)

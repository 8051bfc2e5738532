from __future__ import annotations

import json
import logging
import re
from typing import Any

from groq import AsyncGroq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are Hubb, a friendly local guide for the Bantadthong neighborhood in "
    "Bangkok. Help with food, landmarks, and getting around. Keep answers short "
    "and practical."
)

TRIP_PLAN_PROMPT = """\
Create a {days}-day itinerary for {location}.
Preferences: {preferences}.
Return JSON."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class CompletionError(Exception):
    """The completion service was unavailable or answered with unusable output."""


async def complete(
    turns: list[dict[str, str]],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
    system_prompt: str | None = SYSTEM_PROMPT,
) -> str:
    """Send ordered ``{"role", "content"}`` turns and return the reply text."""
    if not config.enabled or not config.api_key:
        raise CompletionError("Completion service is not configured")

    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.extend(turns)

    try:
        async with AsyncGroq(api_key=config.api_key, timeout=config.timeout) as client:
            response = await client.chat.completions.create(
                model=config.model,
                messages=messages,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
            )
        content = (response.choices[0].message.content or "").strip()
    except Exception as exc:
        logger.warning("Groq completion failed", exc_info=True)
        raise CompletionError("Completion service call failed") from exc

    if not content:
        raise CompletionError("Completion service returned an empty reply")
    return content


def parse_json_reply(content: str) -> dict[str, Any]:
    """Parse a JSON object reply, tolerating surrounding markdown fences."""
    cleaned = _FENCE_RE.sub("", content.strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise CompletionError("Completion service returned malformed JSON") from exc
    if not isinstance(parsed, dict):
        raise CompletionError("Completion service returned JSON that is not an object")
    return parsed


async def generate_trip_plan(
    location: str,
    days: int,
    preferences: str,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> dict[str, Any]:
    prompt = TRIP_PLAN_PROMPT.format(days=days, location=location, preferences=preferences)
    content = await complete(
        [{"role": "user", "content": prompt}], config=config, system_prompt=None,
    )
    return parse_json_reply(content)

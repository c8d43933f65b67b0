"""Google Gemini API wrapper with error handling."""

import asyncio
import json
import logging
import re

from google import genai
from google.genai import types

from config import settings

logger = logging.getLogger(__name__)

_client: genai.Client | None = None

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_BRACED_JSON_RE = re.compile(r"\{[\s\S]*\}")


class GeminiUnavailable(RuntimeError):
    """No API key configured, so no request was made."""


def get_client() -> genai.Client | None:
    global _client
    if not settings.gemini_api_key:
        logger.warning("No GEMINI_API_KEY set - Gemini features disabled")
        return None
    if _client is None:
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


def extract_json(text: str) -> dict | None:
    """Pull a JSON object out of a model reply.

    Tries the whole reply (fences stripped), then a fenced block anywhere in
    the reply, then the outermost ``{...}`` span.
    """
    candidates = [strip_code_fences(text)]
    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    braced = _BRACED_JSON_RE.search(text)
    if braced:
        candidates.append(braced.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


async def generate_text(
    prompt: str,
    model: str | None = None,
    temperature: float = 0.3,
    max_output_tokens: int = 4096,
    timeout: float | None = None,
) -> str:
    """Send a prompt to Gemini and return the raw reply text.

    Raises GeminiUnavailable when no key is configured, asyncio.TimeoutError
    on timeout, and lets SDK errors propagate so each caller can pick its
    own fallback.
    """
    client = get_client()
    if client is None:
        raise GeminiUnavailable("GEMINI_API_KEY not configured")

    response = await asyncio.wait_for(
        client.aio.models.generate_content(
            model=model or settings.gemini_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            ),
        ),
        timeout if timeout is not None else settings.service_timeout_seconds,
    )
    return (response.text or "").strip()


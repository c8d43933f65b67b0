"""LLM classification service used by the cascade's last tier."""

import asyncio
import logging
from typing import Protocol

from config import settings
from models.schemas.service_outcomes import (
    ClassificationOutcome,
    ClassificationParseError,
    ClassificationSuccess,
    ClassificationUnknown,
)
from services import gemini_client

logger = logging.getLogger(__name__)

UNKNOWN_KEY = "UNKNOWN"


class ClassificationService(Protocol):
    async def classify(self, prompt: str) -> ClassificationOutcome: ...


def _coerce_confidence(value) -> float | None:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return None
    return max(0.0, min(1.0, confidence))


def parse_classification_reply(text: str) -> ClassificationOutcome:
    """Turn a raw ``{canonical_key, confidence, reasoning}`` reply into an outcome."""
    data = gemini_client.extract_json(text)
    if data is None:
        return ClassificationParseError(error="reply is not a JSON object")

    key = data.get("canonical_key")
    if not isinstance(key, str) or not key.strip():
        return ClassificationParseError(error="reply has no canonical_key")

    confidence = _coerce_confidence(data.get("confidence"))
    reasoning = str(data.get("reasoning") or "")
    if key.strip().upper() == UNKNOWN_KEY:
        return ClassificationUnknown(confidence=confidence, reasoning=reasoning)
    return ClassificationSuccess(key=key.strip(), confidence=confidence, reasoning=reasoning)


class GeminiClassifier:
    """Classification over Gemini. Never raises; failures become parse errors."""

    def __init__(self, model: str | None = None):
        self.model = model or settings.classification_model

    async def classify(self, prompt: str) -> ClassificationOutcome:
        try:
            text = await gemini_client.generate_text(prompt, model=self.model, temperature=0.0, max_output_tokens=512)
        except gemini_client.GeminiUnavailable as e:
            return ClassificationParseError(error=str(e))
        except asyncio.TimeoutError:
            logger.warning("Classification timed out")
            return ClassificationParseError(error="timeout")
        except Exception as e:
            logger.error("Classification request failed: %s", e)
            return ClassificationParseError(error=str(e))

        outcome = parse_classification_reply(text)
        if isinstance(outcome, ClassificationParseError):
            logger.warning("Unparseable classification reply (%s): %.200s", outcome.error, text)
        return outcome

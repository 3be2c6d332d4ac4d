"""Text guidance: daily inspiration, translation, pathway quiz and rabbi chat.

Each call builds one prompt, makes one generateContent request with fixed
generation parameters and shapes the reply into the JSON the web app expects.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from . import prompts
from .errors import MissingField
from .gemini import GeminiClient, parse_json_reply

log = logging.getLogger("guidance")

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_RABBI_MODEL = "gemini-3-pro-preview"

DAILY_CONFIG = {"temperature": 0.9, "maxOutputTokens": 512}
TRANSLATE_CONFIG = {"temperature": 0.3, "maxOutputTokens": 512}
RECOMMEND_CONFIG = {"temperature": 0.7, "maxOutputTokens": 2048}
RABBI_CONFIG = {"temperature": 0.8, "topK": 40, "topP": 0.95, "maxOutputTokens": 2048}
# Grounding with Google Search for accurate sources
RABBI_TOOLS = [{"googleSearch": {}}]

RABBI_APOLOGY = "Oy, something went wrong. Please try again, my friend."


def _user_turn(prompt: str) -> list[dict]:
    return [{"role": "user", "parts": [{"text": prompt}]}]


class Guidance:
    """Text endpoints backed by a shared GeminiClient."""

    def __init__(
        self,
        client: GeminiClient,
        text_model: str = DEFAULT_TEXT_MODEL,
        rabbi_model: str = DEFAULT_RABBI_MODEL,
    ) -> None:
        self.client = client
        self.text_model = text_model
        self.rabbi_model = rabbi_model

    async def daily_inspiration(self, kind: str) -> dict[str, Any]:
        """Morning blessing, Torah verse or pathway of the day."""
        prompt = prompts.daily_prompt(kind)
        reply = await self.client.generate(self.text_model, _user_turn(prompt), DAILY_CONFIG)
        return {"type": kind, "data": parse_json_reply(reply.text, "raw")}

    async def translate(self, text: str, direction: Optional[str]) -> dict[str, Any]:
        """Translate English to Hebrew ("toHebrew"/"en-to-he") or Hebrew to English."""
        if not text:
            raise MissingField("Text is required")
        prompt = prompts.translation_prompt(text, direction)
        reply = await self.client.generate(self.text_model, _user_turn(prompt), TRANSLATE_CONFIG)
        return {"direction": direction, "result": parse_json_reply(reply.text, "translation")}

    async def recommend(self, answers: Optional[Iterable[Mapping]]) -> dict[str, Any]:
        """Top pathway recommendations for a list of quiz answers."""
        if not isinstance(answers, list):
            raise MissingField("Quiz answers array is required")
        prompt = prompts.recommendation_prompt(answers)
        reply = await self.client.generate(self.text_model, _user_turn(prompt), RECOMMEND_CONFIG)
        result = parse_json_reply(reply.text, "raw")
        if not isinstance(result, dict):
            result = {"raw": result}
        return {**result, "model": self.text_model}

    async def ask_rabbi(
        self,
        message: str,
        history: Optional[Iterable[Mapping]] = None,
    ) -> dict[str, Any]:
        """One rabbi reply for message, given the history the client kept."""
        contents = prompts.rabbi_contents(message, history)
        reply = await self.client.generate(
            self.rabbi_model, contents, RABBI_CONFIG, tools=RABBI_TOOLS
        )
        if not reply.text:
            log.warning("Rabbi model returned no text, sending apology")
        return {
            "response": reply.text or RABBI_APOLOGY,
            "groundingMetadata": reply.grounding_metadata,
        }

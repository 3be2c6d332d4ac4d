"""Gemini generateContent client: text replies and inline TTS audio.

One client is shared by the whole application. Credentials and endpoint
are passed in explicitly by whoever builds it (the gateway, the CLI, tests);
nothing here reads the environment.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any, Optional

import httpx

from .errors import UpstreamError
from .types import AudioPayload, Generation

log = logging.getLogger("gemini")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Models sometimes wrap JSON in markdown fences even when asked not to
_FENCE_RE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markers and surrounding whitespace."""
    return _FENCE_RE.sub("", text or "").strip()


def parse_json_reply(text: str, fallback_key: str) -> Any:
    """Parse a model reply as JSON, or wrap the cleaned text under fallback_key.

    Valid JSON is returned as parsed, whatever its type.
    """
    cleaned = strip_code_fences(text)
    try:
        result = json.loads(cleaned)
    except json.JSONDecodeError as e:
        log.warning("Model reply is not JSON (%s), returning as %r", e, fallback_key)
        return {fallback_key: cleaned}
    return result


def _first_part(data: dict) -> tuple[dict, dict]:
    """Return (candidate, first content part) from a generateContent body."""
    candidates = data.get("candidates") or [{}]
    candidate = candidates[0] or {}
    parts = (candidate.get("content") or {}).get("parts") or [{}]
    return candidate, parts[0] or {}


class GeminiClient:
    """Async wrapper around the generateContent REST endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
            log.info("httpx client initialized for %s", self.base_url)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Transport ─────────────────────────────────────────────

    async def _post(self, model: str, body: dict[str, Any]) -> dict:
        """POST models/{model}:generateContent and return the decoded body."""
        client = self._get_client()
        url = f"{self.base_url}/models/{model}:generateContent"
        log.debug("Gemini request: model=%s, %d content turns", model, len(body.get("contents", [])))

        resp = await client.post(url, params={"key": self.api_key}, json=body)
        log.info("Gemini response (%s): status %d", model, resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            data = {}

        error = data.get("error") if isinstance(data, dict) else None
        if not resp.is_success or error:
            message = (error or {}).get("message") if isinstance(error, dict) else None
            log.error("Gemini API error (%s): %s", model, json.dumps(data)[:500])
            raise UpstreamError(
                message or f"Upstream returned HTTP {resp.status_code}",
                status=resp.status_code,
                details=message or "Unknown error",
            )
        return data

    # ── Text ──────────────────────────────────────────────────

    async def generate(
        self,
        model: str,
        contents: list[dict],
        generation_config: Optional[dict] = None,
        tools: Optional[list[dict]] = None,
    ) -> Generation:
        """Run a text generation.

        Args:
            model: Model id, e.g. "gemini-2.5-flash".
            contents: generateContent turns [{"role": ..., "parts": [{"text": ...}]}].
            generation_config: temperature, maxOutputTokens, etc.
            tools: Optional tool declarations such as [{"googleSearch": {}}].

        Returns:
            The first candidate's text (empty if none) and its grounding metadata.
        """
        body: dict[str, Any] = {"contents": contents}
        if generation_config:
            body["generationConfig"] = generation_config
        if tools:
            body["tools"] = tools

        data = await self._post(model, body)
        candidate, part = _first_part(data)
        text = part.get("text") or ""
        log.info("Gemini text (%s): %d chars", model, len(text))
        return Generation(
            text=text,
            grounding_metadata=candidate.get("groundingMetadata"),
            raw=data,
        )

    # ── Audio ─────────────────────────────────────────────────

    async def synthesize(self, model: str, prompt: str, voice: str) -> AudioPayload:
        """Ask a TTS model to speak prompt; returns the decoded inline audio."""
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": voice},
                    },
                },
            },
        }
        data = await self._post(model, body)
        _, part = _first_part(data)
        inline = part.get("inlineData") or {}
        encoded = inline.get("data")
        if not encoded:
            raise UpstreamError("No audio generated", details="No audio generated")

        try:
            audio = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise UpstreamError("Upstream audio is not valid base64", details=str(e)) from e

        mime_type = inline.get("mimeType", "")
        log.info("Gemini audio (%s): %d bytes, %s", model, len(audio), mime_type or "no mime type")
        return AudioPayload(data=audio, mime_type=mime_type)

"""Shared fixtures: settings without a .env file and a scripted Gemini upstream."""

import base64
import json

import httpx
import pytest

from engine.gemini import GeminiClient
from gateway.config import Settings

TEST_API_KEY = "test-api-key"


class FakeGemini:
    """Scripted stand-in for the generateContent endpoint.

    Replies are queued per model and consumed in order. A model with no
    queued reply answers 404, like an unknown model id upstream.
    """

    def __init__(self):
        self.requests: list[tuple[str, dict, httpx.Request]] = []
        self._replies: dict[str, list] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        model = request.url.path.rsplit("/", 1)[-1].split(":")[0]
        body = json.loads(request.content or b"{}")
        self.requests.append((model, body, request))

        queue = self._replies.get(model)
        if not queue:
            return httpx.Response(404, json={"error": {"code": 404, "message": f"models/{model} is not found"}})
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def models_called(self) -> list[str]:
        return [model for model, _, _ in self.requests]

    # ── Scripting ─────────────────────────────────────────────

    def reply_text(self, model: str, text: str, grounding: dict | None = None) -> None:
        candidate = {"content": {"role": "model", "parts": [{"text": text}]}}
        if grounding is not None:
            candidate["groundingMetadata"] = grounding
        self._replies.setdefault(model, []).append(
            httpx.Response(200, json={"candidates": [candidate]})
        )

    def reply_audio(self, model: str, data: bytes, mime_type: str = "audio/L16;codec=pcm;rate=24000") -> None:
        inline = {"mimeType": mime_type, "data": base64.b64encode(data).decode("ascii")}
        self._replies.setdefault(model, []).append(
            httpx.Response(200, json={"candidates": [{"content": {"parts": [{"inlineData": inline}]}}]})
        )

    def reply_error(self, model: str, status: int, message: str) -> None:
        self._replies.setdefault(model, []).append(
            httpx.Response(status, json={"error": {"code": status, "message": message}})
        )

    def reply_raw(self, model: str, response) -> None:
        self._replies.setdefault(model, []).append(response)


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment and .env."""
    return Settings(gemini_api_key=TEST_API_KEY, _env_file=None)


@pytest.fixture
async def gemini_client(fake_gemini):
    client = GeminiClient(api_key=TEST_API_KEY, transport=fake_gemini.transport)
    yield client
    await client.close()

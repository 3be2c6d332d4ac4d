"""Request handlers, one per function of the web app.

Each handler checks configuration, parses its body, calls the engine and
maps engine errors to the status codes and error bodies the front end
already handles.
"""

import base64
import logging

import httpx
from aiohttp import web

from engine.errors import MissingField, UnknownPromptType, UpstreamError
from engine.guidance import Guidance
from engine.speech import WAV_MIME_TYPE, Speaker
from gateway.config import Settings
from gateway.http import RequestError, json_error, read_body
from gateway.schemas import DailyRequest, RabbiRequest, RecommendRequest, SpeechRequest, TranslateRequest

log = logging.getLogger("gateway.handlers")

SETTINGS = web.AppKey("settings", Settings)
GUIDANCE = web.AppKey("guidance", Guidance)
SPEAKER = web.AppKey("speaker", Speaker)

RABBI_UNAVAILABLE = "The Rabbi is momentarily unavailable. Please try again."


def _require_api_key(request: web.Request) -> None:
    if not request.app[SETTINGS].configured:
        log.error("GEMINI_API_KEY not set")
        raise RequestError(500, "API key not configured")


async def handle_daily(request: web.Request) -> web.Response:
    _require_api_key(request)
    body = await read_body(request, DailyRequest)
    try:
        result = await request.app[GUIDANCE].daily_inspiration(body.type)
    except UnknownPromptType as e:
        return json_error(400, str(e))
    except UpstreamError as e:
        return json_error(500, "API error", details=e.details)
    return web.json_response(result)


async def handle_translate(request: web.Request) -> web.Response:
    _require_api_key(request)
    body = await read_body(request, TranslateRequest)
    try:
        result = await request.app[GUIDANCE].translate(body.text, body.direction)
    except MissingField as e:
        return json_error(400, str(e))
    except UpstreamError as e:
        return json_error(500, "API error", details=e.details)
    return web.json_response(result)


async def handle_recommend(request: web.Request) -> web.Response:
    _require_api_key(request)
    body = await read_body(request, RecommendRequest)
    answers = None
    if body.answers is not None:
        answers = [a.model_dump() for a in body.answers]
    try:
        result = await request.app[GUIDANCE].recommend(answers)
    except MissingField as e:
        return json_error(400, str(e))
    except (UpstreamError, httpx.HTTPError) as e:
        log.error("Recommendation error: %s", e)
        return json_error(500, str(e) or "Recommendation failed")
    return web.json_response(result)


async def handle_rabbi(request: web.Request) -> web.Response:
    _require_api_key(request)
    body = await read_body(request, RabbiRequest)
    if not body.message.strip():
        return json_error(400, "Message is required")

    history = [t.model_dump() for t in body.conversation_history or []]
    try:
        result = await request.app[GUIDANCE].ask_rabbi(body.message, history)
    except (UpstreamError, httpx.HTTPError) as e:
        log.error("Rabbi API error: %s", e)
        return json_error(500, RABBI_UNAVAILABLE, details=str(e))
    return web.json_response(result)


async def handle_tts(request: web.Request) -> web.Response:
    """Speak text in the rabbi voice.

    Returns ``{"audio": <base64>, "mimeType": ...}`` by default, or the WAV
    bytes themselves when the client sends ``Accept: audio/wav``.
    """
    _require_api_key(request)
    body = await read_body(request, SpeechRequest)
    if not body.text.strip():
        return json_error(400, "Text is required")

    try:
        audio = await request.app[SPEAKER].speak(body.text, body.language)
    except (UpstreamError, httpx.HTTPError) as e:
        return json_error(500, str(e) or "TTS failed")

    if WAV_MIME_TYPE in request.headers.get("Accept", "") and audio.mime_type == WAV_MIME_TYPE:
        return web.Response(body=audio.data, content_type=WAV_MIME_TYPE)

    return web.json_response({
        "audio": base64.b64encode(audio.data).decode("ascii"),
        "mimeType": audio.mime_type,
    })


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "configured": request.app[SETTINGS].configured})

"""HTTP plumbing shared by all handlers: CORS, JSON errors, body parsing."""

import json
import logging
from typing import Any, Type, TypeVar

from aiohttp import web
from pydantic import BaseModel, ValidationError

log = logging.getLogger("gateway.http")

ALLOWED_ORIGIN = web.AppKey("allowed_origin", str)

CORS_ALLOW_HEADERS = "Content-Type, Authorization"
CORS_ALLOW_METHODS = "POST, OPTIONS"

Body = TypeVar("Body", bound=BaseModel)


class RequestError(Exception):
    """Raised while handling a request; rendered as a JSON error response."""

    def __init__(self, status: int, error: str, **extra: Any):
        super().__init__(error)
        self.status = status
        self.payload = {"error": error, **extra}


def json_error(status: int, error: str, **extra: Any) -> web.Response:
    return web.json_response({"error": error, **extra}, status=status)


def cors_headers(origin: str) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
    }


async def handle_preflight(request: web.Request) -> web.Response:
    """Answer a CORS preflight; the middleware adds the headers."""
    return web.Response(status=204)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Attach CORS headers to every response and render errors as JSON."""
    try:
        response = await handler(request)
    except RequestError as e:
        response = web.json_response(e.payload, status=e.status)
    except web.HTTPMethodNotAllowed:
        response = json_error(405, "Method Not Allowed")
    except web.HTTPNotFound:
        response = json_error(404, "Not Found")
    except web.HTTPException as e:
        response = json_error(e.status, e.reason)
    except Exception as e:
        log.exception("Unhandled error on %s %s", request.method, request.path)
        response = json_error(500, str(e) or type(e).__name__)

    response.headers.update(cors_headers(request.app[ALLOWED_ORIGIN]))
    return response


async def read_body(request: web.Request, model: Type[Body]) -> Body:
    """Parse the request body as JSON and validate it against model.

    An empty body is treated as ``{}``.
    """
    raw = await request.text()
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError as e:
        raise RequestError(400, "Invalid JSON body", details=str(e)) from e

    if not isinstance(data, dict):
        raise RequestError(400, "Request body must be a JSON object")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        details = e.errors(include_url=False, include_context=False, include_input=False)
        raise RequestError(400, "Invalid request body", details=details) from e

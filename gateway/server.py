"""Gateway server: JSON endpoints for the devotional web app, proxied to Gemini."""

import logging
from pathlib import Path
from typing import Optional

import httpx
from aiohttp import web
from dotenv import load_dotenv

load_dotenv()  # Must be before Settings() so it sees .env vars

from engine.gemini import GeminiClient
from engine.guidance import Guidance
from engine.speech import Speaker
from gateway.config import Settings
from gateway.handlers import (
    GUIDANCE,
    SETTINGS,
    SPEAKER,
    handle_daily,
    handle_health,
    handle_rabbi,
    handle_recommend,
    handle_translate,
    handle_tts,
)
from gateway.http import ALLOWED_ORIGIN, cors_middleware, handle_preflight

log = logging.getLogger("gateway")

GEMINI_CLIENT = web.AppKey("gemini_client", GeminiClient)

ROUTES = {
    "daily": handle_daily,
    "translate": handle_translate,
    "recommend": handle_recommend,
    "rabbi": handle_rabbi,
    "tts": handle_tts,
}

# The front end was written against Netlify Functions; keep those paths working
ROUTE_PREFIXES = ("/api", "/.netlify/functions")


async def _close_client(app: web.Application) -> None:
    await app[GEMINI_CLIENT].close()
    log.info("Gemini client closed")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> web.Application:
    """Build the application.

    Args:
        settings: Configuration; loaded from env/.env when omitted.
        transport: Optional httpx transport for the upstream client (tests).
    """
    settings = settings or Settings()
    client = GeminiClient(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        timeout=settings.upstream_timeout,
        transport=transport,
    )

    app = web.Application(middlewares=[cors_middleware])
    app[SETTINGS] = settings
    app[ALLOWED_ORIGIN] = settings.allowed_origin
    app[GEMINI_CLIENT] = client
    app[GUIDANCE] = Guidance(client, settings.text_model, settings.rabbi_model)
    app[SPEAKER] = Speaker(
        client,
        model=settings.tts_model,
        fallback_model=settings.tts_fallback_model,
        voice=settings.tts_voice,
        default_parameters=settings.pcm_parameters(),
    )

    for prefix in ROUTE_PREFIXES:
        for name, handler in ROUTES.items():
            app.router.add_post(f"{prefix}/{name}", handler)
            app.router.add_route("OPTIONS", f"{prefix}/{name}", handle_preflight)
    app.router.add_get("/health", handle_health)

    app.on_cleanup.append(_close_client)

    if not settings.configured:
        log.warning("GEMINI_API_KEY not set; guidance endpoints will return 500")
    return app


LOG_DIR = Path(__file__).resolve().parent.parent / "logs"


def _setup_logging() -> None:
    LOG_DIR.mkdir(exist_ok=True)
    log_file = LOG_DIR / "server.log"

    fmt = logging.Formatter("%(asctime)s %(name)-12s %(levelname)-8s %(message)s")

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(fmt)

    filelog = logging.FileHandler(log_file)
    filelog.setLevel(logging.INFO)
    filelog.setFormatter(fmt)

    logging.basicConfig(level=logging.INFO, handlers=[console, filelog])

    # The API key travels in the query string; keep request URLs out of the logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    log.info("Logging to %s", log_file)


def main() -> None:
    _setup_logging()
    settings = Settings()
    app = create_app(settings)
    log.info("Serving on http://%s:%d", settings.host, settings.port)
    web.run_app(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()

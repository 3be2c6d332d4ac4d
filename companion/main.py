"""Terminal companion: the web app's guidance features from the command line.

Run with: python -m companion.main [--debug] <command> ...

Commands:
  daily blessing|verse|pathway
  translate TEXT [--to-hebrew]
  recommend ANSWERS.json
  ask MESSAGE
  speak TEXT [--language he] -o rabbi.wav
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty

from engine.errors import InvalidParameter, MissingField, UnknownPromptType, UpstreamError
from engine.gemini import GeminiClient
from engine.guidance import Guidance
from engine.prompts import DAILY_KINDS
from engine.speech import Speaker
from gateway.config import Settings

console = Console()


def _setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)-14s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )
    # Suppress HTTP-level logs; request URLs carry the API key
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sacred Pathways companion")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    daily = sub.add_parser("daily", help="Daily blessing, verse or pathway")
    daily.add_argument("kind", choices=DAILY_KINDS)

    translate = sub.add_parser("translate", help="Translate between Hebrew and English")
    translate.add_argument("text")
    translate.add_argument("--to-hebrew", action="store_true", help="English to Hebrew")

    recommend = sub.add_parser("recommend", help="Pathway recommendations from quiz answers")
    recommend.add_argument("answers", type=Path, help='JSON file: [{"question": ..., "answer": ...}]')

    ask = sub.add_parser("ask", help="Ask Rabbi Moshe a single question")
    ask.add_argument("message")

    speak = sub.add_parser("speak", help="Speak text in the rabbi voice")
    speak.add_argument("text")
    speak.add_argument("--language", default="en", help="'he' for an Israeli accent")
    speak.add_argument("-o", "--output", type=Path, default=Path("rabbi.wav"))

    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    client = GeminiClient(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        timeout=settings.upstream_timeout,
    )
    guidance = Guidance(client, settings.text_model, settings.rabbi_model)

    try:
        with console.status("[dim]Thinking...[/]", spinner="dots"):
            if args.command == "daily":
                result = await guidance.daily_inspiration(args.kind)
            elif args.command == "translate":
                direction = "toHebrew" if args.to_hebrew else "toEnglish"
                result = await guidance.translate(args.text, direction)
            elif args.command == "recommend":
                answers = json.loads(args.answers.read_text(encoding="utf-8"))
                result = await guidance.recommend(answers)
            elif args.command == "ask":
                result = await guidance.ask_rabbi(args.message)
            else:
                speaker = Speaker(
                    client,
                    model=settings.tts_model,
                    fallback_model=settings.tts_fallback_model,
                    voice=settings.tts_voice,
                    default_parameters=settings.pcm_parameters(),
                )
                audio = await speaker.speak(args.text, args.language)
                args.output.write_bytes(audio.data)
                console.print(f"[green]Wrote {len(audio.data)} bytes ({audio.mime_type}) to {args.output}[/]")
                return 0
    except (MissingField, UnknownPromptType) as e:
        console.print(f"[red]{e}[/]")
        return 2
    except (UpstreamError, httpx.HTTPError) as e:
        console.print(f"[red]Upstream error: {e}[/]")
        return 1
    except InvalidParameter as e:
        console.print(f"[red]Unplayable audio: {e}[/]")
        return 1
    finally:
        await client.close()

    if args.command == "ask":
        console.print(Panel(result["response"], title="Rabbi Moshe", border_style="blue"))
    else:
        console.print(Pretty(result))
    return 0


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.debug)

    load_dotenv()
    settings = Settings()
    if not settings.configured:
        console.print("[red]GEMINI_API_KEY is not set. Add it to the environment or .env.[/]")
        sys.exit(1)

    sys.exit(asyncio.run(_run(args, settings)))


if __name__ == "__main__":
    main()

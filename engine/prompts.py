"""Prompt builder: static templates interpolated with user-supplied fields."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from string import Template
from typing import Iterable, Mapping

from .errors import UnknownPromptType

_TEMPLATE_DIR = Path(__file__).parent / "templates"

DAILY_KINDS = ("blessing", "verse", "pathway")
TO_HEBREW_DIRECTIONS = ("toHebrew", "en-to-he")

RABBI_HANDOFF = "Please respond as Rabbi Moshe ben David from now on."


@lru_cache(maxsize=None)
def _template(name: str) -> Template:
    return Template((_TEMPLATE_DIR / f"{name}.txt").read_text(encoding="utf-8").strip())


def _render(name: str, **fields: str) -> str:
    return _template(name).substitute(**fields)


def daily_prompt(kind: str) -> str:
    """Prompt for one of the daily inspirations: blessing, verse or pathway."""
    if kind not in DAILY_KINDS:
        raise UnknownPromptType(f"Invalid type. Use: {', '.join(DAILY_KINDS[:-1])}, or {DAILY_KINDS[-1]}")
    return _render(f"daily_{kind}")


def translation_prompt(text: str, direction: str | None) -> str:
    if direction in TO_HEBREW_DIRECTIONS:
        return _render("translate_to_hebrew", text=text)
    return _render("translate_to_english", text=text)


def recommendation_prompt(answers: Iterable[Mapping]) -> str:
    """Quiz answers are listed one per line as ``Q{n}: question - Answer: answer``."""
    lines = [
        f"Q{i}: {a.get('question') or 'Question'} - Answer: {a.get('answer')}"
        for i, a in enumerate(answers, 1)
    ]
    return _render("recommend", answers="\n".join(lines))


def rabbi_contents(message: str, history: Iterable[Mapping] | None = None) -> list[dict]:
    """Build generateContent turns for the rabbi persona.

    The persona is primed with a user turn carrying the system prompt and a
    fixed model greeting. Client-supplied history follows; any role other
    than "user" is sent as "model".
    """
    contents = [
        {"role": "user", "parts": [{"text": f"{_render('rabbi_system')}\n\n{RABBI_HANDOFF}"}]},
        {"role": "model", "parts": [{"text": _render("rabbi_greeting")}]},
    ]
    for turn in history or ():
        role = "user" if turn.get("role") == "user" else "model"
        contents.append({"role": role, "parts": [{"text": turn.get("content") or ""}]})
    contents.append({"role": "user", "parts": [{"text": message}]})
    return contents


def speech_prompt(text: str, language: str | None = None) -> str:
    style = _render("speech_style_he" if language == "he" else "speech_style_en")
    return f'{style}\n\nSpeak the following text:\n"{text}"'


def fallback_speech_prompt(text: str) -> str:
    return f'Speak warmly and wisely like an elderly rabbi:\n"{text}"'

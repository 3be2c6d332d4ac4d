"""Request bodies accepted by the HTTP handlers.

Unknown fields are ignored. Required-ness is checked by the handlers so
they can return the same error messages the web app already understands.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DailyRequest(_Body):
    type: str = ""


class TranslateRequest(_Body):
    text: str = ""
    direction: Optional[str] = None


class QuizAnswer(_Body):
    question: Optional[str] = None
    answer: Any = None


class RecommendRequest(_Body):
    answers: Optional[list[QuizAnswer]] = None


class HistoryTurn(_Body):
    role: Optional[str] = None
    content: str = ""


class RabbiRequest(_Body):
    message: str = ""
    conversation_history: Optional[list[HistoryTurn]] = Field(default=None, alias="conversationHistory")
    mode: Optional[str] = None


class SpeechRequest(_Body):
    text: str = ""
    language: Optional[str] = None

"""Tests for the companion CLI's command runner against a scripted upstream."""

import argparse
import json

import httpx
import pytest

import companion.main
from companion.main import _run
from engine.gemini import GeminiClient

TEXT_MODEL = "gemini-2.5-flash"
TTS_MODEL = "gemini-2.5-pro-tts"


@pytest.fixture(autouse=True)
def scripted_client(monkeypatch, fake_gemini):
    """Route the CLI's GeminiClient through the scripted upstream."""
    monkeypatch.setattr(
        companion.main,
        "GeminiClient",
        lambda **kwargs: GeminiClient(transport=fake_gemini.transport, **kwargs),
    )


class TestRun:

    async def test_daily(self, settings, fake_gemini):
        fake_gemini.reply_text(TEXT_MODEL, '{"hebrew": "Modeh ani"}')
        code = await _run(argparse.Namespace(command="daily", kind="blessing"), settings)
        assert code == 0

    async def test_recommend_reads_answers_file(self, settings, fake_gemini, tmp_path):
        answers = tmp_path / "answers.json"
        answers.write_text(json.dumps([{"question": "Q", "answer": "A"}]), encoding="utf-8")
        fake_gemini.reply_text(TEXT_MODEL, '{"recommendations": []}')

        code = await _run(argparse.Namespace(command="recommend", answers=answers), settings)

        assert code == 0
        prompt = fake_gemini.requests[0][1]["contents"][0]["parts"][0]["text"]
        assert "Q1: Q - Answer: A" in prompt

    async def test_speak_writes_wav(self, settings, fake_gemini, tmp_path):
        output = tmp_path / "rabbi.wav"
        fake_gemini.reply_audio(TTS_MODEL, b"\x00\x01" * 4)

        args = argparse.Namespace(command="speak", text="Shalom", language="en", output=output)
        code = await _run(args, settings)

        assert code == 0
        wav = output.read_bytes()
        assert wav[:4] == b"RIFF"
        assert len(wav) == 44 + 8

    async def test_unknown_kind_is_usage_error(self, settings, fake_gemini):
        code = await _run(argparse.Namespace(command="daily", kind="psalm"), settings)
        assert code == 2
        assert fake_gemini.requests == []

    async def test_upstream_error_exits_nonzero(self, settings, fake_gemini):
        fake_gemini.reply_error(TEXT_MODEL, 503, "The model is overloaded")
        code = await _run(argparse.Namespace(command="daily", kind="verse"), settings)
        assert code == 1

    async def test_network_failure_exits_nonzero(self, settings, fake_gemini):
        fake_gemini.reply_raw(TEXT_MODEL, httpx.ConnectError("connection refused"))
        code = await _run(argparse.Namespace(command="daily", kind="blessing"), settings)
        assert code == 1

    async def test_unplayable_audio_exits_nonzero(self, settings, fake_gemini, tmp_path):
        output = tmp_path / "rabbi.wav"
        fake_gemini.reply_audio(TTS_MODEL, b"\x00\x01" * 4, mime_type="audio/L16;rate=0")

        args = argparse.Namespace(command="speak", text="Shalom", language="en", output=output)
        code = await _run(args, settings)

        assert code == 1
        assert not output.exists()

"""Guidance engine: Gemini client, prompts, speech and PCM to WAV framing."""

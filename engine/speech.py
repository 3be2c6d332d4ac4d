"""Rabbi text-to-speech: Gemini TTS with one fallback model, PCM framed as WAV."""

from __future__ import annotations

import logging

import httpx

from . import prompts
from .errors import UpstreamError
from .gemini import GeminiClient
from .types import AudioParameters, AudioPayload
from .wav import DEFAULT_PARAMETERS, encode_wav, is_linear_pcm, parameters_from_mime

log = logging.getLogger("speech")

DEFAULT_TTS_MODEL = "gemini-2.5-pro-tts"
DEFAULT_FALLBACK_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_VOICE = "Charon"  # deep, warm male voice

WAV_MIME_TYPE = "audio/wav"


def to_playable(payload: AudioPayload, default: AudioParameters = DEFAULT_PARAMETERS) -> AudioPayload:
    """Frame raw linear PCM as WAV; any other audio type passes through.

    Sampling parameters come from the MIME type when it states them,
    otherwise from default.
    """
    if not is_linear_pcm(payload.mime_type):
        return payload

    params = parameters_from_mime(payload.mime_type, default)
    if params.sample_rate != default.sample_rate:
        log.warning(
            "Upstream declared %d Hz, expected %d Hz; using declared rate",
            params.sample_rate, default.sample_rate,
        )
    wav = encode_wav(payload.data, params)
    log.debug(
        "Framed %d bytes PCM (%s) as WAV @ %dHz/%dbit/%dch",
        len(payload.data), payload.mime_type,
        params.sample_rate, params.bits_per_sample, params.channel_count,
    )
    return AudioPayload(data=wav, mime_type=WAV_MIME_TYPE)


class Speaker:
    """Speaks text in the rabbi voice."""

    def __init__(
        self,
        client: GeminiClient,
        model: str = DEFAULT_TTS_MODEL,
        fallback_model: str = DEFAULT_FALLBACK_MODEL,
        voice: str = DEFAULT_VOICE,
        default_parameters: AudioParameters = DEFAULT_PARAMETERS,
    ) -> None:
        self.client = client
        self.model = model
        self.fallback_model = fallback_model
        self.voice = voice
        self.default_parameters = default_parameters

    async def speak(self, text: str, language: str | None = None) -> AudioPayload:
        """Synthesize text, trying the fallback model once if the primary fails.

        Raises the primary model's error when both models fail.
        """
        try:
            payload = await self.client.synthesize(
                self.model, prompts.speech_prompt(text, language), self.voice
            )
        except (UpstreamError, httpx.HTTPError) as primary_error:
            log.error("TTS error (%s): %s", self.model, primary_error)
            try:
                payload = await self.client.synthesize(
                    self.fallback_model, prompts.fallback_speech_prompt(text), self.voice
                )
            except (UpstreamError, httpx.HTTPError) as fallback_error:
                log.error("Fallback TTS also failed (%s): %s", self.fallback_model, fallback_error)
                raise primary_error from fallback_error
            log.info("TTS served by fallback model %s", self.fallback_model)

        return to_playable(payload, self.default_parameters)

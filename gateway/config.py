"""Settings for the guidance gateway.

Uses pydantic-settings to load from the process environment and the
project's .env file. The resulting object is passed explicitly into the
Gemini client and the request handlers.
"""

from pathlib import Path

from pydantic_settings import BaseSettings

from engine.types import AudioParameters


class Settings(BaseSettings):
    # Gemini connection
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    upstream_timeout: float = 60.0

    # Models
    text_model: str = "gemini-2.5-flash"
    rabbi_model: str = "gemini-3-pro-preview"
    tts_model: str = "gemini-2.5-pro-tts"
    tts_fallback_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice: str = "Charon"

    # Assumed shape of upstream PCM when the MIME type doesn't say
    pcm_sample_rate: int = 24000
    pcm_bits_per_sample: int = 16
    pcm_channels: int = 1

    # HTTP
    host: str = "0.0.0.0"
    port: int = 8888
    allowed_origin: str = "*"

    model_config = {
        "env_file": str(Path(__file__).resolve().parent.parent / ".env"),
        "extra": "ignore",
    }

    @property
    def configured(self) -> bool:
        return bool(self.gemini_api_key)

    def pcm_parameters(self) -> AudioParameters:
        return AudioParameters(
            sample_rate=self.pcm_sample_rate,
            bits_per_sample=self.pcm_bits_per_sample,
            channel_count=self.pcm_channels,
        )

"""Shared data types for the guidance engine."""

from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import InvalidParameter

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFFFFFF


def _check_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidParameter(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class AudioParameters:
    """Shape of raw interleaved PCM sample data.

    block_align and byte_rate are always derived from the three stored
    fields. Construction fails with InvalidParameter for anything that could
    not be written into a canonical 44-byte WAV header.
    """
    sample_rate: int = 24000
    bits_per_sample: int = 16
    channel_count: int = 1

    def __post_init__(self):
        _check_positive_int("sample_rate", self.sample_rate)
        _check_positive_int("bits_per_sample", self.bits_per_sample)
        _check_positive_int("channel_count", self.channel_count)
        if self.bits_per_sample % 8:
            raise InvalidParameter(
                f"bits_per_sample must be a multiple of 8, got {self.bits_per_sample}"
            )
        if self.sample_rate > _U32_MAX:
            raise InvalidParameter(f"sample_rate {self.sample_rate} does not fit in 32 bits")
        if self.bits_per_sample > _U16_MAX or self.channel_count > _U16_MAX:
            raise InvalidParameter("bits_per_sample and channel_count must fit in 16 bits")
        if self.block_align > _U16_MAX:
            raise InvalidParameter(f"block_align {self.block_align} does not fit in 16 bits")
        if self.byte_rate > _U32_MAX:
            raise InvalidParameter(f"byte_rate {self.byte_rate} does not fit in 32 bits")

    @property
    def block_align(self) -> int:
        """Bytes per multi-channel sample frame."""
        return self.channel_count * (self.bits_per_sample // 8)

    @property
    def byte_rate(self) -> int:
        """Bytes consumed per second of playback."""
        return self.sample_rate * self.block_align


@dataclass
class AudioPayload:
    """Decoded audio returned by the upstream API."""
    data: bytes
    mime_type: str


@dataclass
class Generation:
    """Text reply from a generateContent call."""
    text: str
    grounding_metadata: Optional[dict] = None
    raw: dict = field(default_factory=dict, repr=False)

"""PCM to WAV framing: a canonical 44-byte RIFF/WAVE header plus the samples.

The encoder never looks inside the sample bytes. It only describes them,
so the caller is responsible for handing over little-endian interleaved PCM
whose length is a multiple of the frame size.
"""

import re
import struct
from typing import Optional

from .errors import InvalidParameter
from .types import AudioParameters


HEADER_SIZE = 44
PCM_FMT_CHUNK_SIZE = 16
WAVE_FORMAT_PCM = 1

# RIFF id, chunk size, WAVE, "fmt ", fmt size, format, channels,
# sample rate, byte rate, block align, bits per sample, "data", data size
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")

_MAX_DATA_SIZE = 0xFFFFFFFF - (HEADER_SIZE - 8)

DEFAULT_PARAMETERS = AudioParameters(sample_rate=24000, bits_per_sample=16, channel_count=1)

_PCM_MIME_RE = re.compile(r"l16|pcm", re.IGNORECASE)
_BITS_RE = re.compile(r"/l(\d+)", re.IGNORECASE)


def wav_header(data_size: int, params: AudioParameters) -> bytes:
    """Build the 44-byte header describing data_size bytes of PCM."""
    if data_size < 0 or data_size > _MAX_DATA_SIZE:
        raise InvalidParameter(f"data size {data_size} does not fit in a WAV container")

    header = _HEADER.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        PCM_FMT_CHUNK_SIZE,
        WAVE_FORMAT_PCM,
        params.channel_count,
        params.sample_rate,
        params.byte_rate,
        params.block_align,
        params.bits_per_sample,
        b"data",
        data_size,
    )
    return header


def encode_wav(pcm: bytes, params: AudioParameters) -> bytes:
    """Wrap raw PCM bytes in a WAV container.

    Args:
        pcm: Interleaved little-endian PCM samples.
        params: Sample rate, bit depth and channel count describing pcm.

    Returns:
        Header followed by the unmodified sample bytes (44 + len(pcm) bytes).

    Raises:
        InvalidParameter: params is not an AudioParameters, or pcm is too
            large for 32-bit RIFF sizes.
    """
    if not isinstance(params, AudioParameters):
        raise InvalidParameter(f"expected AudioParameters, got {type(params).__name__}")
    return wav_header(len(pcm), params) + pcm


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int = 24000,
    bits_per_sample: int = 16,
    channel_count: int = 1,
) -> bytes:
    """Convenience wrapper using the upstream TTS defaults (24kHz 16-bit mono)."""
    params = AudioParameters(
        sample_rate=sample_rate,
        bits_per_sample=bits_per_sample,
        channel_count=channel_count,
    )
    return encode_wav(pcm, params)


def is_linear_pcm(mime_type: Optional[str]) -> bool:
    """True for MIME types that denote raw linear PCM, e.g. ``audio/L16;rate=24000``."""
    return bool(mime_type) and bool(_PCM_MIME_RE.search(mime_type))


def parameters_from_mime(
    mime_type: Optional[str],
    default: AudioParameters = DEFAULT_PARAMETERS,
) -> AudioParameters:
    """Read rate, bit depth and channels out of a PCM MIME type.

    ``audio/L16;codec=pcm;rate=24000`` yields 24000 Hz 16-bit. Anything the
    type does not state is taken from default.
    """
    sample_rate = default.sample_rate
    bits_per_sample = default.bits_per_sample
    channel_count = default.channel_count

    if mime_type:
        media, *options = [p.strip() for p in mime_type.split(";")]
        m = _BITS_RE.search(media)
        if m:
            bits_per_sample = int(m.group(1))
        for option in options:
            key, _, value = option.partition("=")
            key = key.strip().lower()
            value = value.strip().strip('"')
            if not value.isdigit():
                continue
            if key == "rate":
                sample_rate = int(value)
            elif key == "channels":
                channel_count = int(value)

    return AudioParameters(
        sample_rate=sample_rate,
        bits_per_sample=bits_per_sample,
        channel_count=channel_count,
    )

"""Tests for the PCM -> WAV encoder and the audio parameter type."""

import io
import struct
import wave

import pytest

from engine.errors import InvalidParameter
from engine.types import AudioParameters
from engine.wav import (
    HEADER_SIZE,
    encode_wav,
    is_linear_pcm,
    parameters_from_mime,
    pcm_to_wav,
    wav_header,
)

MONO_24K = AudioParameters(sample_rate=24000, bits_per_sample=16, channel_count=1)


def _u16(data: bytes, offset: int) -> int:
    return struct.unpack_from("<H", data, offset)[0]


def _u32(data: bytes, offset: int) -> int:
    return struct.unpack_from("<I", data, offset)[0]


class TestAudioParameters:
    """Derived fields and validation."""

    def test_derived_fields_for_24k_mono(self):
        assert MONO_24K.block_align == 2
        assert MONO_24K.byte_rate == 48000

    def test_derived_fields_for_stereo_24_bit(self):
        params = AudioParameters(sample_rate=44100, bits_per_sample=24, channel_count=2)
        assert params.block_align == 6
        assert params.byte_rate == 44100 * 6

    def test_is_immutable(self):
        with pytest.raises(Exception):
            MONO_24K.sample_rate = 16000

    @pytest.mark.parametrize("field", ["sample_rate", "bits_per_sample", "channel_count"])
    @pytest.mark.parametrize("value", [0, -8])
    def test_rejects_non_positive(self, field, value):
        with pytest.raises(InvalidParameter):
            AudioParameters(**{field: value})

    def test_rejects_bits_not_multiple_of_eight(self):
        with pytest.raises(InvalidParameter, match="multiple of 8"):
            AudioParameters(bits_per_sample=12)

    @pytest.mark.parametrize("value", [24000.0, "24000", True])
    def test_rejects_non_integer_sample_rate(self, value):
        with pytest.raises(InvalidParameter):
            AudioParameters(sample_rate=value)

    def test_rejects_fields_wider_than_header(self):
        with pytest.raises(InvalidParameter):
            AudioParameters(channel_count=70000)
        with pytest.raises(InvalidParameter):
            AudioParameters(sample_rate=2**32)

    def test_rejects_derived_fields_wider_than_header(self):
        # block_align 65535 * 2 = 131070 does not fit in 16 bits
        with pytest.raises(InvalidParameter):
            AudioParameters(channel_count=65535, bits_per_sample=16)
        # byte_rate 2**31 * 8 = 2**34 does not fit in 32 bits
        with pytest.raises(InvalidParameter):
            AudioParameters(sample_rate=2**31, bits_per_sample=32, channel_count=2)

    def test_invalid_parameter_is_a_value_error(self):
        assert issubclass(InvalidParameter, ValueError)


class TestEncodeWav:
    """Byte layout of the canonical 44-byte header."""

    def test_one_second_scenario(self):
        pcm = bytes(range(256)) * 187 + bytes(range(128))  # 48000 bytes
        assert len(pcm) == 48000

        wav = encode_wav(pcm, MONO_24K)

        assert len(wav) == 44044
        assert _u32(wav, 24) == 24000
        assert _u32(wav, 28) == 48000
        assert _u16(wav, 34) == 16

    def test_fixed_tags(self):
        wav = encode_wav(b"\x00\x01" * 10, MONO_24K)
        assert wav[0:4] == b"RIFF"
        assert wav[8:12] == b"WAVE"
        assert wav[12:16] == b"fmt "
        assert wav[36:40] == b"data"

    def test_every_header_field(self):
        pcm = b"\x10\x20\x30\x40" * 25
        params = AudioParameters(sample_rate=16000, bits_per_sample=16, channel_count=2)

        wav = encode_wav(pcm, params)

        assert _u32(wav, 4) == 36 + len(pcm)
        assert _u32(wav, 16) == 16
        assert _u16(wav, 20) == 1
        assert _u16(wav, 22) == 2
        assert _u32(wav, 24) == 16000
        assert _u32(wav, 28) == 64000
        assert _u16(wav, 32) == 4
        assert _u16(wav, 34) == 16
        assert _u32(wav, 40) == len(pcm)

    def test_derived_fields_are_little_endian(self):
        wav = encode_wav(b"", MONO_24K)
        assert wav[28:32] == (48000).to_bytes(4, "little")
        assert wav[32:34] == (2).to_bytes(2, "little")

    def test_samples_are_copied_unchanged(self):
        pcm = bytes((i * 37) % 256 for i in range(1000))
        wav = encode_wav(pcm, MONO_24K)
        assert wav[HEADER_SIZE:] == pcm

    def test_accepts_bytearray_without_mutating_it(self):
        pcm = bytearray(b"\x01\x02\x03\x04")
        wav = encode_wav(pcm, MONO_24K)
        assert wav[HEADER_SIZE:] == b"\x01\x02\x03\x04"
        assert pcm == bytearray(b"\x01\x02\x03\x04")

    def test_is_deterministic(self):
        pcm = b"\x7f\xff" * 300
        assert encode_wav(pcm, MONO_24K) == encode_wav(pcm, MONO_24K)

    def test_empty_buffer(self):
        wav = encode_wav(b"", MONO_24K)
        assert len(wav) == 44
        assert _u32(wav, 4) == 36
        assert _u32(wav, 40) == 0

    def test_largest_data_size_fits_riff_size(self):
        header = wav_header(0xFFFFFFFF - 36, MONO_24K)
        assert len(header) == HEADER_SIZE
        assert _u32(header, 4) == 0xFFFFFFFF
        assert _u32(header, 40) == 0xFFFFFFFF - 36

    def test_data_size_overflowing_riff_size(self):
        with pytest.raises(InvalidParameter):
            wav_header(0xFFFFFFFF - 35, MONO_24K)
        with pytest.raises(InvalidParameter):
            wav_header(-1, MONO_24K)

    def test_rejects_unvalidated_parameters(self):
        with pytest.raises(InvalidParameter):
            encode_wav(b"", (24000, 16, 1))

    def test_sample_rate_zero_fails_before_output(self):
        with pytest.raises(InvalidParameter):
            pcm_to_wav(b"\x00\x00", sample_rate=0)

    def test_readable_by_stdlib_wave(self):
        pcm = struct.pack("<6h", 0, 1000, -1000, 32767, -32768, 5)
        params = AudioParameters(sample_rate=22050, bits_per_sample=16, channel_count=2)

        with wave.open(io.BytesIO(encode_wav(pcm, params)), "rb") as wf:
            assert wf.getnchannels() == 2
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 22050
            assert wf.getnframes() == 3
            assert wf.readframes(3) == pcm

    def test_pcm_to_wav_defaults_match_upstream_tts(self):
        wav = pcm_to_wav(b"\x00\x00" * 24000)
        assert _u32(wav, 24) == 24000
        assert _u16(wav, 22) == 1
        assert _u16(wav, 34) == 16


class TestMimeHelpers:
    """Recognising raw PCM and reading its parameters from the MIME type."""

    @pytest.mark.parametrize("mime", [
        "audio/L16;codec=pcm;rate=24000",
        "audio/l16",
        "audio/pcm",
        "audio/x-PCM;rate=16000",
    ])
    def test_linear_pcm_types(self, mime):
        assert is_linear_pcm(mime)

    @pytest.mark.parametrize("mime", ["audio/mpeg", "audio/wav", "audio/ogg;codecs=opus", "", None])
    def test_other_types(self, mime):
        assert not is_linear_pcm(mime)

    def test_rate_from_mime(self):
        params = parameters_from_mime("audio/L16;codec=pcm;rate=16000")
        assert params == AudioParameters(16000, 16, 1)

    def test_bits_and_channels_from_mime(self):
        params = parameters_from_mime("audio/L24; rate=48000; channels=2")
        assert params == AudioParameters(48000, 24, 2)

    def test_missing_fields_fall_back_to_default(self):
        default = AudioParameters(8000, 8, 1)
        assert parameters_from_mime("audio/pcm", default) == default
        assert parameters_from_mime(None, default) == default

    def test_garbage_rate_is_ignored(self):
        assert parameters_from_mime("audio/L16;rate=fast").sample_rate == 24000

    def test_declared_zero_rate_is_rejected(self):
        with pytest.raises(InvalidParameter):
            parameters_from_mime("audio/L16;rate=0")

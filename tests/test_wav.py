"""Tests for PCM encoding and the WAV container."""

import struct

import numpy as np
import pytest

from podtrack.audio.wav import (
    WAV_HEADER_SIZE,
    PcmChunkEncoder,
    decode_wav,
    encode_wav,
    encode_wav_header,
    float_to_pcm16,
)
from podtrack.utils.exceptions import DecodeFailure


def test_header_layout():
    header = encode_wav_header(data_size=1000, sample_rate=48000, channels=2)

    assert len(header) == WAV_HEADER_SIZE
    (
        riff,
        riff_size,
        wave,
        fmt,
        fmt_size,
        format_tag,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits,
        data,
        data_size,
    ) = struct.unpack("<4sI4s4sIHHIIHH4sI", header)
    assert (riff, wave, fmt, data) == (b"RIFF", b"WAVE", b"fmt ", b"data")
    assert riff_size == 1036
    assert fmt_size == 16
    assert format_tag == 1
    assert channels == 2
    assert sample_rate == 48000
    assert byte_rate == 48000 * 4
    assert block_align == 4
    assert bits == 16
    assert data_size == 1000


def test_float_to_pcm16_scaling_and_clamping():
    pcm = float_to_pcm16(np.array([-2.0, -1.0, -0.5, 0.0, 0.5, 1.0, 2.0]))

    assert pcm.dtype == np.dtype("<i2")
    assert pcm.tolist() == [-32768, -32768, -16384, 0, 16383, 32767, 32767]


def test_round_trip_within_quantization():
    rng = np.random.default_rng(7)
    samples = rng.uniform(-0.9, 0.9, size=(1200, 2)).astype(np.float32)

    decoded, sample_rate = decode_wav(encode_wav(samples, 16000))

    assert sample_rate == 16000
    assert decoded.shape == samples.shape
    assert np.max(np.abs(decoded - samples)) < 2.0 / 32768


def test_decode_garbage_raises():
    with pytest.raises(DecodeFailure):
        decode_wav(b"RIFF-but-not-really")


def test_encoder_delivers_whole_chunks():
    encoder = PcmChunkEncoder(sample_rate=1000, channels=1, chunk_seconds=0.1)

    assert encoder.encode(np.zeros(50, dtype=np.float32)) == []
    chunks = encoder.encode(np.zeros(180, dtype=np.float32))

    assert len(chunks) == 2
    assert all(len(chunk) == 100 * 2 for chunk in chunks)
    assert encoder.flush() == bytes(30 * 2)
    assert encoder.flush() is None


def test_encoder_preserves_sample_order():
    encoder = PcmChunkEncoder(sample_rate=10, channels=1, chunk_seconds=0.5)
    values = np.linspace(-0.5, 0.5, 12, dtype=np.float32)

    out = b"".join(encoder.encode(values[:7]) + encoder.encode(values[7:]))
    out += encoder.flush() or b""

    assert out == float_to_pcm16(values).tobytes()


def test_encoder_downmixes_to_mono():
    encoder = PcmChunkEncoder(sample_rate=10, channels=2, chunk_seconds=0.1, mono=True)
    block = np.array([[0.5, -0.5], [1.0, 0.0]], dtype=np.float32)

    chunks = encoder.encode(block)

    assert encoder.channels == 1
    assert np.frombuffer(b"".join(chunks), dtype="<i2").tolist() == [0, 16383]


def test_encoder_rejects_channel_mismatch():
    encoder = PcmChunkEncoder(sample_rate=10, channels=2)

    with pytest.raises(ValueError):
        encoder.encode(np.zeros((4, 1), dtype=np.float32))


def test_encoder_rejects_bad_parameters():
    with pytest.raises(ValueError):
        PcmChunkEncoder(sample_rate=0, channels=1)
    with pytest.raises(ValueError):
        PcmChunkEncoder(sample_rate=100, channels=1, chunk_seconds=0)

"""PCM encoding and the WAV container used for every track file.

Track files are plain 16-bit PCM WAV: a 44-byte RIFF header (``fmt `` chunk
of 16 bytes, PCM format tag 1) followed by a single ``data`` chunk holding
interleaved little-endian int16 samples.
"""

import io
import struct
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
import soundfile as sf

from podtrack.utils.exceptions import DecodeFailure
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)

WAV_HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
PCM_FORMAT_TAG = 1


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Convert floating-point samples to little-endian int16, clamped to [-1, 1]."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    return scaled.astype("<i2")


def pcm16_to_float(pcm: np.ndarray) -> np.ndarray:
    """Convert int16 samples back to float32 in [-1, 1)."""
    return np.asarray(pcm, dtype=np.float32) / 32768.0


def encode_wav_header(data_size: int, sample_rate: int, channels: int) -> bytes:
    """Build the 44-byte RIFF/WAVE header for ``data_size`` bytes of PCM."""
    block_align = channels * BITS_PER_SAMPLE // 8
    byte_rate = sample_rate * block_align
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT_TAG,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Encode float samples shaped ``(frames,)`` or ``(frames, channels)`` as WAV."""
    data = np.asarray(samples)
    if data.ndim == 1:
        data = data[:, np.newaxis]
    channels = data.shape[1]
    payload = float_to_pcm16(data).tobytes()
    return encode_wav_header(len(payload), sample_rate, channels) + payload


def decode_wav(data: bytes) -> Tuple[np.ndarray, int]:
    """Decode WAV bytes to ``(samples, sample_rate)`` with shape ``(frames, channels)``."""
    try:
        samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (RuntimeError, ValueError, TypeError) as e:
        raise DecodeFailure("<memory>", str(e)) from e
    return samples, sample_rate


def read_audio(path: Union[str, Path]) -> Tuple[np.ndarray, int]:
    """Load an audio file as float32 ``(frames, channels)`` plus its sample rate.

    Raises:
        DecodeFailure: If the file is missing or cannot be decoded.
    """
    try:
        samples, sample_rate = sf.read(str(path), dtype="float32", always_2d=True)
    except (RuntimeError, OSError, ValueError, TypeError) as e:
        logger.error(f"🛑 Failed to decode {path}: {e}")
        raise DecodeFailure(path, str(e)) from e

    logger.debug(
        f"📡 Loaded {Path(path).name}: {samples.shape[0]} frames @ {sample_rate}Hz, "
        f"{samples.shape[1]}ch"
    )
    return samples, sample_rate


class PcmChunkEncoder:
    """Incremental 16-bit PCM encoder with a fixed delivery cadence.

    Audio blocks of any size go in; whole chunks of ``chunk_seconds`` of audio
    come out as interleaved little-endian bytes. Whatever is left over is
    returned by ``flush``.
    """

    def __init__(
        self,
        sample_rate: int,
        channels: int,
        chunk_seconds: float = 1.0,
        mono: bool = False,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {sample_rate}")
        if channels < 1:
            raise ValueError(f"Invalid channel count: {channels}")
        if chunk_seconds <= 0:
            raise ValueError("Chunk cadence must be positive")

        self.sample_rate = sample_rate
        self.input_channels = channels
        self.mono = mono
        self.channels = 1 if mono else channels
        self.chunk_frames = max(1, int(round(sample_rate * chunk_seconds)))

        self._pending: List[np.ndarray] = []
        self._pending_frames = 0

    def encode(self, block: np.ndarray) -> List[bytes]:
        """Feed one block and return every chunk that became complete."""
        data = np.asarray(block, dtype=np.float32)
        if data.ndim == 1:
            data = data[:, np.newaxis]
        if data.shape[1] != self.input_channels:
            raise ValueError(
                f"Expected {self.input_channels} channels, got {data.shape[1]}"
            )
        if self.mono and self.input_channels > 1:
            data = data.mean(axis=1, keepdims=True)

        if data.shape[0] == 0:
            return []

        self._pending.append(data)
        self._pending_frames += data.shape[0]

        chunks: List[bytes] = []
        if self._pending_frames < self.chunk_frames:
            return chunks

        buffered = np.concatenate(self._pending)
        offset = 0
        while buffered.shape[0] - offset >= self.chunk_frames:
            frame_slice = buffered[offset : offset + self.chunk_frames]
            chunks.append(float_to_pcm16(frame_slice).tobytes())
            offset += self.chunk_frames

        remainder = buffered[offset:]
        self._pending = [remainder] if remainder.shape[0] else []
        self._pending_frames = remainder.shape[0]
        return chunks

    def flush(self) -> Optional[bytes]:
        """Return the partial chunk still buffered, if any."""
        if not self._pending_frames:
            return None
        tail = float_to_pcm16(np.concatenate(self._pending)).tobytes()
        self._pending = []
        self._pending_frames = 0
        return tail

"""Per-participant track recording."""

import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np

from podtrack.audio.streams import LiveStream
from podtrack.audio.wav import PcmChunkEncoder, encode_wav_header
from podtrack.config.config_loader import config
from podtrack.utils.exceptions import CaptureFailure, FlushTimeout, InvalidStateTransition
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)


class RecordingState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class FinalizedTrack:
    """One participant's finished recording.

    ``encoded_bytes`` is the exact concatenation of the recorder's chunks:
    interleaved little-endian 16-bit PCM.
    """

    track_id: str
    display_name: str
    encoded_bytes: bytes
    sample_rate: int
    channels: int

    @property
    def duration(self) -> float:
        frame_bytes = self.channels * 2
        return len(self.encoded_bytes) / frame_bytes / self.sample_rate

    def to_wav(self) -> bytes:
        header = encode_wav_header(len(self.encoded_bytes), self.sample_rate, self.channels)
        return header + self.encoded_bytes


class TrackRecorder:
    """Capture state machine wrapping one live stream.

    ``IDLE -> RECORDING <-> PAUSED -> STOPPED``. A recorder is never
    restarted. ``stop`` returns a Future that resolves with the
    FinalizedTrack once the stream is closed and the encoder has flushed, or
    with a CaptureFailure if the track failed at any point.
    """

    def __init__(
        self,
        track_id: str,
        display_name: str,
        stream: LiveStream,
        mono: Optional[bool] = None,
        chunk_seconds: Optional[float] = None,
    ) -> None:
        self.track_id = track_id
        self.display_name = display_name
        self.stream = stream
        self.mono = mono if mono is not None else config.get("recording.mono", False)

        self._encoder = PcmChunkEncoder(
            stream.sample_rate,
            stream.channels,
            chunk_seconds or config.get("recording.chunk_seconds", 1.0),
            mono=self.mono,
        )
        self._lock = threading.Lock()
        self._state = RecordingState.IDLE
        self._chunks: List[bytes] = []
        self._chunk_count = 0
        self._byte_count = 0
        self._failure: Optional[CaptureFailure] = None
        self._stop_requested = False
        self._completion: "Future[FinalizedTrack]" = Future()

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    @property
    def completion(self) -> "Future[FinalizedTrack]":
        return self._completion

    @property
    def chunk_count(self) -> int:
        """Number of chunks delivered so far."""
        return self._chunk_count

    @property
    def byte_count(self) -> int:
        """Total bytes delivered so far, in arrival order."""
        return self._byte_count

    @property
    def failed(self) -> bool:
        return self._failure is not None

    def start(self) -> None:
        """Open the stream and begin encoding.

        Raises:
            InvalidStateTransition: If the recorder is not idle.
            CaptureFailure: If the stream cannot be opened. The recorder is
                then stopped and its completion carries the failure.
        """
        with self._lock:
            if self._state is not RecordingState.IDLE:
                raise InvalidStateTransition("start", self._state.value)
            self._state = RecordingState.RECORDING

        try:
            self.stream.open(self._on_audio, self._on_error)
        except Exception as e:
            failure = CaptureFailure(self.track_id, f"stream could not be opened: {e}")
            with self._lock:
                self._failure = failure
                self._stop_requested = True
                self._state = RecordingState.STOPPED
            self._completion.set_exception(failure)
            logger.error(f"🛑 Failed to start track {self.display_name}: {e}")
            raise failure from e

        logger.info(f"🔴 Recording track {self.display_name} ({self.track_id})")

    def pause(self) -> None:
        with self._lock:
            if self._state is not RecordingState.RECORDING or self._stop_requested:
                raise InvalidStateTransition("pause", self._state.value)
            self._state = RecordingState.PAUSED
        logger.debug(f"⏸️ Paused track {self.track_id}")

    def resume(self) -> None:
        with self._lock:
            if self._state is not RecordingState.PAUSED or self._stop_requested:
                raise InvalidStateTransition("resume", self._state.value)
            self._state = RecordingState.RECORDING
        logger.debug(f"▶️ Resumed track {self.track_id}")

    def stop(self) -> "Future[FinalizedTrack]":
        """Ask the encoder to flush and return the completion future.

        Raises:
            InvalidStateTransition: If the recorder is not recording or
                paused, or stop was already requested.
        """
        with self._lock:
            active = (RecordingState.RECORDING, RecordingState.PAUSED)
            if self._state not in active or self._stop_requested:
                raise InvalidStateTransition("stop", self._state.value)
            self._stop_requested = True

        flush_thread = threading.Thread(
            target=self._flush, name=f"flush-{self.track_id}", daemon=True
        )
        flush_thread.start()
        return self._completion

    def finalize(self, timeout: Optional[float] = None) -> FinalizedTrack:
        """Stop if needed and block until the finalized track is available.

        Raises:
            FlushTimeout: If the flush does not complete within ``timeout``.
            CaptureFailure: If the track failed.
        """
        if not self._stop_requested:
            self.stop()
        try:
            return self._completion.result(timeout=timeout)
        except FutureTimeoutError:
            raise FlushTimeout(self.track_id, timeout)

    def _on_audio(self, block: np.ndarray) -> None:
        with self._lock:
            if (
                self._state is not RecordingState.RECORDING
                or self._stop_requested
                or self._failure is not None
            ):
                return
            try:
                chunks = self._encoder.encode(block)
            except Exception as e:
                self._failure = CaptureFailure(self.track_id, f"encoder failed: {e}")
                logger.error(f"🛑 Encoder failed on track {self.track_id}: {e}")
                return
            self._append(chunks)

    def _on_error(self, error: Exception) -> None:
        with self._lock:
            if self._failure is None:
                self._failure = CaptureFailure(self.track_id, f"stream failed: {error}")
        logger.error(f"🛑 Stream failed on track {self.track_id}: {error}")

    def _append(self, chunks: List[bytes]) -> None:
        for chunk in chunks:
            self._chunks.append(chunk)
            self._chunk_count += 1
            self._byte_count += len(chunk)

    def _flush(self) -> None:
        try:
            self.stream.close()
            with self._lock:
                # Buffered frames were all accepted before any failure
                tail = self._encoder.flush()
                if tail:
                    self._append([tail])
                failure = self._failure
                encoded = b"".join(self._chunks)
                # Ownership of the audio moves to the FinalizedTrack
                self._chunks = []
                self._state = RecordingState.STOPPED
        except Exception as e:
            with self._lock:
                self._state = RecordingState.STOPPED
            logger.error(f"🛑 Flush failed on track {self.track_id}: {e}")
            self._completion.set_exception(
                CaptureFailure(self.track_id, f"flush failed: {e}")
            )
            return

        track = FinalizedTrack(
            track_id=self.track_id,
            display_name=self.display_name,
            encoded_bytes=encoded,
            sample_rate=self._encoder.sample_rate,
            channels=self._encoder.channels,
        )

        if failure is not None:
            if encoded:
                failure.partial_track = track
                logger.warning(
                    f"🟡 Track {self.display_name} failed, keeping {track.duration:.1f}s "
                    f"recorded before the failure"
                )
            self._completion.set_exception(failure)
            return

        logger.info(
            f"✅ Track {self.display_name} finalized: {self._chunk_count} chunks, "
            f"{len(encoded)} bytes ({track.duration:.1f}s)"
        )
        self._completion.set_result(track)

"""Live audio stream adapters feeding TrackRecorders.

A stream delivers float32 blocks shaped ``(frames, channels)`` to the
``on_audio`` callback it was opened with, from whatever thread produces
them, and reports failures through ``on_error``.
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from podtrack.config.config_loader import config
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)

AudioCallback = Callable[[np.ndarray], None]
ErrorCallback = Callable[[Exception], None]


class LiveStream(ABC):
    """A participant's live audio as handed over by the transport."""

    def __init__(self, sample_rate: int, channels: int) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._on_audio: Optional[AudioCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    @abstractmethod
    def open(self, on_audio: AudioCallback, on_error: ErrorCallback) -> None:
        """Start delivering audio to ``on_audio``."""

    @abstractmethod
    def close(self) -> None:
        """Stop delivering audio. Returns once no further callbacks will run."""

    @property
    def is_open(self) -> bool:
        return self._on_audio is not None


class PushStream(LiveStream):
    """Stream fed by the transport: each received block is ``push``-ed in.

    The transport signals a participant leaving with ``end`` and a broken
    connection with ``fail``.
    """

    def __init__(self, sample_rate: int, channels: int = 1) -> None:
        super().__init__(sample_rate, channels)
        self._lock = threading.Lock()
        self.ended = False

    def open(self, on_audio: AudioCallback, on_error: ErrorCallback) -> None:
        with self._lock:
            if self.ended:
                raise RuntimeError("Stream has already ended")
            self._on_audio = on_audio
            self._on_error = on_error

    def close(self) -> None:
        with self._lock:
            self._on_audio = None
            self._on_error = None

    def push(self, block: np.ndarray) -> bool:
        """Deliver one block. Returns False if nothing is listening."""
        with self._lock:
            callback = self._on_audio
            if callback is None or self.ended:
                return False
            callback(block)
            return True

    def end(self) -> None:
        with self._lock:
            self.ended = True

    def fail(self, error: Exception) -> None:
        with self._lock:
            self.ended = True
            callback = self._on_error
        if callback is not None:
            callback(error)


class MicrophoneStream(LiveStream):
    """The host's own microphone, captured with sounddevice."""

    def __init__(
        self,
        device: Optional[int] = None,
        sample_rate: Optional[int] = None,
        channels: Optional[int] = None,
        blocksize: int = 1024,
    ) -> None:
        super().__init__(
            sample_rate or config.get("recording.sample_rate", 48000),
            channels or config.get("recording.channels", 1),
        )
        self.device = device if device is not None else config.get("recording.device")
        self.blocksize = blocksize
        self._stream = None

    def open(self, on_audio: AudioCallback, on_error: ErrorCallback) -> None:
        import sounddevice as sd

        self._on_audio = on_audio
        self._on_error = on_error
        try:
            self._stream = sd.InputStream(
                device=self.device,
                channels=self.channels,
                samplerate=self.sample_rate,
                blocksize=self.blocksize,
                callback=self._audio_callback,
                dtype=np.float32,
            )
            self._stream.start()
        except Exception:
            self._on_audio = None
            self._on_error = None
            self._stream = None
            raise

        logger.info(
            f"🎙️ Microphone stream started: device={self.device}, "
            f"{self.sample_rate}Hz, {self.channels}ch"
        )

    def close(self) -> None:
        if self._stream is not None:
            try:
                if self._stream.active:
                    self._stream.stop()
            finally:
                self._stream.close()
                self._stream = None
        self._on_audio = None
        self._on_error = None

    def _audio_callback(
        self, indata: np.ndarray, frames: int, time_info: dict, status
    ) -> None:
        """sounddevice callback; runs on the PortAudio thread."""
        if status:
            logger.warning(f"Audio callback status: {status}")

        callback = self._on_audio
        if callback is not None:
            callback(indata.copy())

"""Shared fixtures for PodTrack tests."""

import os
import threading
from pathlib import Path

# Must be set before podtrack.config is first imported
os.environ.setdefault("PODTRACK_CONFIG", str(Path(__file__).parent / "config.yml"))

import numpy as np
import pytest

from podtrack.audio.streams import LiveStream

SAMPLE_RATE = 8000


def make_signal(segments, sample_rate=SAMPLE_RATE, amplitude=0.5, frequency=440.0):
    """Build a mono buffer from ``(seconds, loud)`` segments.

    Loud segments are a sine tone, quiet ones are digital silence.
    """
    parts = []
    for seconds, loud in segments:
        frames = int(round(seconds * sample_rate))
        if loud:
            t = np.arange(frames) / sample_rate
            parts.append((amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32))
        else:
            parts.append(np.zeros(frames, dtype=np.float32))
    return np.concatenate(parts) if parts else np.zeros(0, dtype=np.float32)


class FakeStream(LiveStream):
    """In-memory LiveStream driven directly by the test."""

    def __init__(self, sample_rate=SAMPLE_RATE, channels=1, fail_on_open=False):
        super().__init__(sample_rate, channels)
        self.fail_on_open = fail_on_open
        self.close_gate = None
        self.closed = False

    def open(self, on_audio, on_error):
        if self.fail_on_open:
            raise OSError("device unavailable")
        self._on_audio = on_audio
        self._on_error = on_error

    def close(self):
        if self.close_gate is not None:
            self.close_gate.wait()
        self.closed = True
        self._on_audio = None

    def emit(self, block):
        if self._on_audio is not None:
            self._on_audio(np.asarray(block, dtype=np.float32))

    def error(self, exc):
        if self._on_error is not None:
            self._on_error(exc)


@pytest.fixture
def fake_stream():
    return FakeStream()


@pytest.fixture
def blocking_stream():
    """A stream whose close waits until the test releases it."""
    stream = FakeStream()
    stream.close_gate = threading.Event()
    yield stream
    stream.close_gate.set()


@pytest.fixture
def signal_factory():
    return make_signal

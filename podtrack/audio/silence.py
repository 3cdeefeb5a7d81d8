"""RMS-windowed silence detection for a single decoded track."""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from podtrack.audio.intervals import TimeInterval
from podtrack.audio.wav import read_audio
from podtrack.config.config_loader import config
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class SilenceOptions:
    """Tuning for silence detection and the padding kept around cuts."""

    threshold: float = 0.01
    min_silence_duration: float = 1.5
    padding: float = 0.3
    window_seconds: float = 0.05

    @classmethod
    def from_config(cls) -> "SilenceOptions":
        return cls(
            threshold=config.get("silence.threshold", 0.01),
            min_silence_duration=config.get("silence.min_silence_duration", 1.5),
            padding=config.get("silence.padding", 0.3),
            window_seconds=config.get("silence.window_seconds", 0.05),
        )


@dataclass(frozen=True)
class SilenceReport:
    """Silence found in one track, sorted by start and non-overlapping."""

    intervals: Tuple[TimeInterval, ...] = ()
    duration: float = 0.0

    @property
    def total_silence(self) -> float:
        return sum(interval.duration for interval in self.intervals)


class SilenceAnalyzer:
    """Finds runs of quiet RMS windows long enough to count as silence."""

    def __init__(self, options: Optional[SilenceOptions] = None) -> None:
        self.options = options or SilenceOptions.from_config()

    def analyze(self, samples: np.ndarray, sample_rate: int) -> SilenceReport:
        """Scan a decoded buffer and report its silence intervals.

        Args:
            samples: Float samples, ``(frames,)`` or ``(frames, channels)``.
                Only the first channel is analyzed.
            sample_rate: Sample rate of ``samples`` in Hz.

        Returns:
            The track's SilenceReport.
        """
        if sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {sample_rate}")

        channel = self._first_channel(samples)
        total_frames = channel.shape[0]
        duration = total_frames / sample_rate
        if total_frames == 0:
            return SilenceReport((), 0.0)

        window_size = max(1, int(sample_rate * self.options.window_seconds))
        quiet = self._quiet_windows(channel, window_size)

        min_duration = self.options.min_silence_duration
        intervals: List[TimeInterval] = []
        run_start: Optional[float] = None

        for index, is_quiet in enumerate(quiet):
            time_sec = index * window_size / sample_rate
            if is_quiet:
                if run_start is None:
                    run_start = time_sec
            elif run_start is not None:
                # A zero minimum keeps every quiet run
                if time_sec - run_start >= min_duration:
                    intervals.append(TimeInterval(run_start, time_sec))
                run_start = None

        # Trailing silence
        if run_start is not None and duration - run_start >= min_duration:
            intervals.append(TimeInterval(run_start, duration))

        logger.debug(
            f"🔇 {len(intervals)} silence regions in {duration:.2f}s "
            f"(threshold={self.options.threshold}, min={min_duration}s)"
        )
        return SilenceReport(tuple(intervals), duration)

    def analyze_file(self, path: Union[str, Path]) -> SilenceReport:
        """Decode ``path`` and analyze it.

        Raises:
            DecodeFailure: If the file cannot be decoded.
        """
        samples, sample_rate = read_audio(path)
        report = self.analyze(samples, sample_rate)
        logger.info(
            f"📊 {Path(path).name}: {len(report.intervals)} silence regions, "
            f"{report.total_silence:.1f}s of {report.duration:.1f}s"
        )
        return report

    def _quiet_windows(self, channel: np.ndarray, window_size: int) -> np.ndarray:
        starts = np.arange(0, channel.shape[0], window_size)
        squares = np.square(channel.astype(np.float64))
        sums = np.add.reduceat(squares, starts)
        counts = np.diff(np.append(starts, channel.shape[0]))
        rms = np.sqrt(sums / counts)
        return rms < self.options.threshold

    @staticmethod
    def _first_channel(samples: np.ndarray) -> np.ndarray:
        data = np.asarray(samples)
        if data.ndim > 1:
            data = data[:, 0]
        if np.issubdtype(data.dtype, np.integer):
            return data.astype(np.float32) / 32768.0
        return data

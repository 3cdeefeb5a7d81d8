"""Tests for RMS silence detection."""

import numpy as np
import pytest

from podtrack.audio.silence import SilenceAnalyzer, SilenceOptions
from podtrack.audio.wav import encode_wav
from podtrack.utils.exceptions import DecodeFailure
from tests.conftest import SAMPLE_RATE, make_signal

OPTIONS = SilenceOptions(
    threshold=0.01, min_silence_duration=1.5, padding=0.3, window_seconds=0.05
)


def test_detects_silence_between_speech():
    """1s tone, 3s silence, 1s tone gives one region from 1s to 4s."""
    samples = make_signal([(1.0, True), (3.0, False), (1.0, True)])
    report = SilenceAnalyzer(OPTIONS).analyze(samples, SAMPLE_RATE)

    assert report.duration == pytest.approx(5.0)
    assert len(report.intervals) == 1
    assert report.intervals[0].start == pytest.approx(1.0)
    assert report.intervals[0].end == pytest.approx(4.0)


def test_short_pause_is_not_silence():
    samples = make_signal([(1.0, True), (1.0, False), (1.0, True)])
    report = SilenceAnalyzer(OPTIONS).analyze(samples, SAMPLE_RATE)

    assert report.intervals == ()


def test_trailing_silence_runs_to_end():
    samples = make_signal([(1.0, True), (2.0, False)])
    report = SilenceAnalyzer(OPTIONS).analyze(samples, SAMPLE_RATE)

    assert len(report.intervals) == 1
    assert report.intervals[0].start == pytest.approx(1.0)
    assert report.intervals[0].end == pytest.approx(3.0)


def test_all_silent_track():
    samples = make_signal([(2.0, False)])
    report = SilenceAnalyzer(OPTIONS).analyze(samples, SAMPLE_RATE)

    assert len(report.intervals) == 1
    assert report.intervals[0].start == 0.0
    assert report.total_silence == pytest.approx(2.0)


def test_empty_buffer():
    report = SilenceAnalyzer(OPTIONS).analyze(np.zeros(0, dtype=np.float32), SAMPLE_RATE)

    assert report.intervals == ()
    assert report.duration == 0.0


def test_only_first_channel_is_analyzed():
    loud = make_signal([(3.0, True)])
    quiet = np.zeros_like(loud)
    stereo = np.stack([quiet, loud], axis=1)

    report = SilenceAnalyzer(OPTIONS).analyze(stereo, SAMPLE_RATE)

    assert len(report.intervals) == 1


def test_int16_samples_are_normalized():
    samples = make_signal([(1.0, True), (2.0, False), (1.0, True)])
    pcm = (samples * 32767).astype(np.int16)

    report = SilenceAnalyzer(OPTIONS).analyze(pcm, SAMPLE_RATE)

    assert len(report.intervals) == 1


def test_invalid_sample_rate():
    with pytest.raises(ValueError):
        SilenceAnalyzer(OPTIONS).analyze(np.zeros(10), 0)


def test_analyze_file(tmp_path):
    path = tmp_path / "track.wav"
    path.write_bytes(encode_wav(make_signal([(1.0, True), (2.0, False)]), SAMPLE_RATE))

    report = SilenceAnalyzer(OPTIONS).analyze_file(path)

    assert len(report.intervals) == 1
    assert report.duration == pytest.approx(3.0)


def test_analyze_file_undecodable(tmp_path):
    path = tmp_path / "broken.wav"
    path.write_bytes(b"not audio at all")

    with pytest.raises(DecodeFailure) as exc_info:
        SilenceAnalyzer(OPTIONS).analyze_file(path)
    assert exc_info.value.path == path


def test_options_from_config():
    options = SilenceOptions.from_config()

    assert options.threshold == 0.01
    assert options.min_silence_duration == 1.5
    assert options.padding == 0.3


def test_zero_minimum_keeps_a_single_quiet_window():
    options = SilenceOptions(
        threshold=0.01, min_silence_duration=0.0, padding=0.0, window_seconds=0.05
    )
    samples = make_signal([(0.1, True), (0.05, False), (0.1, True)])

    report = SilenceAnalyzer(options).analyze(samples, SAMPLE_RATE)

    assert len(report.intervals) == 1
    assert report.intervals[0].start == pytest.approx(0.1)
    assert report.intervals[0].end == pytest.approx(0.15)

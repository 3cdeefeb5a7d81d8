"""Audio capture and analysis modules.

- intervals: TimeInterval and region arithmetic
- wav: PCM chunk encoding and the WAV container
- streams: Live stream adapters (transport push, local microphone)
- recorder: Per-participant TrackRecorder
- session: RecordingSession coordinating all recorders
- silence: RMS silence detection for one track
- dead_air: Cross-track dead air plan
"""

from podtrack.audio.dead_air import DeadAirAggregator, DeadAirPlan
from podtrack.audio.intervals import TimeInterval
from podtrack.audio.recorder import FinalizedTrack, RecordingState, TrackRecorder
from podtrack.audio.session import RecordingSession, StopResult
from podtrack.audio.silence import SilenceAnalyzer, SilenceOptions, SilenceReport
from podtrack.audio.streams import LiveStream, MicrophoneStream, PushStream

__all__ = [
    "DeadAirAggregator",
    "DeadAirPlan",
    "FinalizedTrack",
    "LiveStream",
    "MicrophoneStream",
    "PushStream",
    "RecordingSession",
    "RecordingState",
    "SilenceAnalyzer",
    "SilenceOptions",
    "SilenceReport",
    "StopResult",
    "TimeInterval",
    "TrackRecorder",
]

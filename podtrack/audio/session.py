"""Multi-track recording session.

The session owns one TrackRecorder per participant, keyed by track id, and
applies lifecycle commands to all of them. Per-track failures are collected
and reported, never raised as a session abort: a multi-party recording keeps
whatever tracks survive.
"""

import threading
from concurrent.futures import wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from podtrack.audio.recorder import FinalizedTrack, RecordingState, TrackRecorder
from podtrack.audio.streams import LiveStream
from podtrack.config.config_loader import config
from podtrack.utils.exceptions import (
    CaptureFailure,
    FileOperationError,
    FlushTimeout,
    InvalidStateTransition,
)
from podtrack.utils.file_manager import TrackStore, track_filename
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class StopResult:
    """Outcome of ``stop_all``. Callers must check both maps."""

    tracks: Dict[str, FinalizedTrack] = field(default_factory=dict)
    errors: Dict[str, CaptureFailure] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def partial_tracks(self) -> Dict[str, FinalizedTrack]:
        """Audio salvaged from failed tracks, keyed by track id."""
        return {
            track_id: error.partial_track
            for track_id, error in self.errors.items()
            if error.partial_track is not None
        }


class RecordingSession:
    """Coordinates the recorders of every participant in one session."""

    def __init__(
        self,
        session_name: str,
        mono: Optional[bool] = None,
        chunk_seconds: Optional[float] = None,
        flush_timeout: Optional[float] = None,
    ) -> None:
        self.session_name = session_name
        self.mono = mono
        self.chunk_seconds = chunk_seconds
        self.flush_timeout = (
            flush_timeout
            if flush_timeout is not None
            else config.get("recording.flush_timeout_seconds", 10.0)
        )

        self._lock = threading.RLock()
        self._state = RecordingState.IDLE
        self._recorders: Dict[str, TrackRecorder] = {}
        self._start_errors: Dict[str, CaptureFailure] = {}
        self._result: Optional[StopResult] = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def tracks(self) -> Dict[str, TrackRecorder]:
        with self._lock:
            return dict(self._recorders)

    @property
    def start_errors(self) -> Dict[str, CaptureFailure]:
        with self._lock:
            return dict(self._start_errors)

    def add_track(
        self, track_id: str, display_name: str, stream: LiveStream
    ) -> TrackRecorder:
        """Register a participant's stream (the join event).

        While the session is recording, the new track starts immediately. A
        failure to start is recorded against its id, not raised.

        Raises:
            InvalidStateTransition: If the session is paused or stopped.
            ValueError: If ``track_id`` is already registered.
        """
        with self._lock:
            if self._state not in (RecordingState.IDLE, RecordingState.RECORDING):
                raise InvalidStateTransition("add a track to", self._state.value, "session")
            if track_id in self._recorders:
                raise ValueError(f"Track {track_id} is already part of the session")

            recorder = TrackRecorder(
                track_id,
                display_name,
                stream,
                mono=self.mono,
                chunk_seconds=self.chunk_seconds,
            )
            self._recorders[track_id] = recorder
            logger.info(f"➕ Track {display_name} ({track_id}) joined {self.session_name}")

            if self._state is RecordingState.RECORDING:
                self._start_recorder(recorder)
            return recorder

    def participant_left(self, track_id: str) -> None:
        """Handle a leave event: stop that track and keep what it recorded."""
        with self._lock:
            recorder = self._recorders.get(track_id)
            if recorder is None:
                logger.warning(f"🟡 Leave event for unknown track {track_id}")
                return
            if recorder.stop_requested or recorder.state is RecordingState.IDLE:
                return
            recorder.stop()
            logger.info(f"➖ Track {recorder.display_name} ({track_id}) left, flushing")

    def start_all(self) -> Dict[str, CaptureFailure]:
        """Start every idle recorder.

        Returns:
            Start failures keyed by track id. The other tracks still start.
        """
        with self._lock:
            if self._state not in (RecordingState.IDLE, RecordingState.RECORDING):
                raise InvalidStateTransition("start", self._state.value, "session")

            errors: Dict[str, CaptureFailure] = {}
            for track_id, recorder in self._recorders.items():
                if recorder.state is RecordingState.IDLE:
                    failure = self._start_recorder(recorder)
                    if failure is not None:
                        errors[track_id] = failure

            self._state = RecordingState.RECORDING
            started = len(self._recorders) - len(errors)
            logger.info(
                f"🔴 Session {self.session_name} recording: {started} track(s) started, "
                f"{len(errors)} failed"
            )
            return errors

    def pause_all(self) -> None:
        with self._lock:
            if self._state not in (RecordingState.RECORDING, RecordingState.PAUSED):
                raise InvalidStateTransition("pause", self._state.value, "session")
            for recorder in self._active_recorders(RecordingState.RECORDING):
                recorder.pause()
            self._state = RecordingState.PAUSED
            logger.info(f"⏸️ Session {self.session_name} paused")

    def resume_all(self) -> None:
        with self._lock:
            if self._state not in (RecordingState.RECORDING, RecordingState.PAUSED):
                raise InvalidStateTransition("resume", self._state.value, "session")
            for recorder in self._active_recorders(RecordingState.PAUSED):
                recorder.resume()
            self._state = RecordingState.RECORDING
            logger.info(f"▶️ Session {self.session_name} resumed")

    def stop_all(self, timeout: Optional[float] = None) -> StopResult:
        """Stop every recorder and wait for all of them to finish flushing.

        Calling it again returns the first result without stopping anything.

        Args:
            timeout: Longest wait for all flushes, in seconds. Defaults to the
                configured flush timeout. Tracks still pending afterwards are
                reported as FlushTimeout.

        Returns:
            Finalized tracks and per-track errors.
        """
        with self._lock:
            if self._result is not None:
                return self._result

            wait_for = timeout if timeout is not None else self.flush_timeout
            pending = {}
            for track_id, recorder in self._recorders.items():
                if recorder.state is RecordingState.IDLE:
                    logger.warning(f"🟡 Track {track_id} was never started, skipping")
                    continue
                if not recorder.stop_requested:
                    recorder.stop()
                pending[track_id] = recorder.completion

            wait(list(pending.values()), timeout=wait_for)

            tracks: Dict[str, FinalizedTrack] = {}
            errors: Dict[str, CaptureFailure] = {}
            for track_id, future in pending.items():
                if not future.done():
                    errors[track_id] = FlushTimeout(track_id, wait_for)
                    logger.error(f"🛑 Track {track_id} did not flush within {wait_for}s")
                    continue
                error = future.exception()
                if error is None:
                    tracks[track_id] = future.result()
                elif isinstance(error, CaptureFailure):
                    errors[track_id] = error
                else:
                    errors[track_id] = CaptureFailure(track_id, str(error))

            self._state = RecordingState.STOPPED
            self._result = StopResult(tracks=tracks, errors=errors)
            logger.info(
                f"⏹️ Session {self.session_name} stopped: {len(tracks)} track(s) finalized, "
                f"{len(errors)} failed"
            )
            return self._result

    def save_tracks(
        self,
        result: StopResult,
        store: Optional[TrackStore] = None,
        folder: Optional[Union[str, Path]] = None,
        include_partial: bool = True,
    ) -> Dict[str, Path]:
        """Persist every finalized track as WAV.

        Audio salvaged from failed tracks is saved too unless
        ``include_partial`` is False. A track that cannot be written is
        logged and left out of the result.
        """
        store = store or TrackStore()
        to_save = dict(result.tracks)
        if include_partial:
            to_save.update(result.partial_tracks)

        saved: Dict[str, Path] = {}
        for track_id, track in to_save.items():
            filename = track_filename(
                self.session_name, track.display_name, track_id, "wav"
            )
            try:
                saved[track_id] = store.write(folder, filename, track.to_wav())
            except FileOperationError as e:
                logger.error(f"🛑 Failed to save track {filename}: {e}")
        return saved

    def _start_recorder(self, recorder: TrackRecorder) -> Optional[CaptureFailure]:
        try:
            recorder.start()
        except CaptureFailure as failure:
            self._start_errors[recorder.track_id] = failure
            return failure
        return None

    def _active_recorders(self, state: RecordingState) -> List[TrackRecorder]:
        return [
            recorder
            for recorder in self._recorders.values()
            if recorder.state is state and not recorder.stop_requested
        ]

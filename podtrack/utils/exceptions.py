"""Custom exception definitions for PodTrack."""

from typing import Optional


class PodTrackError(Exception):
    """Base exception class for PodTrack errors."""

    pass


class ConfigurationError(PodTrackError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


class FileOperationError(PodTrackError):
    """Raised when file operations (write, list) fail."""

    pass


class InvalidStateTransition(PodTrackError):
    """Raised when a lifecycle method is called from a state that forbids it."""

    def __init__(self, action: str, state: object, subject: str = "recorder") -> None:
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} {subject} in state {state}")


class CaptureFailure(PodTrackError):
    """Raised when a track's stream or encoder fails during a session.

    ``partial_track`` holds whatever was recorded before the failure, if any.
    """

    def __init__(self, track_id: str, message: str) -> None:
        self.track_id = track_id
        self.partial_track = None
        super().__init__(f"Track {track_id}: {message}")


class FlushTimeout(CaptureFailure):
    """Raised when a track does not finish flushing within the allowed window."""

    def __init__(self, track_id: str, timeout: Optional[float]) -> None:
        self.timeout = timeout
        super().__init__(track_id, f"flush did not complete within {timeout}s")


class DecodeFailure(PodTrackError):
    """Raised when an audio file cannot be decoded for analysis."""

    def __init__(self, path: object, message: str) -> None:
        self.path = path
        super().__init__(f"Cannot decode {path}: {message}")


class EmptyInputError(PodTrackError):
    """Raised when an export is requested with no input files."""

    pass


class TranscodeFailure(PodTrackError):
    """Raised when the external transcoder fails.

    The transcoder's stderr is kept verbatim on ``stderr``.
    """

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)

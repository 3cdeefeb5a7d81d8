"""Track file storage for PodTrack."""

import os
import re
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Union

from podtrack.config.config_loader import config
from podtrack.utils.exceptions import FileOperationError
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


def sanitize_display_name(display_name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", display_name)


def track_filename(
    session_name: str, display_name: str, track_id: str, extension: str = "wav"
) -> str:
    """Build ``{session}_{sanitized name}_{first 6 chars of id}.{ext}``."""
    safe_name = sanitize_display_name(display_name)
    return f"{session_name}_{safe_name}_{track_id[:6]}.{extension.lstrip('.')}"


class TrackStore:
    """Writes and lists track files on the local filesystem."""

    def __init__(self, base_directory: Optional[Union[str, Path]] = None):
        """Initialize the track store.

        Args:
            base_directory: Folder used when a call does not name one
        """
        self.base_directory = Path(
            base_directory or config.get("storage.save_folder", "recordings")
        )

    def write(
        self, folder: Optional[Union[str, Path]], filename: str, data: bytes
    ) -> Path:
        """Write ``data`` to ``folder/filename`` and return the path.

        The bytes go to a temporary file in the same folder first and are
        moved into place once complete.

        Raises:
            FileOperationError: If the file cannot be written.
        """
        target_dir = Path(folder) if folder is not None else self.base_directory
        target = target_dir / filename

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                dir=str(target_dir), prefix=f".{filename}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as temp_file:
                    temp_file.write(data)
                os.replace(temp_name, target)
            except BaseException:
                if os.path.exists(temp_name):
                    os.unlink(temp_name)
                raise
        except OSError as e:
            logger.error(f"🛑 Failed to write {target}: {e}")
            raise FileOperationError(f"Failed to write {target}: {e}") from e

        logger.info(f"💾 Saved {target.name} ({len(data) / 1024:.1f}KB)")
        return target

    def list(
        self,
        folder: Optional[Union[str, Path]],
        prefix: str,
        allowed_extensions: Iterable[str],
    ) -> List[Path]:
        """List files in ``folder`` starting with ``prefix``, sorted by name.

        Raises:
            FileOperationError: If the folder cannot be read.
        """
        target_dir = Path(folder) if folder is not None else self.base_directory
        extensions = {f".{ext.lstrip('.').lower()}" for ext in allowed_extensions}

        try:
            entries = sorted(target_dir.iterdir())
        except OSError as e:
            logger.error(f"🛑 Failed to list {target_dir}: {e}")
            raise FileOperationError(f"Failed to list {target_dir}: {e}") from e

        return [
            path
            for path in entries
            if path.is_file()
            and path.name.startswith(prefix)
            and path.suffix.lower() in extensions
        ]

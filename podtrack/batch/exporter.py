"""Mixdown export using FFmpeg."""

import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import ffmpeg

from podtrack.config.config_loader import config
from podtrack.utils.exceptions import EmptyInputError, TranscodeFailure
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)


class ExportFormat(str, Enum):
    MP3 = "mp3"
    M4A = "m4a"
    WAV = "wav"

    @classmethod
    def from_path(
        cls, path: Union[str, Path], default: Optional["ExportFormat"] = None
    ) -> "ExportFormat":
        """Pick the format from the output extension, falling back to ``default``."""
        extension = Path(path).suffix.lower().lstrip(".")
        try:
            return cls(extension)
        except ValueError:
            if default is not None:
                return default
            return cls(config.get("export.default_format", "mp3"))


@dataclass(frozen=True)
class EncodingParameters:
    codec: str
    bitrate: Optional[str]
    channels: int
    sample_rate: int
    container: str


FORMAT_PARAMETERS: Dict[ExportFormat, EncodingParameters] = {
    ExportFormat.MP3: EncodingParameters("libmp3lame", "192k", 2, 44100, "mp3"),
    ExportFormat.M4A: EncodingParameters("aac", "192k", 2, 44100, "ipod"),
    ExportFormat.WAV: EncodingParameters("pcm_s16le", None, 2, 44100, "wav"),
}


@dataclass
class ExportJob:
    """One export request: the tracks to mix and where the result goes."""

    inputs: List[Path]
    output_path: Path
    format: ExportFormat = ExportFormat.MP3

    @classmethod
    def for_output(
        cls, inputs: Sequence[Union[str, Path]], output_path: Union[str, Path]
    ) -> "ExportJob":
        return cls(
            inputs=[Path(p) for p in inputs],
            output_path=Path(output_path),
            format=ExportFormat.from_path(output_path),
        )


class Exporter:
    """Mixes track files into one encoded file with FFmpeg."""

    def __init__(self, ffmpeg_binary: Optional[str] = None) -> None:
        self.ffmpeg_binary = ffmpeg_binary or config.get("export.ffmpeg_binary", "ffmpeg")

    def check_ffmpeg(self) -> str:
        """Return the FFmpeg version line.

        Raises:
            TranscodeFailure: If FFmpeg is missing or not responding.
        """
        try:
            result = subprocess.run(
                [self.ffmpeg_binary, "-version"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except subprocess.TimeoutExpired as e:
            raise TranscodeFailure("FFmpeg check timed out") from e
        except FileNotFoundError as e:
            raise TranscodeFailure(
                f"FFmpeg not found ({self.ffmpeg_binary}). Please install FFmpeg."
            ) from e

        if result.returncode != 0:
            raise TranscodeFailure("FFmpeg not responding properly", result.stderr)

        version_line = result.stdout.split("\n")[0]
        logger.info(f"✅ {version_line}")
        return version_line

    @staticmethod
    def partial_path(output_path: Path) -> Path:
        """Temporary sibling the encode writes to before it is moved into place."""
        return output_path.with_name(f".{output_path.stem}.partial{output_path.suffix}")

    def build_stream(self, job: ExportJob, output_path: Optional[Path] = None):
        """Build the FFmpeg graph for ``job``.

        One input is re-encoded on its own; several inputs are merged with
        ``amerge`` into a single stream before encoding.

        Raises:
            EmptyInputError: If the job has no inputs.
        """
        if not job.inputs:
            raise EmptyInputError("Export requires at least one input file")

        params = FORMAT_PARAMETERS[ExportFormat(job.format)]
        sources = [ffmpeg.input(str(path)) for path in job.inputs]

        if len(sources) == 1:
            audio = sources[0].audio
        else:
            audio = ffmpeg.filter(
                [source.audio for source in sources], "amerge", inputs=len(sources)
            )

        output_kwargs = {
            "format": params.container,
            "acodec": params.codec,
            "ac": params.channels,
            "ar": params.sample_rate,
        }
        if params.bitrate:
            output_kwargs["audio_bitrate"] = params.bitrate

        target = output_path or job.output_path
        return ffmpeg.output(audio, str(target), **output_kwargs).overwrite_output()

    def build_command(self, job: ExportJob, output_path: Optional[Path] = None) -> List[str]:
        """Return the exact FFmpeg argument list for ``job``."""
        stream = self.build_stream(job, output_path)
        return ffmpeg.compile(stream, cmd=self.ffmpeg_binary)

    def export(self, job: ExportJob) -> Path:
        """Run the export and return the output path.

        The result is encoded to a temporary file and renamed into place only
        when FFmpeg succeeds.

        Raises:
            EmptyInputError: If the job has no inputs. Nothing is written.
            TranscodeFailure: If FFmpeg fails; ``stderr`` holds its output.
        """
        if not job.inputs:
            raise EmptyInputError("Export requires at least one input file")

        output_path = Path(job.output_path)
        partial = self.partial_path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        mode = "amerge" if len(job.inputs) > 1 else "single input"
        logger.info(
            f"🔄 Exporting {len(job.inputs)} track(s) to {output_path.name} "
            f"({ExportFormat(job.format).value}, {mode})"
        )

        stream = self.build_stream(job, partial)
        try:
            ffmpeg.run(
                stream,
                cmd=self.ffmpeg_binary,
                capture_stdout=True,
                capture_stderr=True,
            )
        except ffmpeg.Error as e:
            self._discard(partial)
            stderr = e.stderr.decode("utf-8", errors="replace") if e.stderr else ""
            logger.error(f"🛑 FFmpeg export failed: {stderr.strip() or e}")
            raise TranscodeFailure(f"FFmpeg export failed: {stderr.strip() or e}", stderr) from e
        except OSError as e:
            self._discard(partial)
            logger.error(f"🛑 Could not run FFmpeg: {e}")
            raise TranscodeFailure(f"Could not run FFmpeg: {e}") from e

        if not partial.exists():
            raise TranscodeFailure("Export failed - output file not created")

        os.replace(partial, output_path)
        logger.info(f"✅ Export complete: {output_path}")
        return output_path

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            logger.warning(f"⚠️ Failed to remove partial export {path.name}: {e}")

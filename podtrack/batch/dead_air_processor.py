"""Dead air removal across a session's track files."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from podtrack.audio.dead_air import DeadAirAggregator, DeadAirPlan
from podtrack.audio.silence import SilenceAnalyzer, SilenceReport
from podtrack.audio.wav import encode_wav, read_audio
from podtrack.config.config_loader import config
from podtrack.utils.exceptions import DecodeFailure
from podtrack.utils.file_manager import TrackStore
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)


def remove_ranges(
    samples: np.ndarray, sample_rate: int, plan: DeadAirPlan
) -> np.ndarray:
    """Cut every range of ``plan`` out of ``samples``.

    Ranges are removed latest first, so each cut is made on the original
    timeline. Works on ``(frames,)`` and ``(frames, channels)`` arrays.
    """
    edited = np.asarray(samples)
    total = edited.shape[0]
    for interval in plan.removal_order():
        start = min(total, max(0, int(round(interval.start * sample_rate))))
        end = min(total, max(0, int(round(interval.end * sample_rate))))
        if start >= end:
            continue
        edited = np.concatenate([edited[:start], edited[end:]], axis=0)
        total = edited.shape[0]
    return edited


@dataclass
class DeadAirResult:
    """Outcome of one dead air pass."""

    plan: DeadAirPlan
    edited: Dict[Path, Path] = field(default_factory=dict)
    failed: Dict[Path, DecodeFailure] = field(default_factory=dict)


class DeadAirProcessor:
    """Analyzes track files, aggregates a plan and writes edited copies."""

    def __init__(
        self,
        store: Optional[TrackStore] = None,
        analyzer: Optional[SilenceAnalyzer] = None,
        aggregator: Optional[DeadAirAggregator] = None,
        max_workers: Optional[int] = None,
        edited_suffix: Optional[str] = None,
    ) -> None:
        self.store = store or TrackStore()
        self.analyzer = analyzer or SilenceAnalyzer()
        self.aggregator = aggregator or DeadAirAggregator(
            padding=self.analyzer.options.padding
        )
        self.max_workers = max_workers or config.get("dead_air.max_workers", 4)
        self.edited_suffix: str = edited_suffix or config.get(
            "dead_air.edited_suffix", "_edited"
        )
        self.track_extensions: List[str] = config.get(
            "storage.track_extensions", ["wav"]
        )

    def list_tracks(self, folder: Union[str, Path], session_name: str) -> List[Path]:
        """Session track files in ``folder``, excluding earlier edited output."""
        paths = self.store.list(folder, session_name, self.track_extensions)
        return [path for path in paths if not path.stem.endswith(self.edited_suffix)]

    def analyze(
        self, paths: Sequence[Path]
    ) -> Tuple[List[Optional[SilenceReport]], Dict[Path, DecodeFailure]]:
        """Analyze every file in parallel.

        Returns:
            One report per path in input order, ``None`` where decoding
            failed, and the failures keyed by path.
        """
        failures: Dict[Path, DecodeFailure] = {}

        def analyze_one(path: Path) -> Optional[SilenceReport]:
            try:
                return self.analyzer.analyze_file(path)
            except DecodeFailure as e:
                logger.warning(f"🟡 Skipping analysis of {path.name}: {e}")
                failures[path] = e
                return None

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            reports = list(pool.map(analyze_one, paths))
        return reports, failures

    def process_files(
        self,
        paths: Sequence[Union[str, Path]],
        output_folder: Optional[Union[str, Path]] = None,
    ) -> DeadAirResult:
        """Remove cross-track dead air from ``paths``.

        Edited copies are written as ``{stem}{suffix}.wav`` next to the
        originals, or into ``output_folder``. Tracks that fail to decode are
        reported in ``failed`` and not edited.
        """
        track_paths = [Path(p) for p in paths]
        reports, failures = self.analyze(track_paths)
        plan = self.aggregator.aggregate(reports)
        result = DeadAirResult(plan=plan, failed=dict(failures))

        if not plan:
            logger.info("🟢 No dead air found, tracks left unchanged")
            return result

        for path, report in zip(track_paths, reports):
            if report is None:
                continue
            samples, sample_rate = read_audio(path)
            edited = remove_ranges(samples, sample_rate, plan)
            folder = Path(output_folder) if output_folder is not None else path.parent
            filename = f"{path.stem}{self.edited_suffix}.wav"
            result.edited[path] = self.store.write(
                folder, filename, encode_wav(edited, sample_rate)
            )
            logger.info(
                f"✂️ {path.name}: {samples.shape[0] / sample_rate:.1f}s -> "
                f"{edited.shape[0] / sample_rate:.1f}s"
            )

        return result

    def process_folder(
        self, folder: Union[str, Path], session_name: str
    ) -> DeadAirResult:
        paths = self.list_tracks(folder, session_name)
        logger.info(f"📦 Found {len(paths)} track(s) for session {session_name}")
        return self.process_files(paths)

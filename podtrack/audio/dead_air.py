"""Cross-track dead air detection.

A range only counts as dead air when every track is silent over it. The
per-track silence reports are intersected, clipped to the shortest track,
and then shrunk by the padding margin so some natural silence survives on
both sides of each cut.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from podtrack.audio.intervals import (
    TimeInterval,
    clip_regions,
    complement_regions,
    intersect_regions,
    pad_regions,
)
from podtrack.audio.silence import SilenceAnalyzer, SilenceReport
from podtrack.config.config_loader import config
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)

MISSING_NO_SILENCE = "no_silence"
MISSING_SKIP = "skip"


@dataclass(frozen=True)
class DeadAirPlan:
    """Ranges to remove, sorted ascending by start."""

    intervals: Tuple[TimeInterval, ...] = ()

    def __iter__(self) -> Iterator[TimeInterval]:
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)

    @property
    def total_removed(self) -> float:
        return sum(interval.duration for interval in self.intervals)

    def removal_order(self) -> List[TimeInterval]:
        """Ranges latest first, so removing one never shifts the next."""
        return sorted(self.intervals, key=lambda interval: interval.start, reverse=True)

    def keep_regions(self, total_duration: float) -> List[TimeInterval]:
        return complement_regions(self.intervals, total_duration)


class DeadAirAggregator:
    """Combines per-track silence reports into one DeadAirPlan."""

    def __init__(
        self,
        padding: Optional[float] = None,
        missing_report_policy: Optional[str] = None,
    ) -> None:
        self.padding = (
            padding if padding is not None else config.get("silence.padding", 0.3)
        )
        self.missing_report_policy = missing_report_policy or config.get(
            "dead_air.missing_report_policy", MISSING_NO_SILENCE
        )
        if self.missing_report_policy not in (MISSING_NO_SILENCE, MISSING_SKIP):
            raise ValueError(f"Unknown missing report policy: {self.missing_report_policy}")

    def aggregate(self, reports: Sequence[Optional[SilenceReport]]) -> DeadAirPlan:
        """Build the dead air plan for a set of tracks.

        Args:
            reports: One report per track. ``None`` marks a track whose
                analysis failed and is handled by the missing report policy.

        Returns:
            The padded, ascending plan. Empty when there is nothing to remove.
        """
        if not reports:
            return DeadAirPlan()

        present = [report for report in reports if report is not None]
        missing = len(reports) - len(present)
        if missing:
            if self.missing_report_policy == MISSING_SKIP:
                logger.warning(
                    f"🟡 {missing} track(s) could not be analyzed; "
                    f"excluding them from dead air detection"
                )
            else:
                logger.warning(
                    f"🟡 {missing} track(s) could not be analyzed; "
                    f"assuming they contain no silence, nothing will be cut"
                )
                return DeadAirPlan()

        if not present:
            return DeadAirPlan()

        common = self.intersect(present)
        padded = pad_regions(common, self.padding)

        dropped = len(common) - len(padded)
        if dropped:
            logger.debug(f"Dropped {dropped} dead air region(s) shorter than 2 x padding")

        plan = DeadAirPlan(tuple(sorted(padded)))
        logger.info(
            f"🔇 Dead air plan: {len(plan)} region(s), {plan.total_removed:.2f}s "
            f"across {len(present)} track(s)"
        )
        return plan

    @staticmethod
    def intersect(reports: Sequence[SilenceReport]) -> List[TimeInterval]:
        """Intersect all reports and clip to the shortest track."""
        if len(reports) == 1:
            return list(reports[0].intervals)

        common = list(reports[0].intervals)
        for report in reports[1:]:
            common = intersect_regions(common, report.intervals)
            if not common:
                return []

        shortest = min(report.duration for report in reports)
        return clip_regions(common, shortest)


def detect_dead_air_across_tracks(
    buffers: Sequence[Tuple[np.ndarray, int]],
    analyzer: Optional[SilenceAnalyzer] = None,
    aggregator: Optional[DeadAirAggregator] = None,
) -> DeadAirPlan:
    """Analyze decoded ``(samples, sample_rate)`` buffers and aggregate them."""
    analyzer = analyzer or SilenceAnalyzer()
    if aggregator is None:
        aggregator = DeadAirAggregator(padding=analyzer.options.padding)
    reports = [analyzer.analyze(samples, rate) for samples, rate in buffers]
    return aggregator.aggregate(reports)

"""Time interval algebra over sorted, non-overlapping ranges.

Every function here is pure: inputs are sequences of ``TimeInterval`` sorted
by start with no overlaps, and outputs keep that shape.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

# Durations closer than this are treated as equal
EPSILON = 1e-9


@dataclass(frozen=True, order=True)
class TimeInterval:
    """Half-open time range ``[start, end)`` in seconds."""

    start: float
    end: float

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValueError(
                f"Interval start must precede end: [{self.start}, {self.end})"
            )

    @property
    def duration(self) -> float:
        return self.end - self.start


def intersect_regions(
    a: Sequence[TimeInterval], b: Sequence[TimeInterval]
) -> List[TimeInterval]:
    """Intersect two sorted interval lists with a two-pointer sweep.

    Args:
        a: Sorted, non-overlapping intervals.
        b: Sorted, non-overlapping intervals.

    Returns:
        Sorted ranges covered by both inputs.
    """
    result: List[TimeInterval] = []
    ai = 0
    bi = 0

    while ai < len(a) and bi < len(b):
        start = max(a[ai].start, b[bi].start)
        end = min(a[ai].end, b[bi].end)

        if start < end:
            result.append(TimeInterval(start, end))

        # Advance whichever interval ends first
        if a[ai].end < b[bi].end:
            ai += 1
        else:
            bi += 1

    return result


def pad_regions(
    intervals: Iterable[TimeInterval], padding: float
) -> List[TimeInterval]:
    """Shrink each interval inward by ``padding`` on both sides.

    Intervals no longer than ``2 * padding`` would become empty or inverted
    and are dropped.

    Args:
        intervals: Sorted, non-overlapping intervals.
        padding: Seconds to keep on each side, must be non-negative.

    Returns:
        Shrunk intervals, still sorted.
    """
    if padding < 0:
        raise ValueError("Padding cannot be negative")

    padded: List[TimeInterval] = []
    for interval in intervals:
        if interval.duration - 2 * padding <= EPSILON:
            continue
        padded.append(TimeInterval(interval.start + padding, interval.end - padding))
    return padded


def clip_regions(
    intervals: Iterable[TimeInterval], limit: float
) -> List[TimeInterval]:
    """Clip intervals to ``[0, limit)``, dropping anything left empty."""
    clipped: List[TimeInterval] = []
    for interval in intervals:
        start = max(interval.start, 0.0)
        end = min(interval.end, limit)
        if start < end:
            clipped.append(TimeInterval(start, end))
    return clipped


def complement_regions(
    intervals: Sequence[TimeInterval], total_duration: float
) -> List[TimeInterval]:
    """Return the keep regions of ``[0, total_duration)`` not covered by intervals."""
    keep: List[TimeInterval] = []
    if total_duration <= 0:
        return keep
    cursor = 0.0
    for interval in intervals:
        if cursor < interval.start:
            keep.append(TimeInterval(cursor, min(interval.start, total_duration)))
        cursor = max(cursor, interval.end)
        if cursor >= total_duration:
            break
    if cursor < total_duration:
        keep.append(TimeInterval(cursor, total_duration))
    return keep

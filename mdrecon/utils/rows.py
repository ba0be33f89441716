"""
Row grouping and column geometry for positioned words.

Provides:
- PositionedWord / Row data classes
- Row grouping by vertical tolerance
- Adaptive gap statistics from the page's inter-word gaps
- 1-D column clustering and frequency filtering of x-positions
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
import numpy as np

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class PositionedWord:
    """A word with its horizontal extent and top edge (origin top-left)."""
    text: str
    x0: float
    x1: float
    top: float


@dataclass
class Row:
    """Words sharing one vertical bucket, sorted left to right."""
    y_key: float
    words: List[PositionedWord] = field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)

    @property
    def line_width(self) -> float:
        if not self.words:
            return 0.0
        return self.words[-1].x1 - self.words[0].x0

    @property
    def gaps(self) -> List[float]:
        """Positive gaps between horizontally adjacent words."""
        result = []
        for prev, word in zip(self.words, self.words[1:]):
            gap = word.x0 - prev.x1
            if gap > 0:
                result.append(gap)
        return result


@dataclass(frozen=True)
class GapStatistics:
    """Distance thresholds derived from a page's inter-word gaps."""
    column_gap: float
    global_column_gap: float
    align_tolerance: float

    @property
    def column_buffer(self) -> float:
        return max(self.global_column_gap * 0.5, 4)

    @property
    def uniform_gap_threshold(self) -> float:
        return max(self.column_gap * 0.25, 10)


# ============================================================================
# Row Grouping
# ============================================================================

def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves rounded up."""
    return math.floor(value + 0.5)


def group_rows(words: Iterable[PositionedWord], y_tolerance: float = 5) -> List[Row]:
    """
    Bucket words into rows by their quantised top coordinate.

    Only ``top`` and ``x0`` are read, so text runs group the same way.

    Args:
        words: Positioned words (or runs) of one page
        y_tolerance: Bucket height in page units

    Returns:
        Rows in ascending vertical order, each sorted by x0
    """
    buckets: Dict[float, List[PositionedWord]] = {}
    for word in words:
        y_key = round_half_up(word.top / y_tolerance) * y_tolerance
        buckets.setdefault(y_key, []).append(word)

    return [
        Row(y_key=y_key, words=sorted(buckets[y_key], key=lambda w: w.x0))
        for y_key in sorted(buckets)
    ]


# ============================================================================
# Gap Statistics
# ============================================================================

DEFAULT_GAPS = GapStatistics(column_gap=50, global_column_gap=30, align_tolerance=40)


def estimate_gaps(
    rows: List[Row],
    column_gap: Optional[float] = None,
    global_column_gap: Optional[float] = None,
    align_tolerance: Optional[float] = None
) -> GapStatistics:
    """
    Derive column thresholds from the page's gap distribution.

    Table pages have a bimodal gap distribution (narrow gaps inside a cell,
    wide gaps between columns); the 65th percentile sits between the modes.
    Each threshold may be overridden independently.

    Args:
        rows: Grouped rows of the page
        column_gap: Fixed per-row column boundary threshold
        global_column_gap: Fixed page-wide column merge distance
        align_tolerance: Fixed column alignment tolerance

    Returns:
        GapStatistics for the page
    """
    if column_gap is not None:
        return GapStatistics(
            column_gap=column_gap,
            global_column_gap=(
                global_column_gap if global_column_gap is not None
                else max(column_gap * 0.6, 8)
            ),
            align_tolerance=(
                align_tolerance if align_tolerance is not None
                else column_gap * 0.8
            ),
        )

    gaps = [gap for row in rows for gap in row.gaps]
    if not gaps:
        return GapStatistics(
            column_gap=DEFAULT_GAPS.column_gap,
            global_column_gap=(
                global_column_gap if global_column_gap is not None
                else DEFAULT_GAPS.global_column_gap
            ),
            align_tolerance=(
                align_tolerance if align_tolerance is not None
                else DEFAULT_GAPS.align_tolerance
            ),
        )

    ordered = np.sort(np.asarray(gaps, dtype=float))
    p65 = float(ordered[int(len(ordered) * 0.65)])
    derived_gap = max(p65 * 1.2, 8)

    stats = GapStatistics(
        column_gap=derived_gap,
        global_column_gap=(
            global_column_gap if global_column_gap is not None
            else max(derived_gap * 0.6, 6)
        ),
        align_tolerance=(
            align_tolerance if align_tolerance is not None
            else max(derived_gap * 1.5, 15)
        ),
    )
    logger.debug(
        f"Gap statistics from {len(gaps)} gaps: p65={p65:.1f}, "
        f"column_gap={stats.column_gap:.1f}, "
        f"global_column_gap={stats.global_column_gap:.1f}, "
        f"align_tolerance={stats.align_tolerance:.1f}"
    )
    return stats


# ============================================================================
# Column Clustering
# ============================================================================

def _median_member(members: List[float]) -> float:
    return members[(len(members) - 1) // 2]


def _split_sorted(positions: Iterable[float], gap: float) -> List[List[float]]:
    ordered = sorted(positions)
    if not ordered:
        return []

    groups = [[ordered[0]]]
    for prev, value in zip(ordered, ordered[1:]):
        if value - prev > gap:
            groups.append([value])
        else:
            groups[-1].append(value)
    return groups


def cluster_positions(positions: Iterable[float], gap: float) -> List[float]:
    """
    Cluster x-positions in one pass over their sorted order.

    A new cluster starts whenever consecutive values are more than ``gap``
    apart. Each cluster is represented by its (lower) median member.

    Returns:
        Strictly increasing column positions
    """
    return [_median_member(group) for group in _split_sorted(positions, gap)]


def find_frequent_positions(
    positions: Iterable[float],
    tolerance: float,
    min_count: int
) -> List[float]:
    """
    Keep only x-positions that recur across rows.

    Positions within ``tolerance`` of their neighbour form a group; groups
    smaller than ``min_count`` are dropped (one-off header words that would
    otherwise bridge two real columns). A kept group is represented by its
    upper median member.
    """
    return [
        group[len(group) // 2]
        for group in _split_sorted(positions, tolerance)
        if len(group) >= min_count
    ]

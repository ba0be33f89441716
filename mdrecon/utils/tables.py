"""
Borderless table reconstruction from positioned words.

Provides:
- Row classification (paragraph, table seed, numbering fragment)
- Page-wide column inference from recurring x-positions
- Table region assembly with wrapped-row merging
- Markdown pipe-table output
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Dict, Any, Sequence

from .rows import (
    GapStatistics,
    PositionedWord,
    Row,
    cluster_positions,
    estimate_gaps,
    find_frequent_positions,
    group_rows,
)

logger = logging.getLogger(__name__)

PARTIAL_NUMBERING = re.compile(r"^\.\d+$")

# Rows this close (in rows) to a true table row on both sides may be
# promoted by the gap-fill pass.
GAP_FILL_WINDOW = 3


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Cell:
    """A single table cell."""
    text: str
    row: int
    col: int
    is_header: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "row": self.row,
            "col": self.col,
            "is_header": self.is_header
        }


@dataclass
class TableResult:
    """A reconstructed table region."""
    cells: List[Cell]
    num_rows: int
    num_cols: int
    bbox: Optional[Tuple[float, float, float, float]] = None
    method_used: str = "geometric"

    # Pre-generated output formats
    table_markdown: str = ""
    table_struct: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.table_struct:
            self.table_struct = self._build_struct()
        if not self.table_markdown:
            self.table_markdown = self._build_markdown()

    @classmethod
    def from_grid(
        cls,
        grid: List[List[str]],
        bbox: Optional[Tuple[float, float, float, float]] = None
    ) -> 'TableResult':
        cells = [
            Cell(text=text, row=r, col=c, is_header=(r == 0))
            for r, row in enumerate(grid)
            for c, text in enumerate(row)
        ]
        num_cols = len(grid[0]) if grid else 0
        return cls(cells=cells, num_rows=len(grid), num_cols=num_cols, bbox=bbox)

    def _build_struct(self) -> Dict[str, Any]:
        """Build structured representation."""
        grid = [["" for _ in range(self.num_cols)] for _ in range(self.num_rows)]

        for cell in self.cells:
            if 0 <= cell.row < self.num_rows and 0 <= cell.col < self.num_cols:
                grid[cell.row][cell.col] = cell.text

        return {
            "rows": grid,
            "num_rows": self.num_rows,
            "num_cols": self.num_cols,
            "headers": grid[0] if self.num_rows > 0 else []
        }

    def _build_markdown(self) -> str:
        """Build Markdown pipe-table representation."""
        if self.num_rows == 0 or self.num_cols == 0:
            return ""

        grid = self.table_struct.get("rows", [])
        if not grid:
            return ""

        lines = []

        # Header row
        lines.append("| " + " | ".join(grid[0]) + " |")

        # Separator
        lines.append("| " + " | ".join("---" for _ in range(self.num_cols)) + " |")

        # Data rows
        for row in grid[1:]:
            lines.append("| " + " | ".join(row) + " |")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "num_rows": self.num_rows,
            "num_cols": self.num_cols,
            "bbox": self.bbox,
            "method": self.method_used,
            "cells": [c.to_dict() for c in self.cells],
            "markdown": self.table_markdown,
            "struct": self.table_struct
        }


@dataclass
class ClassifiedRow:
    """A row plus the flags derived for it during one page pass."""
    row: Row
    is_paragraph: bool = False
    has_partial_numbering: bool = False
    num_columns: int = 0
    is_table_row: bool = False
    aligned_count: int = 0

    @property
    def words(self) -> List[PositionedWord]:
        return self.row.words

    @property
    def text(self) -> str:
        return self.row.text

    @property
    def is_seed(self) -> bool:
        return self.num_columns >= 3 and not self.is_paragraph


@dataclass(frozen=True)
class PageColumns:
    """Global column skeleton of one page, passed through classification."""
    positions: Tuple[float, ...]
    gaps: GapStatistics

    @property
    def count(self) -> int:
        return len(self.positions)

    @property
    def min_aligned(self) -> int:
        # Wide tables align almost any short line by accident.
        return max(2, math.ceil(self.count * 0.25))

    def aligned_count(self, words: Sequence[PositionedWord]) -> int:
        tolerance = self.gaps.align_tolerance
        return sum(
            1 for word in words
            if any(abs(word.x0 - x) < tolerance for x in self.positions)
        )

    def column_for(self, word: PositionedWord) -> int:
        buffer = self.gaps.column_buffer
        for c in range(self.count - 1):
            if word.x0 < self.positions[c + 1] - buffer:
                return c
        return self.count - 1


@dataclass
class TableDetection:
    """Outcome of a successful table pass over one page."""
    markdown: str
    tables: List[TableResult]
    columns: PageColumns
    rows: List[ClassifiedRow]

    @property
    def table_row_count(self) -> int:
        return sum(1 for r in self.rows if r.is_table_row)


# ============================================================================
# Table Detector
# ============================================================================

class TableDetector:
    """
    Detects borderless tables from word geometry alone.

    The page is rejected (``detect`` returns None) when there are no seed
    rows, too many inferred columns, or too few table rows; the caller then
    falls back to line-based layout classification.
    """

    def __init__(
        self,
        y_tolerance: float = 5,
        column_gap: Optional[float] = None,
        global_column_gap: Optional[float] = None,
        align_tolerance: Optional[float] = None,
        min_table_density: float = 0.2,
        max_columns: int = 30
    ):
        self.y_tolerance = y_tolerance
        self.column_gap = column_gap
        self.global_column_gap = global_column_gap
        self.align_tolerance = align_tolerance
        self.min_table_density = min_table_density
        self.max_columns = max_columns

    @classmethod
    def from_config(cls, config: Any) -> 'TableDetector':
        return cls(
            y_tolerance=config.y_tolerance,
            column_gap=config.column_gap,
            global_column_gap=config.global_column_gap,
            align_tolerance=config.align_tolerance,
            min_table_density=config.min_table_density,
            max_columns=config.max_columns
        )

    def detect(
        self,
        words: Sequence[PositionedWord],
        page_width: float
    ) -> Optional[TableDetection]:
        """
        Try to render a page as text plus pipe tables.

        Args:
            words: Positioned words of the page
            page_width: Page width in the same units as the words

        Returns:
            TableDetection, or None when the page does not look tabular
        """
        if not words:
            return None

        rows = group_rows(words, self.y_tolerance)
        gaps = estimate_gaps(
            rows,
            column_gap=self.column_gap,
            global_column_gap=self.global_column_gap,
            align_tolerance=self.align_tolerance
        )

        classified = self.classify_rows(rows, gaps, page_width)
        columns = self.find_global_columns(classified, gaps)
        if columns is None:
            return None

        self.mark_table_rows(classified, columns)
        self.fill_table_gaps(classified)

        table_rows = sum(1 for r in classified if r.is_table_row)
        density = table_rows / len(classified)
        if density < self.min_table_density:
            logger.debug(
                f"Table density {density:.2f} below {self.min_table_density}, "
                f"rejecting page"
            )
            return None

        lines, tables = self.assemble(classified, columns)
        markdown = "\n".join(lines).strip()
        if not markdown:
            return None

        logger.debug(
            f"Detected {len(tables)} table(s) over {table_rows}/{len(classified)} "
            f"rows with {columns.count} columns"
        )
        return TableDetection(
            markdown=markdown,
            tables=tables,
            columns=columns,
            rows=classified
        )

    # ------------------------------------------------------------------
    # Stage 1: column-independent classification
    # ------------------------------------------------------------------

    def classify_rows(
        self,
        rows: List[Row],
        gaps: GapStatistics,
        page_width: float
    ) -> List[ClassifiedRow]:
        classified = []
        for row in rows:
            text = row.text
            row_gaps = row.gaps
            gap_range = max(row_gaps) - min(row_gaps) if len(row_gaps) > 1 else 0

            # Prose has near-uniform word spacing across the full width.
            is_paragraph = (
                row.line_width > page_width * 0.55
                and len(text) > 60
                and (len(row.words) <= 2 or gap_range < gaps.uniform_gap_threshold)
            )
            has_partial_numbering = bool(
                row.words and PARTIAL_NUMBERING.match(row.words[0].text)
            )
            local_columns = cluster_positions(
                (w.x0 for w in row.words), gaps.column_gap
            )

            classified.append(ClassifiedRow(
                row=row,
                is_paragraph=is_paragraph,
                has_partial_numbering=has_partial_numbering,
                num_columns=len(local_columns)
            ))
        return classified

    # ------------------------------------------------------------------
    # Stage 2: global columns
    # ------------------------------------------------------------------

    def find_global_columns(
        self,
        classified: List[ClassifiedRow],
        gaps: GapStatistics
    ) -> Optional[PageColumns]:
        seeds = [r for r in classified if r.is_seed]
        if not seeds:
            logger.debug("No table seed rows")
            return None

        x_positions = [w.x0 for r in seeds for w in r.words]
        min_count = max(math.ceil(len(seeds) * 0.3), 2)
        frequent = find_frequent_positions(
            x_positions,
            tolerance=max(self.y_tolerance, 5),
            min_count=min_count
        )
        if not frequent:
            logger.debug("No recurring column positions across seed rows")
            return None

        positions = cluster_positions(frequent, gaps.global_column_gap)
        if len(positions) > self.max_columns:
            logger.debug(
                f"{len(positions)} columns exceeds max_columns={self.max_columns}"
            )
            return None

        return PageColumns(positions=tuple(positions), gaps=gaps)

    # ------------------------------------------------------------------
    # Stage 3: alignment against global columns
    # ------------------------------------------------------------------

    def mark_table_rows(
        self,
        classified: List[ClassifiedRow],
        columns: PageColumns
    ) -> None:
        for row in classified:
            if row.is_paragraph or row.has_partial_numbering:
                continue
            row.aligned_count = columns.aligned_count(row.words)
            row.is_table_row = row.aligned_count >= columns.min_aligned

    # ------------------------------------------------------------------
    # Stage 4: gap fill
    # ------------------------------------------------------------------

    def fill_table_gaps(self, classified: List[ClassifiedRow]) -> None:
        """
        Promote sparse rows (e.g. sub-headers) sitting inside a table.

        The scan runs top to bottom on the live flags, so a row promoted here
        counts as table above the rows that follow it.
        """
        total = len(classified)

        for idx, row in enumerate(classified):
            if row.is_table_row or row.is_paragraph or row.aligned_count < 2:
                continue

            table_before = False
            for j in range(idx - 1, max(0, idx - GAP_FILL_WINDOW) - 1, -1):
                if classified[j].is_table_row:
                    table_before = True
                    break
                if classified[j].is_paragraph:
                    break
            if not table_before:
                continue

            for j in range(idx + 1, min(total, idx + GAP_FILL_WINDOW + 1)):
                if classified[j].is_table_row:
                    row.is_table_row = True
                    break
                if classified[j].is_paragraph:
                    break

    # ------------------------------------------------------------------
    # Region assembly
    # ------------------------------------------------------------------

    def assemble(
        self,
        classified: List[ClassifiedRow],
        columns: PageColumns
    ) -> Tuple[List[str], List[TableResult]]:
        lines: List[str] = []
        tables: List[TableResult] = []

        i = 0
        while i < len(classified):
            if not classified[i].is_table_row:
                text = classified[i].text.strip()
                if text:
                    lines.append(text)
                i += 1
                continue

            start = i
            while i < len(classified) and classified[i].is_table_row:
                i += 1
            region = classified[start:i]

            grid = merge_logical_rows(build_region_grid(region, columns))
            if not grid:
                continue

            table = TableResult.from_grid(grid, bbox=_region_bbox(region))
            tables.append(table)
            lines.append(table.table_markdown)

        return lines, tables


# ============================================================================
# Region Helpers
# ============================================================================

def build_region_grid(
    region: Sequence[ClassifiedRow],
    columns: PageColumns
) -> List[List[str]]:
    """One physical grid row per source row, one cell per global column."""
    grid = []
    for row in region:
        cells = [""] * columns.count
        for word in row.words:
            c = columns.column_for(word)
            cells[c] = f"{cells[c]} {word.text}" if cells[c] else word.text
        grid.append(cells)
    return grid


def merge_logical_rows(grid: List[List[str]]) -> List[List[str]]:
    """
    Merge physical rows into logical rows when cell text wraps.

    A row folds into the buffered row when it shares no filled column with
    it, or when it fills fewer than half as many cells.
    """
    if not grid:
        return []

    result = []
    buffer = list(grid[0])

    for row in grid[1:]:
        buffer_filled = sum(1 for c in buffer if c)
        new_filled = sum(1 for c in row if c)
        overlap = sum(1 for a, b in zip(buffer, row) if a and b)

        if overlap == 0 or new_filled < buffer_filled * 0.5:
            for c, text in enumerate(row):
                if text:
                    buffer[c] = f"{buffer[c]} {text}" if buffer[c] else text
        else:
            result.append(buffer)
            buffer = list(row)

    result.append(buffer)
    return result


def _region_bbox(region: Sequence[ClassifiedRow]) -> Tuple[float, float, float, float]:
    words = [w for r in region for w in r.words]
    return (
        min(w.x0 for w in words),
        min(w.top for w in words),
        max(w.x1 for w in words),
        max(w.top for w in words)
    )


# ============================================================================
# Convenience
# ============================================================================

def detect_tables(
    words: Sequence[PositionedWord],
    page_width: float,
    **options: Any
) -> Optional[str]:
    """
    Render a page as Markdown with pipe tables, or None if it is not tabular.

    Keyword options are passed to TableDetector (y_tolerance, column_gap,
    global_column_gap, align_tolerance, min_table_density, max_columns).
    """
    detection = TableDetector(**options).detect(words, page_width)
    return detection.markdown if detection else None

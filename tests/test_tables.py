"""
Tests for borderless table detection.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from mdrecon.utils.rows import PositionedWord
from mdrecon.utils.tables import (
    TableDetector,
    TableResult,
    Cell,
    detect_tables,
    merge_logical_rows,
)

PARAGRAPH_TEXT = (
    "This is a long paragraph of text that spans the entire width "
    "of the page and contains many words"
)


def make_row(top, spans):
    """Words from (text, x0, x1) tuples on one line."""
    return [PositionedWord(text=t, x0=x0, x1=x1, top=top) for t, x0, x1 in spans]


def make_paragraph(top, text=PARAGRAPH_TEXT, x=10.0, char_width=8.0, space=5.0):
    """Evenly spaced prose across most of an 800-unit page."""
    words = []
    for token in text.split():
        x1 = x + char_width * len(token)
        words.append(PositionedWord(text=token, x0=x, x1=x1, top=top))
        x = x1 + space
    return words


def grid_row(top, labels, pitch=100.0, width=20.0):
    return [
        PositionedWord(text=label, x0=c * pitch, x1=c * pitch + width, top=top)
        for c, label in enumerate(labels)
    ]


@pytest.fixture
def three_column_words():
    """Name / age / city table with multi-word cells."""
    return (
        make_row(10, [("Full", 10, 35), ("Name", 40, 70), ("Age", 200, 225),
                      ("(years)", 230, 275), ("Home", 400, 430), ("City", 435, 460)])
        + make_row(30, [("Alice", 10, 45), ("Marie", 50, 85), ("Smith", 90, 125),
                        ("30", 200, 215), ("New", 400, 425), ("York", 430, 460)])
        + make_row(50, [("Bob", 10, 35), ("James", 40, 75), ("Lee", 80, 105),
                        ("25", 200, 215), ("Los", 400, 425), ("Angeles", 430, 475)])
    )


@pytest.fixture
def inventory_words():
    """Item / quantity / price table under a paragraph of prose."""
    return (
        make_paragraph(10)
        + make_row(30, [("Item", 10, 40), ("Name", 45, 80), ("Qty", 200, 225),
                        ("Unit", 400, 430), ("Price", 435, 470)])
        + make_row(50, [("Blue", 10, 38), ("Widget", 43, 88), ("5", 200, 208),
                        ("$10", 400, 425)])
        + make_row(70, [("Red", 10, 35), ("Gadget", 43, 88), ("3", 200, 208),
                        ("$20", 400, 425)])
        + make_row(90, [("Steel", 10, 45), ("Bolt", 50, 80), ("100", 200, 225),
                        ("$1", 400, 415)])
    )


class TestTableResult:
    """Tests for TableResult data class."""

    def test_empty_table(self):
        result = TableResult(cells=[], num_rows=0, num_cols=0)
        assert result.table_markdown == ""

    def test_simple_table(self):
        cells = [
            Cell(text="A", row=0, col=0, is_header=True),
            Cell(text="B", row=0, col=1, is_header=True),
            Cell(text="1", row=1, col=0),
            Cell(text="2", row=1, col=1),
        ]
        result = TableResult(cells=cells, num_rows=2, num_cols=2)

        assert result.table_markdown == "| A | B |\n| --- | --- |\n| 1 | 2 |"
        assert result.table_struct["headers"] == ["A", "B"]

    def test_from_grid_keeps_empty_cells(self):
        result = TableResult.from_grid([["h1", "h2"], ["", "x"]])

        assert result.num_rows == 2
        assert result.num_cols == 2
        assert "|  | x |" in result.table_markdown
        assert result.cells[0].is_header
        assert not result.cells[2].is_header

    def test_table_to_dict(self):
        result = TableResult.from_grid([["X"]], bbox=(0, 0, 10, 10))

        d = result.to_dict()
        assert d["num_rows"] == 1
        assert d["num_cols"] == 1
        assert d["method"] == "geometric"
        assert len(d["cells"]) == 1


class TestMergeLogicalRows:
    """Tests for wrapped-cell merging."""

    def test_empty_grid(self):
        assert merge_logical_rows([]) == []

    def test_sparse_row_folds_into_previous(self):
        grid = [
            ["a", "b", "c", "d"],
            ["1", "2", "3", "4"],
            ["", "", "", "more"],
        ]
        assert merge_logical_rows(grid) == [
            ["a", "b", "c", "d"],
            ["1", "2", "3", "4 more"],
        ]

    def test_disjoint_row_folds_into_previous(self):
        grid = [["a", "b", ""], ["", "", "c"]]
        assert merge_logical_rows(grid) == [["a", "b", "c"]]

    def test_full_rows_stay_separate(self):
        grid = [["a", "b"], ["c", "d"], ["e", "f"]]
        assert merge_logical_rows(grid) == grid

    def test_input_not_mutated(self):
        grid = [["a", "b", ""], ["", "", "c"]]
        merge_logical_rows(grid)
        assert grid == [["a", "b", ""], ["", "", "c"]]


class TestTableDetector:
    """Tests for the page-level table pass."""

    def test_empty_input(self):
        assert TableDetector().detect([], 800) is None

    def test_three_column_table(self, three_column_words):
        detection = TableDetector().detect(three_column_words, 800)

        assert detection is not None
        assert detection.columns.positions == (10, 200, 400)
        assert detection.markdown == (
            "| Full Name | Age (years) | Home City |\n"
            "| --- | --- | --- |\n"
            "| Alice Marie Smith | 30 | New York |\n"
            "| Bob James Lee | 25 | Los Angeles |"
        )

    def test_gap_statistics_follow_page(self, three_column_words):
        detection = TableDetector().detect(three_column_words, 800)
        gaps = detection.columns.gaps

        assert gaps.column_gap == pytest.approx(90)
        assert gaps.global_column_gap == pytest.approx(54)
        assert gaps.align_tolerance == pytest.approx(135)

    def test_pure_prose_is_rejected(self):
        words = make_paragraph(10) + make_paragraph(30)
        assert TableDetector().detect(words, 800) is None

    def test_too_many_columns_rejected(self):
        words = []
        for r in range(3):
            words += [
                PositionedWord(text=f"v{r}{c}", x0=10 + 70 * c, x1=40 + 70 * c, top=10 + 20 * r)
                for c in range(10)
            ]

        assert TableDetector(max_columns=8).detect(words, 800) is None
        assert TableDetector().detect(words, 800) is not None

    def test_prose_above_table(self, inventory_words):
        detection = TableDetector().detect(inventory_words, 800)

        assert detection is not None
        assert not detection.rows[0].is_table_row
        assert detection.rows[0].is_paragraph
        assert detection.columns.positions == (10, 45, 200, 400)
        assert detection.markdown == (
            PARAGRAPH_TEXT + "\n"
            "| Item | Name | Qty | Unit Price |\n"
            "| --- | --- | --- | --- |\n"
            "| Blue | Widget | 5 | $10 |\n"
            "| Red | Gadget | 3 | $20 |\n"
            "| Steel | Bolt | 100 | $1 |"
        )

    def test_rows_are_not_ragged(self, inventory_words):
        detection = TableDetector().detect(inventory_words, 800)

        for table in detection.tables:
            for row in table.table_struct["rows"]:
                assert len(row) == detection.columns.count

    def test_output_is_deterministic(self, inventory_words):
        detector = TableDetector()
        first = detector.detect(inventory_words, 800)
        second = detector.detect(list(reversed(inventory_words)), 800)

        assert first.markdown == second.markdown

    def test_density_threshold_is_monotonic(self, inventory_words):
        words = inventory_words + make_paragraph(110) + make_paragraph(130) + make_paragraph(150)
        # 4 table rows out of 8
        accepted = [
            TableDetector(min_table_density=d).detect(words, 800) is not None
            for d in (0.0, 0.25, 0.5, 0.75, 1.0)
        ]

        assert accepted == [True, True, True, False, False]

    def test_partial_numbering_row_kept_as_text(self, three_column_words):
        words = three_column_words + make_row(70, [(".1", 10, 20), ("Scope", 200, 230)])
        detection = TableDetector().detect(words, 800)

        last = detection.rows[-1]
        assert last.has_partial_numbering
        assert not last.is_table_row
        assert detection.markdown.endswith("\n.1 Scope")

    def test_convenience_function(self, three_column_words):
        assert detect_tables(three_column_words, 800).startswith("| Full Name |")
        assert detect_tables(make_paragraph(10), 800) is None


class TestGapFill:
    """Tests for promoting sparse rows inside a table."""

    LABELS = [f"c{c}" for c in range(9)]

    def test_sub_header_between_table_rows_is_promoted(self):
        words = (
            grid_row(0, self.LABELS) + grid_row(20, self.LABELS) + grid_row(40, self.LABELS)
            + grid_row(60, ["Sub", "Total"])
            + grid_row(80, self.LABELS) + grid_row(100, self.LABELS)
        )
        detection = TableDetector().detect(words, 1000)

        assert detection.columns.count == 9
        assert detection.columns.min_aligned == 3
        sub_header = detection.rows[3]
        assert sub_header.aligned_count == 2
        assert sub_header.is_table_row
        assert len(detection.tables) == 1
        assert "Sub" in detection.tables[0].table_markdown

    def test_sparse_row_after_table_is_not_promoted(self):
        words = (
            grid_row(0, self.LABELS) + grid_row(20, self.LABELS) + grid_row(40, self.LABELS)
            + grid_row(60, ["Sub", "Total"])
        )
        detection = TableDetector().detect(words, 1000)

        assert not detection.rows[-1].is_table_row
        assert detection.markdown.endswith("\nSub Total")

    def test_paragraph_blocks_promotion(self):
        words = (
            grid_row(0, self.LABELS) + grid_row(20, self.LABELS)
            + make_paragraph(40, x=0.0)
            + grid_row(60, ["Sub", "Total"])
            + grid_row(80, self.LABELS) + grid_row(100, self.LABELS)
        )
        detection = TableDetector().detect(words, 1000)

        assert detection.rows[2].is_paragraph
        assert not detection.rows[3].is_table_row

    def test_adjacent_sub_headers_both_promoted(self):
        # The second sub-header only sees table above it through the first
        words = (
            grid_row(0, self.LABELS) + grid_row(20, self.LABELS) + grid_row(40, self.LABELS)
            + grid_row(60, ["note"]) + grid_row(80, ["note"])
            + grid_row(100, ["Region", "North"]) + grid_row(120, ["Region", "South"])
            + grid_row(140, ["note"])
            + grid_row(160, self.LABELS) + grid_row(180, self.LABELS)
        )
        detection = TableDetector().detect(words, 1000)

        assert detection.rows[5].aligned_count == 2
        assert detection.rows[5].is_table_row
        assert detection.rows[6].is_table_row
        assert not detection.rows[3].is_table_row
        assert not detection.rows[7].is_table_row
        assert len(detection.tables) == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

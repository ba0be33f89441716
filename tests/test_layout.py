"""
Tests for line-based layout classification.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from mdrecon.utils.layout import (
    PageLayoutClassifier,
    TextRun,
    LinkRect,
    LineType,
    FontStylePredicates,
    format_inline,
    is_bold_font,
    is_italic_font,
)

BODY = "Body text that is long enough to dominate the character count on this page."


def run(text, top, x0=10.0, size=10.0, font="Helvetica"):
    return TextRun(text=text, x0=x0, x1=x0 + 5 * len(text), top=top,
                   font_size=size, font_name=font)


@pytest.fixture
def classifier():
    return PageLayoutClassifier()


class TestFontStyle:
    """Tests for font-name emphasis predicates."""

    def test_bold_names(self):
        assert is_bold_font("Helvetica-Bold")
        assert is_bold_font("Arial Black")
        assert is_bold_font("SomeFont-heavy")
        assert not is_bold_font("Helvetica")

    def test_italic_names(self):
        assert is_italic_font("Times-Italic")
        assert is_italic_font("Helvetica-BoldOblique")
        assert not is_italic_font("Times-Roman")

    def test_format_inline_order(self):
        assert format_inline("t", True, True, "https://x.org") == "[_**t**_](https://x.org)"
        assert format_inline("t", False, False, None) == "t"


class TestLineBuilding:
    """Tests for grouping runs into lines."""

    def test_runs_on_one_band_join_with_space(self, classifier):
        lines = classifier.build_lines([
            run("world", 101, x0=60),
            run("Hello", 100, x0=10),
        ])

        assert len(lines) == 1
        assert lines[0].text == "Hello world"

    def test_existing_space_not_doubled(self, classifier):
        lines = classifier.build_lines([
            run("Hello", 100, x0=10),
            run(" world", 100, x0=40),
        ])
        assert lines[0].text == "Hello world"

    def test_blank_runs_ignored(self, classifier):
        assert classifier.build_lines([run("   ", 100)]) == []

    def test_font_size_weighted_by_characters(self, classifier):
        lines = classifier.build_lines([
            run("abc", 100, x0=10, size=10),
            run("d", 100, x0=40, size=20),
        ])
        assert lines[0].font_size == pytest.approx(12.5)

    def test_emphasis_requires_every_run(self, classifier):
        lines = classifier.build_lines([
            run("All", 100, x0=10, font="Helvetica-Bold"),
            run("bold", 100, x0=40, font="Helvetica-Bold"),
            run("Mixed", 120, x0=10, font="Helvetica-Bold"),
            run("line", 120, x0=50, font="Helvetica"),
        ])

        assert lines[0].bold
        assert not lines[1].bold

    def test_link_anchor_uses_bottom_origin(self, classifier):
        link = LinkRect(url="https://example.com", rect=(0, 690, 200, 710))
        lines = classifier.build_lines(
            [run("Click here", 100, x0=10), run("Elsewhere", 300, x0=10)],
            links=[link],
            page_height=800
        )

        assert lines[0].link_url == "https://example.com"
        assert lines[1].link_url is None


class TestClassification:
    """Tests for heading / list / paragraph decisions."""

    def test_heading_levels_from_size_ratio(self, classifier):
        markdown = classifier.convert([
            run("Title", 10, size=20),
            run("Subsection", 40, size=12),
            run(BODY, 70, size=10),
            run(BODY, 90, size=10),
        ])

        assert markdown == (
            "# Title\n\n"
            "### Subsection\n\n"
            f"{BODY}\n\n"
            f"{BODY}"
        )

    def test_second_level_heading(self, classifier):
        lines = classifier.build_lines([run("Section", 10, size=16), run(BODY, 40, size=10)])
        classified = classifier.classify_lines(lines)

        assert classified[0].line_type == LineType.HEADING
        assert classified[0].heading_level == 2

    def test_long_large_line_is_not_heading(self):
        classifier = PageLayoutClassifier(heading_max_chars=20)
        lines = classifier.build_lines([
            run("A large line that runs past the limit", 10, size=20),
            run(BODY, 40, size=10),
            run(BODY, 60, size=10),
        ])
        classified = classifier.classify_lines(lines)

        assert classified[0].line_type == LineType.PARAGRAPH

    def test_body_size_is_most_common_by_characters(self, classifier):
        lines = classifier.build_lines([
            run("Short", 10, size=14),
            run(BODY, 40, size=10.2),
        ])
        # 10.2 rounds to the 10.0 half-point bucket
        assert classifier.body_font_size(lines) == 10.0

    def test_bullets_grouped_into_one_list(self, classifier):
        markdown = classifier.convert([
            run("• First item", 10),
            run("- Second item", 30),
            run("Closing remarks.", 50),
        ])

        assert markdown == "- First item\n- Second item\n\nClosing remarks."

    def test_ordered_items_renumbered(self, classifier):
        markdown = classifier.convert([
            run("1. Alpha", 10),
            run("2) Beta", 30),
            run("(c) Gamma", 50),
        ])

        assert markdown == "1. Alpha\n2. Beta\n3. Gamma"

    def test_bold_and_italic_lines(self, classifier):
        markdown = classifier.convert([
            run("Strong words", 10, font="Helvetica-Bold"),
            run("Slanted words", 30, font="Times-Italic"),
            run("Plain words", 50),
        ])

        assert markdown == "**Strong words**\n\n_Slanted words_\n\nPlain words"

    def test_linked_paragraph(self, classifier):
        markdown = classifier.convert(
            [run("Read the docs", 100)],
            links=[LinkRect(url="https://docs.example.com", rect=(0, 690, 300, 710))],
            page_height=800
        )
        assert markdown == "[Read the docs](https://docs.example.com)"

    def test_pluggable_font_predicates(self):
        styles = FontStylePredicates(is_bold=lambda name: name.endswith("-B"))
        classifier = PageLayoutClassifier(font_styles=styles)

        markdown = classifier.convert([
            run("Custom bold", 10, font="Serif-B"),
            run("Not bold", 30, font="Serif-Bold"),
        ])

        assert markdown == "**Custom bold**\n\nNot bold"

    def test_empty_page(self, classifier):
        assert classifier.convert([]) == ""

    def test_near_zero_font_size_falls_back_to_default(self, classifier):
        # Invisible OCR layers report sizes that round to a 0.0 bucket
        lines = classifier.build_lines([run("hidden ocr layer text", 10, size=0.2)])

        assert classifier.body_font_size(lines) == classifier.default_font_size
        assert classifier.convert([run("hidden ocr layer text", 10, size=0.2)]) == (
            "hidden ocr layer text"
        )

    def test_zero_size_lines_do_not_set_body_size(self, classifier):
        lines = classifier.build_lines([
            run("an unsized run with plenty of characters in it", 10, size=0),
            run("Visible title", 30, size=20),
            run("Visible body line.", 50, size=10),
        ])

        assert classifier.body_font_size(lines) == 10.0
        classified = classifier.classify_lines(lines)
        assert classified[0].line_type == LineType.PARAGRAPH
        assert classified[1].heading_level == 1

    def test_classified_line_to_dict(self, classifier):
        lines = classifier.build_lines([run("• Item", 10)])
        d = classifier.classify_lines(lines)[0].to_dict()

        assert d["type"] == "bullet"
        assert d["text"] == "Item"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

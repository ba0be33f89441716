"""
Line-based layout classification for pages without tables.

Provides:
- TextRun / LinkRect input types
- Line building with font size, emphasis and link aggregation
- Body font size estimation
- Heading / bullet / ordered / paragraph classification
- Markdown rendering with inline emphasis and links
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import numpy as np

from .rows import PositionedWord, group_rows, round_half_up

logger = logging.getLogger(__name__)

BULLET_PREFIX = re.compile(r"^[•●○▪■\-*→]\s")
BULLET_STRIP = re.compile(r"^[•●○▪■\-*→]\s*")
ORDERED_PREFIX = re.compile(r"^(\d+[.)]\s|[a-z][.)]\s|\([a-z0-9]+\)\s)", re.IGNORECASE)

BOLD_FONT = re.compile(r"Bold|Black|Heavy", re.IGNORECASE)
ITALIC_FONT = re.compile(r"Italic|Oblique", re.IGNORECASE)


# ============================================================================
# Data Classes and Enums
# ============================================================================

class LineType(Enum):
    """Semantic type of a classified line."""
    HEADING = "heading"
    BULLET = "bullet"
    ORDERED = "ordered"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class TextRun:
    """A run of text in a single font, positioned like a word."""
    text: str
    x0: float
    x1: float
    top: float
    font_size: float = 12.0
    font_name: str = ""

    @classmethod
    def from_word(cls, word: PositionedWord, font_size: float = 12.0) -> 'TextRun':
        return cls(
            text=word.text, x0=word.x0, x1=word.x1, top=word.top,
            font_size=font_size
        )


@dataclass(frozen=True)
class LinkRect:
    """Hyperlink target with its rectangle in bottom-origin coordinates."""
    url: str
    rect: Tuple[float, float, float, float]

    def contains(self, x: float, y: float) -> bool:
        x0, y0, x1, y1 = self.rect
        return x0 <= x <= x1 and y0 <= y <= y1


def is_bold_font(font_name: str) -> bool:
    return bool(BOLD_FONT.search(font_name))


def is_italic_font(font_name: str) -> bool:
    return bool(ITALIC_FONT.search(font_name))


@dataclass(frozen=True)
class FontStylePredicates:
    """Pluggable font-name tests for bold and italic."""
    is_bold: Callable[[str], bool] = is_bold_font
    is_italic: Callable[[str], bool] = is_italic_font


DEFAULT_FONT_STYLES = FontStylePredicates()


@dataclass
class Line:
    """A horizontal band of runs with aggregated style."""
    text: str
    font_size: float
    bold: bool
    italic: bool
    link_url: Optional[str]
    x0: float
    top: float
    runs: List[TextRun] = field(default_factory=list)


@dataclass
class ClassifiedLine:
    """A line with its semantic type and display text."""
    line: Line
    line_type: LineType
    heading_level: int = 0
    text: str = ""

    def __post_init__(self):
        if not self.text:
            self.text = self.line.text

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.line_type.value,
            "heading_level": self.heading_level,
            "text": self.text,
            "font_size": self.line.font_size,
            "bold": self.line.bold,
            "italic": self.line.italic,
            "link": self.line.link_url
        }


# ============================================================================
# Page Layout Classifier
# ============================================================================

class PageLayoutClassifier:
    """
    Classifies lines by font size ratio and list prefixes, then renders
    Markdown.

    Emphasis is decided once per line: a line is bold (italic) only when
    every run in it is bold (italic).
    """

    def __init__(
        self,
        y_tolerance: float = 5,
        heading_min_ratio: float = 1.15,
        heading_h2_ratio: float = 1.5,
        heading_h1_ratio: float = 1.8,
        heading_max_chars: int = 120,
        default_font_size: float = 12.0,
        font_styles: FontStylePredicates = DEFAULT_FONT_STYLES
    ):
        self.y_tolerance = y_tolerance
        self.heading_min_ratio = heading_min_ratio
        self.heading_h2_ratio = heading_h2_ratio
        self.heading_h1_ratio = heading_h1_ratio
        self.heading_max_chars = heading_max_chars
        self.default_font_size = default_font_size
        self.font_styles = font_styles

    @classmethod
    def from_config(
        cls,
        config,
        y_tolerance: float = 5,
        font_styles: FontStylePredicates = DEFAULT_FONT_STYLES
    ) -> 'PageLayoutClassifier':
        return cls(
            y_tolerance=y_tolerance,
            heading_min_ratio=config.heading_min_ratio,
            heading_h2_ratio=config.heading_h2_ratio,
            heading_h1_ratio=config.heading_h1_ratio,
            heading_max_chars=config.heading_max_chars,
            default_font_size=config.default_font_size,
            font_styles=font_styles
        )

    def convert(
        self,
        runs: Sequence[TextRun],
        links: Sequence[LinkRect] = (),
        page_height: float = 0.0
    ) -> str:
        """
        Render one page of runs as Markdown.

        Args:
            runs: Text runs of the page
            links: Link rectangles (bottom-origin coordinates)
            page_height: Page height, used to map run anchors onto links

        Returns:
            Markdown text (empty for an empty page)
        """
        lines = self.build_lines(runs, links, page_height)
        if not lines:
            return ""
        classified = self.classify_lines(lines)
        return render_markdown(classified)

    def build_lines(
        self,
        runs: Sequence[TextRun],
        links: Sequence[LinkRect] = (),
        page_height: float = 0.0
    ) -> List[Line]:
        runs = [r for r in runs if r.text.strip()]
        return [
            self._build_line(row.words, links, page_height)
            for row in group_rows(runs, self.y_tolerance)
        ]

    def _build_line(
        self,
        runs: List[TextRun],
        links: Sequence[LinkRect],
        page_height: float
    ) -> Line:
        text = ""
        for run in runs:
            if text and not text.endswith(" ") and not run.text.startswith(" "):
                text += " "
            text += run.text
        text = text.strip()

        weights = np.array([len(r.text.strip()) for r in runs], dtype=float)
        if weights.sum() > 0:
            sizes = np.array([r.font_size for r in runs], dtype=float)
            font_size = float(np.average(sizes, weights=weights))
        else:
            font_size = self.default_font_size

        link_url = None
        for run in runs:
            link_url = _find_link(run, links, page_height)
            if link_url:
                break

        return Line(
            text=text,
            font_size=font_size,
            bold=all(self.font_styles.is_bold(r.font_name) for r in runs),
            italic=all(self.font_styles.is_italic(r.font_name) for r in runs),
            link_url=link_url,
            x0=runs[0].x0,
            top=runs[0].top,
            runs=runs
        )

    def body_font_size(self, lines: Sequence[Line]) -> float:
        """
        Font size bucket (0.5 pt) holding the most characters.

        Buckets that round to zero (invisible OCR layers, unsized runs) are
        ignored; with no sized text the default font size is used.
        """
        counts: Dict[float, int] = {}
        for line in lines:
            size = round_half_up(line.font_size * 2) / 2
            if size <= 0:
                continue
            counts[size] = counts.get(size, 0) + len(line.text)

        body_size = self.default_font_size
        best = 0
        for size, count in counts.items():
            if count > best:
                best = count
                body_size = size
        return body_size

    def classify_lines(self, lines: Sequence[Line]) -> List[ClassifiedLine]:
        body_size = self.body_font_size(lines)
        logger.debug(f"Body font size {body_size} over {len(lines)} lines")
        return [self.classify_line(line, body_size) for line in lines]

    def classify_line(self, line: Line, body_size: float) -> ClassifiedLine:
        ratio = (round_half_up(line.font_size * 2) / 2) / body_size

        if ratio >= self.heading_min_ratio and len(line.text) <= self.heading_max_chars:
            if ratio >= self.heading_h1_ratio:
                level = 1
            elif ratio >= self.heading_h2_ratio:
                level = 2
            else:
                level = 3
            return ClassifiedLine(line, LineType.HEADING, heading_level=level)

        if BULLET_PREFIX.match(line.text):
            return ClassifiedLine(
                line, LineType.BULLET, text=BULLET_STRIP.sub("", line.text, count=1)
            )

        if ORDERED_PREFIX.match(line.text):
            return ClassifiedLine(
                line, LineType.ORDERED, text=ORDERED_PREFIX.sub("", line.text, count=1)
            )

        return ClassifiedLine(line, LineType.PARAGRAPH)


def _find_link(
    run: TextRun,
    links: Sequence[LinkRect],
    page_height: float
) -> Optional[str]:
    cx = (run.x0 + run.x1) / 2
    cy = page_height - run.top
    for link in links:
        if link.contains(cx, cy):
            return link.url
    return None


# ============================================================================
# Markdown Rendering
# ============================================================================

def format_inline(text: str, bold: bool, italic: bool, link_url: Optional[str]) -> str:
    if bold:
        text = f"**{text}**"
    if italic:
        text = f"_{text}_"
    if link_url:
        text = f"[{text}]({link_url})"
    return text


def _inline(item: ClassifiedLine) -> str:
    return format_inline(item.text, item.line.bold, item.line.italic, item.line.link_url)


def render_markdown(classified: Sequence[ClassifiedLine]) -> str:
    """Join classified lines into Markdown blocks separated by blank lines."""
    blocks = []
    i = 0
    while i < len(classified):
        item = classified[i]

        if item.line_type == LineType.HEADING:
            blocks.append("#" * item.heading_level + " " + _inline(item))
            i += 1
        elif item.line_type == LineType.BULLET:
            entries = []
            while i < len(classified) and classified[i].line_type == LineType.BULLET:
                entries.append(f"- {_inline(classified[i])}")
                i += 1
            blocks.append("\n".join(entries))
        elif item.line_type == LineType.ORDERED:
            entries = []
            while i < len(classified) and classified[i].line_type == LineType.ORDERED:
                entries.append(f"{len(entries) + 1}. {_inline(classified[i])}")
                i += 1
            blocks.append("\n".join(entries))
        else:
            blocks.append(_inline(item))
            i += 1

    return "\n\n".join(b for b in blocks if b.strip())

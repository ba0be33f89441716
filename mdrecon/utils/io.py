"""
I/O utilities for the mdrecon pipeline.

Handles:
- PDF text-layer extraction into positioned words, runs and links
- Pre-extracted word JSON loading
- JSON serialization
- Directory management and input type detection
"""

import json
import logging
from pathlib import Path
from typing import List, Union, Optional, Any, Dict, Iterable
from dataclasses import dataclass, field, asdict

import numpy as np

from ..errors import FileConversionError, MissingDependencyError
from .layout import LinkRect, TextRun
from .rows import PositionedWord

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.tiff', '.tif', '.bmp')


# ============================================================================
# Page Handoff
# ============================================================================

@dataclass
class PageInput:
    """Everything the layout core needs for one page, already extracted."""
    page_number: int
    width: float
    height: float = 0.0
    words: List[PositionedWord] = field(default_factory=list)
    runs: Optional[List[TextRun]] = None
    links: List[LinkRect] = field(default_factory=list)

    def layout_runs(self, default_font_size: float = 12.0) -> List[TextRun]:
        """Runs for line classification; words stand in when none were given."""
        if self.runs is not None:
            return self.runs
        return [TextRun.from_word(w, default_font_size) for w in self.words]


# ============================================================================
# PDF Text Extraction
# ============================================================================

def _import_pymupdf():
    try:
        import pymupdf
    except ImportError:
        raise MissingDependencyError(
            "PyMuPDF",
            "PyMuPDF is required for PDF input. Install with: pip install PyMuPDF"
        )
    return pymupdf


def extract_page(page: Any, page_number: int) -> PageInput:
    """
    Build a PageInput from a PyMuPDF page.

    Words come from the word list (top = word box top); runs come from
    text spans (top = baseline); links are URI links converted to
    bottom-origin rectangles so they can be matched against run anchors.
    """
    width = float(page.rect.width)
    height = float(page.rect.height)

    words = []
    for x0, y0, x1, _y1, text, *_ in page.get_text("words"):
        text = text.strip()
        if text:
            words.append(PositionedWord(text, float(x0), float(x1), float(y0)))

    runs = []
    for block in page.get_text("dict").get("blocks", []):
        if block.get("type", 0) != 0:
            continue
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text", "")
                if not text.strip():
                    continue
                bx0, _by0, bx1, _by1 = span["bbox"]
                runs.append(TextRun(
                    text=text,
                    x0=float(bx0),
                    x1=float(bx1),
                    top=float(span["origin"][1]),
                    font_size=float(span.get("size", 0)) or 12.0,
                    font_name=span.get("font", "")
                ))

    links = []
    for link in page.get_links():
        uri = link.get("uri")
        rect = link.get("from")
        if not uri or rect is None:
            continue
        links.append(LinkRect(
            url=uri,
            rect=(float(rect.x0), height - float(rect.y1),
                  float(rect.x1), height - float(rect.y0))
        ))

    return PageInput(
        page_number=page_number,
        width=width,
        height=height,
        words=words,
        runs=runs,
        links=links
    )


def load_pdf_pages(
    pdf_path: Union[str, Path],
    pages: Optional[Iterable[int]] = None
) -> List[PageInput]:
    """
    Extract positioned text from every page of a PDF.

    Args:
        pdf_path: Path to the PDF file
        pages: Optional 1-indexed page numbers to keep

    Returns:
        List of PageInput in page order

    Raises:
        FileNotFoundError: If PDF file doesn't exist
        MissingDependencyError: If PyMuPDF is not installed
        FileConversionError: If the file cannot be parsed as a PDF
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    pymupdf = _import_pymupdf()

    try:
        doc = pymupdf.open(str(pdf_path))
    except Exception as e:
        raise FileConversionError(
            f"Failed to open PDF {pdf_path}: {e}",
            attempts=[("pdf", e)]
        )

    wanted = set(pages) if pages is not None else None
    results = []
    with doc:
        for index, page in enumerate(doc):
            page_number = index + 1
            if wanted is not None and page_number not in wanted:
                continue
            results.append(extract_page(page, page_number))

    logger.info(f"Extracted text from {len(results)} page(s) of {pdf_path.name}")
    return results


# ============================================================================
# Word JSON
# ============================================================================

def _page_from_dict(data: Dict[str, Any], page_number: int) -> PageInput:
    words = [
        PositionedWord(
            text=str(w["text"]).strip(),
            x0=float(w["x0"]),
            x1=float(w["x1"]),
            top=float(w["top"])
        )
        for w in data.get("words", [])
        if str(w.get("text", "")).strip()
    ]

    runs = None
    if "runs" in data:
        runs = [
            TextRun(
                text=str(r["text"]),
                x0=float(r["x0"]),
                x1=float(r["x1"]),
                top=float(r["top"]),
                font_size=float(r.get("font_size", 12.0)),
                font_name=str(r.get("font_name", ""))
            )
            for r in data["runs"]
        ]

    links = []
    for link in data.get("links", []):
        rect = tuple(float(v) for v in link["rect"])
        if len(rect) != 4:
            raise ValueError(f"link rect needs 4 values, got {len(rect)}")
        links.append(LinkRect(url=str(link["url"]), rect=rect))

    return PageInput(
        page_number=int(data.get("page_number", page_number)),
        width=float(data["width"]),
        height=float(data.get("height", 0.0)),
        words=words,
        runs=runs,
        links=links
    )


def load_word_json(json_path: Union[str, Path]) -> List[PageInput]:
    """
    Load pages of pre-extracted words.

    Accepts a list of pages or an object with a ``pages`` list. Each page
    needs ``width`` and ``words`` ({text, x0, x1, top}); ``height``,
    ``runs`` and ``links`` are optional.

    Raises:
        FileNotFoundError: If the file doesn't exist
        FileConversionError: If the content is not valid word JSON
    """
    data = load_json(json_path)
    try:
        pages = data["pages"] if isinstance(data, dict) else data
        return [_page_from_dict(page, i + 1) for i, page in enumerate(pages)]
    except (KeyError, TypeError, ValueError) as e:
        raise FileConversionError(
            f"Malformed word JSON in {json_path}: {e}",
            attempts=[("json", e)]
        )


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy values, dataclasses and paths."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if hasattr(obj, '__dataclass_fields__'):
            return asdict(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize (dict, list, dataclass, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """
    Load data from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        FileConversionError: If the file is not valid JSON
    """
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    try:
        with open(json_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise FileConversionError(
            f"Invalid JSON in {json_path}: {e}",
            attempts=[("json", e)]
        )


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


# ============================================================================
# File Type Detection
# ============================================================================

def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of input file.

    Returns:
        One of: 'pdf', 'image', 'json', 'unknown'
    """
    input_path = Path(input_path)

    if not input_path.is_file():
        return 'unknown'

    suffix = input_path.suffix.lower()
    if suffix == '.pdf':
        return 'pdf'
    elif suffix in IMAGE_EXTENSIONS:
        return 'image'
    elif suffix == '.json':
        return 'json'

    return 'unknown'

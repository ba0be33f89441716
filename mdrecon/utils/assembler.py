"""
Document assembler module for mdrecon.

Provides:
- Document data model (Document, Page, DocumentMetrics)
- Per-page orchestration: table detection with layout fallback
- Ordered multi-page processing
- Input dispatch by file type
"""

import logging
import re
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Dict, Any, Union, Iterable, Sequence

from ..config import PipelineConfig, JSON_SCHEMA_VERSION
from ..errors import FileConversionError, UnsupportedFormatError
from .io import PageInput, detect_input_type, load_pdf_pages, load_word_json
from .layout import LineType, PageLayoutClassifier, render_markdown
from .numbering import merge_numbering_fragments
from .tables import TableDetector, TableResult

logger = logging.getLogger(__name__)

EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Page:
    """Markdown for one page and how it was produced."""
    page_number: int
    width: float
    height: float
    mode: str  # "table" or "layout"
    markdown: str = ""
    tables: List[TableResult] = field(default_factory=list)
    num_columns: int = 0
    headings: int = 0
    list_items: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "width": self.width,
            "height": self.height,
            "mode": self.mode,
            "num_columns": self.num_columns,
            "tables": [t.to_dict() for t in self.tables],
            "markdown": self.markdown
        }


@dataclass
class DocumentMetrics:
    """Metrics about document processing."""
    pages_processed: int = 0
    table_pages: int = 0
    layout_pages: int = 0
    tables_total: int = 0
    headings_total: int = 0
    list_items_total: int = 0
    processing_time_seconds: float = 0.0

    @classmethod
    def from_pages(cls, pages: Sequence[Page], elapsed: float) -> 'DocumentMetrics':
        return cls(
            pages_processed=len(pages),
            table_pages=sum(1 for p in pages if p.mode == "table"),
            layout_pages=sum(1 for p in pages if p.mode == "layout"),
            tables_total=sum(len(p.tables) for p in pages),
            headings_total=sum(p.headings for p in pages),
            list_items_total=sum(p.list_items for p in pages),
            processing_time_seconds=elapsed
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages_processed": self.pages_processed,
            "pages": {
                "table": self.table_pages,
                "layout": self.layout_pages
            },
            "tables": self.tables_total,
            "headings": self.headings_total,
            "list_items": self.list_items_total,
            "processing_time_seconds": round(self.processing_time_seconds, 2)
        }


@dataclass
class Document:
    """Complete reconstructed document."""
    task_id: str
    source_file: str
    pages: List[Page] = field(default_factory=list)
    metrics: Optional[DocumentMetrics] = None
    markdown: str = ""
    created_at: str = ""
    schema_version: str = JSON_SCHEMA_VERSION

    def __post_init__(self):
        if not self.task_id:
            self.task_id = str(uuid.uuid4())
        if not self.created_at:
            self.created_at = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "schema_version": self.schema_version,
            "source_file": self.source_file,
            "created_at": self.created_at,
            "pages": [p.to_dict() for p in self.pages],
            "metrics": self.metrics.to_dict() if self.metrics else {},
            "markdown": self.markdown
        }


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Turns extracted pages into one Markdown document.

    Each page is tried as a table page first; when any table gate rejects
    it the page is rendered by line classification instead. Pages share no
    state, so they may run on a thread pool; output keeps page order.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self.table_detector = TableDetector.from_config(self.config.table)
        self.layout_classifier = PageLayoutClassifier.from_config(
            self.config.layout,
            y_tolerance=self.config.table.y_tolerance
        )

    def process_page(self, page: PageInput) -> Page:
        """
        Render a single page.

        Args:
            page: Extracted words, runs and links of the page

        Returns:
            Page with its Markdown and the path that produced it
        """
        detection = self.table_detector.detect(page.words, page.width)
        if detection is not None:
            logger.info(
                f"Page {page.page_number}: {len(detection.tables)} table(s), "
                f"{detection.table_row_count}/{len(detection.rows)} table rows, "
                f"{detection.columns.count} columns"
            )
            return Page(
                page_number=page.page_number,
                width=page.width,
                height=page.height,
                mode="table",
                markdown=detection.markdown,
                tables=detection.tables,
                num_columns=detection.columns.count
            )

        classifier = self.layout_classifier
        lines = classifier.build_lines(
            page.layout_runs(classifier.default_font_size),
            page.links,
            page.height
        )
        classified = classifier.classify_lines(lines) if lines else []

        markdown = render_markdown(classified)

        logger.info(f"Page {page.page_number}: layout path, {len(lines)} lines")
        return Page(
            page_number=page.page_number,
            width=page.width,
            height=page.height,
            mode="layout",
            markdown=markdown,
            headings=sum(1 for c in classified if c.line_type == LineType.HEADING),
            list_items=sum(
                1 for c in classified
                if c.line_type in (LineType.BULLET, LineType.ORDERED)
            )
        )

    def process_pages(self, pages: Sequence[PageInput]) -> List[Page]:
        """Process pages, in parallel when configured, preserving order."""
        workers = max(1, self.config.workers)
        if workers == 1 or len(pages) <= 1:
            return [self.process_page(p) for p in pages]

        executor = ThreadPoolExecutor(max_workers=workers)
        try:
            return list(executor.map(
                self.process_page, pages, timeout=self.config.timeout
            ))
        except FutureTimeoutError:
            raise FileConversionError(
                f"Conversion exceeded {self.config.timeout}s",
                attempts=[("assembler", TimeoutError("page processing timed out"))]
            )
        finally:
            # Running pages cannot be interrupted; queued ones are dropped
            # and the caller does not wait for either.
            executor.shutdown(wait=False, cancel_futures=True)

    def process_document(
        self,
        pages: Sequence[PageInput],
        source_file: str = ""
    ) -> Document:
        """
        Process all pages and assemble the final Markdown.

        Page outputs are joined with a blank line, numbering fragments are
        merged once over the whole text, and blank-line runs collapsed.
        """
        start_time = time.time()

        if self.config.max_pages is not None:
            pages = pages[:self.config.max_pages]

        processed = self.process_pages(pages)
        markdown = assemble_markdown(p.markdown for p in processed)

        elapsed = time.time() - start_time
        document = Document(
            task_id="",
            source_file=source_file,
            pages=processed,
            metrics=DocumentMetrics.from_pages(processed, elapsed),
            markdown=markdown
        )
        logger.info(f"Processed {len(processed)} page(s) in {elapsed:.2f}s")
        return document


def assemble_markdown(page_markdown: Iterable[str]) -> str:
    """Concatenate page outputs and apply the document-wide clean-up."""
    markdown = "\n\n".join(page_markdown)
    markdown = merge_numbering_fragments(markdown)
    return EXCESS_BLANK_LINES.sub("\n\n", markdown).strip()


# ============================================================================
# Input Dispatch
# ============================================================================

def load_pages(
    input_path: Union[str, Path],
    config: Optional[PipelineConfig] = None,
    pages: Optional[Iterable[int]] = None
) -> List[PageInput]:
    """
    Extract pages from a PDF, image or word JSON file.

    Raises:
        UnsupportedFormatError: If no adapter handles the file type
        FileConversionError: If the adapter fails on the file
        MissingDependencyError: If the adapter's library is not installed
    """
    config = config or PipelineConfig()
    input_path = Path(input_path)
    if not input_path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")

    input_type = detect_input_type(input_path)
    logger.info(f"Input type detected: {input_type}")

    if input_type == "pdf":
        return load_pdf_pages(input_path, pages=pages)

    if input_type == "json":
        loaded = load_word_json(input_path)
        if pages is not None:
            wanted = set(pages)
            loaded = [p for p in loaded if p.page_number in wanted]
        return loaded

    if input_type == "image":
        from .ocr_text import TesseractWordExtractor, load_image
        extractor = TesseractWordExtractor.from_config(config.ocr)
        return [extractor.extract(load_image(input_path), page_number=1)]

    raise UnsupportedFormatError(
        f"No converter found for {input_path.name} (ext: {input_path.suffix or 'unknown'})"
    )


def convert_file(
    input_path: Union[str, Path],
    config: Optional[PipelineConfig] = None,
    pages: Optional[Iterable[int]] = None
) -> Document:
    """Load, process and assemble a document from a file."""
    config = config or PipelineConfig()
    page_inputs = load_pages(input_path, config, pages=pages)
    assembler = DocumentAssembler(config)
    return assembler.process_document(page_inputs, source_file=str(input_path))

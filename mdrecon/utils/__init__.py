"""
Utility modules for the mdrecon pipeline.
"""

from .rows import PositionedWord, Row, GapStatistics, group_rows, estimate_gaps, cluster_positions
from .tables import TableDetector, TableDetection, TableResult, Cell, detect_tables, merge_logical_rows
from .layout import PageLayoutClassifier, TextRun, LinkRect, LineType, FontStylePredicates
from .numbering import merge_numbering_fragments
from .io import PageInput, load_pdf_pages, load_word_json, save_json, ensure_dir
from .assembler import DocumentAssembler, Document, Page, convert_file, assemble_markdown
from .export import MarkdownExporter, DocumentExporter

__all__ = [
    # Geometry
    "PositionedWord", "Row", "GapStatistics", "group_rows", "estimate_gaps", "cluster_positions",
    # Tables
    "TableDetector", "TableDetection", "TableResult", "Cell", "detect_tables", "merge_logical_rows",
    # Layout
    "PageLayoutClassifier", "TextRun", "LinkRect", "LineType", "FontStylePredicates",
    "merge_numbering_fragments",
    # IO
    "PageInput", "load_pdf_pages", "load_word_json", "save_json", "ensure_dir",
    # Assembly
    "DocumentAssembler", "Document", "Page", "convert_file", "assemble_markdown",
    # Export
    "MarkdownExporter", "DocumentExporter",
]

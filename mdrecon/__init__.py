"""
mdrecon
=======

Structure recovery for fixed-layout documents.
Turns positioned text (PDF text layers, OCR word boxes) into Markdown with
headings, lists, pipe tables, emphasis and links, for automated consumers.

Main components:
- Row grouping and adaptive gap statistics
- Column clustering and row classification
- Borderless table reconstruction
- Font-size based heading and list classification
- Clause-number repair over the assembled document
"""

__version__ = "1.0.0"
__author__ = "mdrecon contributors"

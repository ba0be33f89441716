"""
Export module for mdrecon.

Provides:
- Markdown export
- JSON envelope export
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, Union

from .io import save_json

logger = logging.getLogger(__name__)


# ============================================================================
# Markdown Exporter
# ============================================================================

class MarkdownExporter:
    """Export document to Markdown format."""

    def __init__(self, include_page_breaks: bool = False):
        self.include_page_breaks = include_page_breaks

    def export(
        self,
        document: Any,
        output_path: Union[str, Path]
    ) -> Path:
        """
        Export document to Markdown file.

        Args:
            document: Document object
            output_path: Output file path

        Returns:
            Path to the generated Markdown file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if self.include_page_breaks:
            markdown = self._generate_with_page_breaks(document)
        else:
            markdown = document.markdown

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(markdown)
            if markdown and not markdown.endswith("\n"):
                f.write("\n")

        logger.info(f"Exported Markdown to: {output_path}")
        return output_path

    def _generate_with_page_breaks(self, document: Any) -> str:
        """Page-by-page Markdown with a rule and page marker between pages."""
        parts = []
        for page in document.pages:
            if len(document.pages) > 1:
                parts.append(f"---\n*Page {page.page_number}*")
            if page.markdown:
                parts.append(page.markdown)
        return "\n\n".join(parts)


# ============================================================================
# Unified Exporter
# ============================================================================

class DocumentExporter:
    """Writes the requested output formats into one directory."""

    SUPPORTED_FORMATS = ("markdown", "json")

    def __init__(
        self,
        output_dir: Union[str, Path],
        basename: str = "document",
        include_page_breaks: bool = False
    ):
        self.output_dir = Path(output_dir)
        self.basename = basename
        self.markdown_exporter = MarkdownExporter(include_page_breaks=include_page_breaks)

    def export(self, document: Any, formats: List[str]) -> Dict[str, Path]:
        """
        Export a document to each requested format.

        Returns:
            Mapping of format name to written path
        """
        if "all" in formats:
            formats = list(self.SUPPORTED_FORMATS)

        results = {}
        for fmt in formats:
            if fmt == "markdown":
                results[fmt] = self.markdown_exporter.export(
                    document, self.output_dir / f"{self.basename}.md"
                )
            elif fmt == "json":
                results[fmt] = save_json(
                    document.to_dict(), self.output_dir / f"{self.basename}.json"
                )
            else:
                logger.warning(f"Unknown export format: {fmt}")
        return results

#!/usr/bin/env python
"""
Command-line interface for mdrecon.

Usage:
    mdrecon --input <pdf_image_or_json> --output <output_dir> [options]

Examples:
    # Convert a PDF to Markdown and JSON
    mdrecon --input document.pdf --output ./output

    # Tighter row bands for dense pages, four worker threads
    mdrecon --input document.pdf --output ./output --y-tolerance 3 --workers 4
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List

from mdrecon import __version__
from mdrecon.config import PipelineConfig, get_config
from mdrecon.errors import MdreconError, UnsupportedFormatError

logger = logging.getLogger("mdrecon")


def positive_float(value: str) -> float:
    """argparse type for thresholds that must be greater than zero."""
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="mdrecon - Recover headings, lists and tables from fixed-layout documents as Markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Convert a PDF and write Markdown and JSON:
    mdrecon --input document.pdf --output ./output

  Convert only some pages:
    mdrecon --input document.pdf --output ./output --pages 1-5

  OCR a scanned page (requires tesseract):
    mdrecon --input scan.png --output ./output --ocr-lang eng
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input PDF, image, or word JSON file"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    # Optional arguments
    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=["json", "markdown"],
        choices=["json", "markdown", "all"],
        help="Output format(s) (default: json markdown)"
    )

    parser.add_argument(
        "--pages",
        type=str,
        default=None,
        help="Page range to process, e.g., '1-5' or '1,3,5' (default: all)"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Pages processed in parallel (default: 1)"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for pages when --workers > 1 (pages already running are not interrupted)"
    )

    parser.add_argument(
        "--page-breaks",
        action="store_true",
        help="Mark page boundaries in the Markdown output"
    )

    # Table detection
    table = parser.add_argument_group("table detection")
    table.add_argument("--y-tolerance", type=positive_float, default=None,
                       help="Row band height in page units (default: 5)")
    table.add_argument("--column-gap", type=float, default=None,
                       help="Per-row column boundary gap (default: adaptive)")
    table.add_argument("--global-column-gap", type=float, default=None,
                       help="Page-wide column merge distance (default: adaptive)")
    table.add_argument("--align-tolerance", type=float, default=None,
                       help="Max distance from a column to count as aligned (default: adaptive)")
    table.add_argument("--min-table-density", type=float, default=None,
                       help="Minimum share of table rows on a page (default: 0.2)")
    table.add_argument("--max-columns", type=int, default=None,
                       help="Reject pages with more inferred columns (default: 30)")

    parser.add_argument(
        "--ocr-lang",
        default=None,
        help="Tesseract language for image input (default: eng)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (re-raise errors with tracebacks)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def parse_page_range(page_str: str) -> List[int]:
    """Parse page range string to a sorted list of page numbers."""
    pages = []

    for part in page_str.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, end = part.split("-", 1)
            pages.extend(range(int(start), int(end) + 1))
        else:
            pages.append(int(part))

    return sorted(set(p for p in pages if p >= 1))


def build_config(args) -> PipelineConfig:
    """Start from the environment-aware defaults and apply CLI overrides."""
    config = get_config()

    overrides = {
        "y_tolerance": args.y_tolerance,
        "column_gap": args.column_gap,
        "global_column_gap": args.global_column_gap,
        "align_tolerance": args.align_tolerance,
        "min_table_density": args.min_table_density,
        "max_columns": args.max_columns,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config.table, name, value)

    if args.workers is not None:
        config.workers = max(1, args.workers)
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.ocr_lang:
        config.ocr.tesseract_lang = args.ocr_lang
    if args.page_breaks:
        config.export.include_page_breaks = True
    if args.debug:
        config.debug_mode = True

    return config


def run_pipeline(args) -> int:
    """Run the conversion pipeline."""
    from mdrecon.utils.assembler import convert_file
    from mdrecon.utils.export import DocumentExporter
    from mdrecon.utils.io import ensure_dir

    start_time = time.time()

    output_dir = ensure_dir(args.output)
    input_path = Path(args.input)
    config = build_config(args)

    pages = parse_page_range(args.pages) if args.pages else None
    if pages is not None:
        logger.info(f"Processing pages: {pages}")

    try:
        document = convert_file(input_path, config, pages=pages)
    except UnsupportedFormatError as e:
        logger.error(str(e))
        return 2
    except (MdreconError, FileNotFoundError) as e:
        logger.error(f"Conversion failed: {e}")
        if config.debug_mode:
            raise
        return 1

    exporter = DocumentExporter(
        output_dir,
        basename=input_path.stem or config.export.basename,
        include_page_breaks=config.export.include_page_breaks
    )
    for fmt, path in exporter.export(document, args.format).items():
        logger.info(f"Exported {fmt}: {path}")

    elapsed = time.time() - start_time
    metrics = document.metrics

    if not args.quiet:
        print("\n" + "=" * 60)
        print("CONVERSION COMPLETE")
        print("=" * 60)
        print(f"Source: {input_path}")
        print(f"Output: {output_dir}")
        print(f"Pages processed: {metrics.pages_processed} "
              f"(table: {metrics.table_pages}, layout: {metrics.layout_pages})")
        print(f"Tables: {metrics.tables_total}")
        print(f"Headings: {metrics.headings_total}, list items: {metrics.list_items_total}")
        print(f"Processing time: {elapsed:.2f}s")
        print("=" * 60)

    return 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()

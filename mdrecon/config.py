"""
Configuration and constants for the mdrecon pipeline.

This module provides:
- Table detection thresholds
- Layout classification thresholds
- OCR and export settings
- Environment overrides
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, List

logger = logging.getLogger("mdrecon")


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class TableConfig:
    """Borderless table detection configuration."""
    y_tolerance: float = 5.0
    # None = derive from the page's gap distribution
    column_gap: Optional[float] = None
    global_column_gap: Optional[float] = None
    align_tolerance: Optional[float] = None
    min_table_density: float = 0.2
    max_columns: int = 30


@dataclass
class LayoutConfig:
    """Line classification configuration (non-table pages)."""
    heading_min_ratio: float = 1.15
    heading_h2_ratio: float = 1.5
    heading_h1_ratio: float = 1.8
    heading_max_chars: int = 120
    default_font_size: float = 12.0


@dataclass
class OCRConfig:
    """OCR configuration for image inputs."""
    tesseract_lang: str = "eng"
    tesseract_config: str = "--oem 3 --psm 6"
    min_confidence: float = 0.0  # 0-100, tesseract scale
    # Added to the rightmost word edge to estimate page width
    page_width_margin: float = 10.0


@dataclass
class ExportConfig:
    """Export configuration."""
    basename: str = "document"
    include_page_breaks: bool = False
    output_formats: List[str] = field(default_factory=lambda: [
        "json", "markdown"
    ])


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    table: TableConfig = field(default_factory=TableConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Global settings
    workers: int = 1
    timeout: Optional[float] = None  # seconds for the whole document
    debug_mode: bool = False
    max_pages: Optional[int] = None  # None = process all pages


# ============================================================================
# Default Configuration Instance
# ============================================================================

def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={value!r}")
        return None


def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("MDRECON_DEBUG", "").lower() == "true":
        config.debug_mode = True

    workers = _env_float("MDRECON_WORKERS")
    if workers is not None and workers >= 1:
        config.workers = int(workers)

    y_tolerance = _env_float("MDRECON_Y_TOLERANCE")
    if y_tolerance is not None and y_tolerance > 0:
        config.table.y_tolerance = y_tolerance

    density = _env_float("MDRECON_MIN_TABLE_DENSITY")
    if density is not None:
        config.table.min_table_density = density

    max_columns = _env_float("MDRECON_MAX_COLUMNS")
    if max_columns is not None:
        config.table.max_columns = int(max_columns)

    return config


# ============================================================================
# JSON Schema Version
# ============================================================================

JSON_SCHEMA_VERSION = "1.0"

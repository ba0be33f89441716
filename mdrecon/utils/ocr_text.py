"""
OCR word extraction for image inputs.

Provides:
- Image loading (OpenCV)
- Tesseract word boxes mapped to positioned words
- PageInput construction for scanned pages
"""

import logging
from pathlib import Path
from typing import List, Dict, Any, Union
import numpy as np

from ..errors import FileConversionError, MissingDependencyError
from .io import PageInput
from .rows import PositionedWord

logger = logging.getLogger(__name__)


# ============================================================================
# Image Loading
# ============================================================================

def load_image(image_path: Union[str, Path], grayscale: bool = False) -> np.ndarray:
    """
    Load an image from file.

    Raises:
        FileNotFoundError: If image file doesn't exist
        FileConversionError: If image cannot be decoded
    """
    try:
        import cv2
    except ImportError:
        raise MissingDependencyError(
            "opencv-python",
            "OpenCV is required for image input. Install with: pip install opencv-python"
        )

    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    flag = cv2.IMREAD_GRAYSCALE if grayscale else cv2.IMREAD_COLOR
    img = cv2.imread(str(image_path), flag)

    if img is None:
        raise FileConversionError(
            f"Could not decode image: {image_path}",
            attempts=[("image", ValueError("cv2.imread returned None"))]
        )

    logger.debug(f"Loaded image: {image_path}, shape: {img.shape}")
    return img


# ============================================================================
# Tesseract Mapping
# ============================================================================

def words_from_tesseract_data(
    data: Dict[str, List[Any]],
    min_confidence: float = 0.0
) -> List[PositionedWord]:
    """
    Convert ``pytesseract.image_to_data`` dictionary output to words.

    Entries with blank text or a confidence below ``min_confidence``
    (tesseract reports -1 for non-word boxes) are dropped.
    """
    words = []
    for i in range(len(data.get('text', []))):
        text = str(data['text'][i]).strip()
        if not text:
            continue

        conf = float(data['conf'][i])
        if conf < 0 or conf < min_confidence:
            continue

        left = float(data['left'][i])
        words.append(PositionedWord(
            text=text,
            x0=left,
            x1=left + float(data['width'][i]),
            top=float(data['top'][i])
        ))
    return words


class TesseractWordExtractor:
    """Runs Tesseract on a page image and returns its positioned words."""

    def __init__(
        self,
        language: str = "eng",
        config: str = "--oem 3 --psm 6",
        min_confidence: float = 0.0,
        page_width_margin: float = 10.0
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract
        except ImportError:
            raise MissingDependencyError(
                "pytesseract",
                "pytesseract is required for image input. Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.language = language
        self.config = config
        self.min_confidence = min_confidence
        self.page_width_margin = page_width_margin

    @classmethod
    def from_config(cls, config: Any) -> 'TesseractWordExtractor':
        return cls(
            language=config.tesseract_lang,
            config=config.tesseract_config,
            min_confidence=config.min_confidence,
            page_width_margin=config.page_width_margin
        )

    def extract(self, image: np.ndarray, page_number: int = 1) -> PageInput:
        """
        Recognise words on a page image.

        The page width is taken from the rightmost word edge plus a small
        margin, matching how the words themselves bound the content.
        """
        try:
            data = self.pytesseract.image_to_data(
                image,
                lang=self.language,
                config=self.config,
                output_type=self.pytesseract.Output.DICT
            )
        except Exception as e:
            raise FileConversionError(
                f"Tesseract failed on page {page_number}: {e}",
                attempts=[("tesseract", e)]
            )

        words = words_from_tesseract_data(data, self.min_confidence)
        width = max((w.x1 for w in words), default=0.0) + self.page_width_margin
        logger.info(f"OCR found {len(words)} words on page {page_number}")

        return PageInput(
            page_number=page_number,
            width=width,
            height=float(image.shape[0]),
            words=words
        )

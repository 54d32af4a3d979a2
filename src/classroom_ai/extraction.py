"""PDF Text Extraction Module

Reads the text of an uploaded PDF for the analysis pipeline.

Strategy:
  - PyMuPDF (fitz) page text as the primary method
  - Pages with almost no text layer (scans, photos of notes) are rendered
    and OCR'd with Tesseract
  - pdfplumber as a fallback when PyMuPDF cannot open the file

A page whose OCR fails contributes an ``[[OCR_FAILED page=N]]`` marker so
the failure is visible in the debug log; the normalizer strips markers
before analysis.
"""

import io
import logging
from pathlib import Path
from typing import List

import fitz  # PyMuPDF
import pdfplumber
import pytesseract
from PIL import Image

from .errors import ExtractionError
from .text_cleaning import OCR_FAILURE_MARKER

logger = logging.getLogger(__name__)

# Pages with fewer characters than this are treated as image-only
OCR_MIN_PAGE_CHARS = 20
OCR_DPI = 300


def extract_text(path: Path | str) -> str:
    """Extract the full text of a PDF, OCR-ing image-only pages.

    Args:
        path: Path to the PDF on disk

    Returns:
        Concatenated page text (may be empty for blank documents)

    Raises:
        ExtractionError: If the file is missing or no backend can read it
    """
    path = Path(path)
    if not path.exists():
        raise ExtractionError(f"Uploaded file not found: {path.name}")

    try:
        return _extract_with_pymupdf(path)
    except RuntimeError as e:  # fitz.FileDataError and friends
        logger.warning("PyMuPDF failed on %s (%s); trying pdfplumber", path.name, e)

    try:
        return _extract_with_pdfplumber(path)
    except Exception as e:
        logger.error("pdfplumber failed on %s: %s", path.name, e)
        raise ExtractionError(
            "Failed to read PDF structure. The file might be corrupted, "
            "encrypted, or password-protected."
        ) from e


def _extract_with_pymupdf(path: Path) -> str:
    pages: List[str] = []
    ocr_pages = 0

    with fitz.open(path) as doc:
        for page_num, page in enumerate(doc, start=1):
            text = page.get_text() or ""
            if len(text.strip()) < OCR_MIN_PAGE_CHARS:
                logger.info("Page %d has no usable text layer; applying OCR", page_num)
                text = _ocr_page(page, page_num)
                ocr_pages += 1
            pages.append(text)

    logger.info(
        "✓ Extracted %d pages with PyMuPDF (%d via OCR)",
        len(pages),
        ocr_pages,
    )
    return "\n".join(pages)


def _ocr_page(page: "fitz.Page", page_num: int) -> str:
    """Render one page and run Tesseract over it."""
    try:
        pix = page.get_pixmap(dpi=OCR_DPI)
        image = Image.open(io.BytesIO(pix.tobytes("png")))
        return pytesseract.image_to_string(image) or ""
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
        logger.error("OCR error on page %d: %s", page_num, e)
        return OCR_FAILURE_MARKER.format(page=page_num)


def _extract_with_pdfplumber(path: Path) -> str:
    pages: List[str] = []
    with pdfplumber.open(path) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text() or "")

    logger.info("✓ Extracted %d pages with pdfplumber", len(pages))
    return "\n".join(pages)

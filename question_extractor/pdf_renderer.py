"""
PDF to page images. Every page is rendered with PyMuPDF and re-encoded as a
JPEG, which is what the extraction request declares.
"""
import io
import base64
import fitz  # PyMuPDF
from PIL import Image
from typing import List
from utils.logger import get_logger

logger = get_logger(__name__)


def render_pdf_pages(pdf_bytes: bytes, scale: float = 2.0, quality: int = 90) -> List[str]:
    """Render each PDF page and return base64 JPEG strings in page order."""
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise ValueError(f"Could not open PDF: {e}") from e

    page_images = []
    mat = fitz.Matrix(scale, scale)

    try:
        for page_num in range(len(doc)):
            page = doc[page_num]
            pix = page.get_pixmap(matrix=mat, alpha=False)

            img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
            buffer = io.BytesIO()
            img.save(buffer, format="JPEG", quality=quality)

            page_images.append(base64.b64encode(buffer.getvalue()).decode("utf-8"))
            logger.debug(f"Rendered page {page_num + 1}: {pix.width}x{pix.height}")
    finally:
        doc.close()

    if not page_images:
        raise ValueError("PDF has no pages or could not be rendered")

    logger.info(f"Rendered {len(page_images)} pages as JPEG at scale {scale}")
    return page_images

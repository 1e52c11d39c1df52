"""PDF rasterization for the local OCR backend.

Tesseract only reads raster images, so PDFs stored in the local object
store are rendered page by page before recognition.
"""

from pathlib import Path

from pdf2image import convert_from_path
from pdf2image.pdf2image import pdfinfo_from_path
from PIL import Image

from carebridge.utils.logger import get_logger

logger = get_logger(__name__)


class PDFHandler:
    """Renders PDF documents to PIL images.

    Args:
        dpi: Rendering resolution. Higher values give better OCR results
            at the cost of memory.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def pdf_to_images(self, pdf_path: Path) -> list[Image.Image]:
        """Convert a PDF file to one image per page.

        Raises:
            FileNotFoundError: If the file does not exist.
            RuntimeError: If PDF conversion fails.
        """
        path = Path(pdf_path)
        if not path.exists():
            raise FileNotFoundError(f"PDF file not found: {path}")

        try:
            images = convert_from_path(str(path), dpi=self.dpi)
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        logger.info("Rendered PDF to %d images at %d DPI", len(images), self.dpi)
        return list(images)

    def get_page_count(self, pdf_path: Path) -> int:
        """Get the number of pages in a PDF without rendering it.

        Raises:
            RuntimeError: If the PDF cannot be inspected.
        """
        try:
            info = pdfinfo_from_path(str(pdf_path))
        except Exception as exc:
            raise RuntimeError(f"PDF inspection failed: {exc}") from exc
        count = info["Pages"]
        logger.debug("PDF %s has %d pages", pdf_path, count)
        return count

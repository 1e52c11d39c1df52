"""Local OCR backend built on Tesseract.

Reads objects written by ``LocalUploader`` and recognizes them with
pytesseract, producing the same normalized ``LINE`` blocks that Textract
returns so the rest of the pipeline does not care which backend ran.
"""

import asyncio
from dataclasses import replace
from pathlib import Path

import pytesseract
from PIL import Image

from carebridge.errors import AnalysisError
from carebridge.utils.config import AnalyzerConfig, StorageConfig
from carebridge.utils.logger import get_logger

from .models import AnalysisResult, BlockType, BoundingBox, TextBlock
from .pdf_handler import PDFHandler

logger = get_logger(__name__)

SERVICE_VERSION = "tesseract"


class TesseractEngine:
    """Wrapper around Tesseract producing line-level text blocks.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: Default OCR language code.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang

    def extract_lines(
        self,
        image: Image.Image,
        lang: str | None = None,
        psm: int = 3,
    ) -> list[TextBlock]:
        """Recognize an image and group its words into lines.

        Word boxes sharing a ``(block_num, par_num, line_num)`` triple form
        one line; line boxes are normalized by the image size.

        Args:
            image: Page image.
            lang: OCR language code. Defaults to the engine default.
            psm: Tesseract page segmentation mode.

        Returns:
            ``LINE`` blocks in Tesseract's detection order.
        """
        lang = lang or self.default_lang
        data = pytesseract.image_to_data(
            image,
            lang=lang,
            config=f"--psm {psm}",
            output_type=pytesseract.Output.DICT,
        )
        width, height = image.size
        count = len(data["text"])
        par_nums = data.get("par_num", [0] * count)

        groups: dict[tuple[int, int, int], list[int]] = {}
        for i in range(count):
            conf = float(data["conf"][i])
            if conf > 0 and data["text"][i].strip():
                line_id = (data["block_num"][i], par_nums[i], data["line_num"][i])
                groups.setdefault(line_id, []).append(i)

        lines = [
            self._line_block(data, indices, width, height)
            for indices in groups.values()
        ]
        logger.info("Tesseract recognized %d lines", len(lines))
        return lines

    @staticmethod
    def _line_block(
        data: dict, indices: list[int], width: int, height: int
    ) -> TextBlock:
        left = min(data["left"][i] for i in indices)
        top = min(data["top"][i] for i in indices)
        right = max(data["left"][i] + data["width"][i] for i in indices)
        bottom = max(data["top"][i] + data["height"][i] for i in indices)
        confidence = sum(float(data["conf"][i]) for i in indices) / len(indices)
        return TextBlock(
            block_type=BlockType.LINE,
            text=" ".join(data["text"][i].strip() for i in indices),
            bbox=BoundingBox(
                top=top / height,
                left=left / width,
                width=(right - left) / width,
                height=(bottom - top) / height,
            ),
            confidence=confidence / 100.0,
        )


class TesseractAnalyzer:
    """Analyzer that runs Tesseract over the local object store.

    Pages of a multi-page PDF are stacked vertically: a line's ``top`` is
    ``(page_index + top_in_page) / page_count``, which keeps every page's
    lines ahead of the next page's in reading order.

    Args:
        analyzer: Tesseract command, language, PSM and PDF limits.
        storage: Root directory of the local object store.
        engine: Pre-built engine, mainly for tests.
    """

    def __init__(
        self,
        analyzer: AnalyzerConfig,
        storage: StorageConfig,
        engine: TesseractEngine | None = None,
    ) -> None:
        self.root = Path(storage.local_root)
        self.psm = analyzer.psm
        self.max_pdf_pages = analyzer.max_pdf_pages
        self.engine = engine or TesseractEngine(
            tesseract_cmd=analyzer.tesseract_cmd,
            default_lang=analyzer.default_lang,
        )
        self.pdf_handler = PDFHandler(dpi=analyzer.pdf_dpi)

    async def analyze(self, key: str) -> AnalysisResult:
        return await asyncio.to_thread(self._analyze, key)

    def _analyze(self, key: str) -> AnalysisResult:
        path = self.root / key
        if not path.is_file():
            raise AnalysisError(f"Stored object not found: {key}")

        try:
            pages = self._load_pages(path)
            page_lines = [
                self.engine.extract_lines(page, psm=self.psm) for page in pages
            ]
        except (OSError, RuntimeError, pytesseract.TesseractError) as exc:
            logger.error("Tesseract analysis of %s failed: %s", key, exc)
            raise AnalysisError(
                f"Document analysis failed for {key}: {exc}"
            ) from exc

        blocks = _stack_pages(page_lines)
        logger.info("Analyzed %s: %d pages, %d lines", key, len(pages), len(blocks))
        return AnalysisResult(
            source_key=key,
            blocks=tuple(blocks),
            service_version=SERVICE_VERSION,
            page_count=len(pages),
        )

    def _load_pages(self, path: Path) -> list[Image.Image]:
        if path.suffix.lower() == ".pdf":
            page_count = self.pdf_handler.get_page_count(path)
            if page_count > self.max_pdf_pages:
                raise AnalysisError(
                    f"PDF has {page_count} pages, limit is {self.max_pdf_pages}"
                )
            return self.pdf_handler.pdf_to_images(path)
        with Image.open(path) as img:
            img.load()
            return [img.convert("RGB")]


def _stack_pages(page_lines: list[list[TextBlock]]) -> list[TextBlock]:
    page_count = len(page_lines)
    if page_count <= 1:
        return [line for lines in page_lines for line in lines]

    stacked: list[TextBlock] = []
    for index, lines in enumerate(page_lines):
        for line in lines:
            box = line.bbox
            if box is None:
                stacked.append(line)
                continue
            stacked.append(
                replace(
                    line,
                    bbox=replace(
                        box,
                        top=(index + box.top) / page_count,
                        height=box.height / page_count,
                    ),
                )
            )
    return stacked

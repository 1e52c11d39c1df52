"""Structured OCR results shared by every analyzer backend.

Bounding boxes are fractions of the page dimensions, so ordering and
layout decisions do not depend on the source image resolution.
"""

from dataclasses import dataclass
from enum import StrEnum


class BlockType(StrEnum):
    """Kinds of recognized blocks."""

    PAGE = "PAGE"
    LINE = "LINE"
    WORD = "WORD"
    KEY_VALUE = "KEY_VALUE"
    TABLE = "TABLE"
    CELL = "CELL"
    OTHER = "OTHER"


@dataclass(frozen=True)
class BoundingBox:
    """Normalized rectangle locating a block on its page."""

    top: float
    left: float
    width: float
    height: float


@dataclass(frozen=True)
class TextBlock:
    """A unit of recognized text with its type and position."""

    block_type: BlockType
    text: str
    bbox: BoundingBox | None = None
    confidence: float | None = None

    @property
    def top(self) -> float:
        return self.bbox.top if self.bbox else 0.0

    @property
    def left(self) -> float:
        return self.bbox.left if self.bbox else 0.0


@dataclass(frozen=True)
class AnalysisResult:
    """Blocks extracted from one stored document, with provenance."""

    source_key: str
    blocks: tuple[TextBlock, ...] = ()
    service_version: str | None = None
    page_count: int = 1

    def of_type(self, block_type: BlockType) -> list[TextBlock]:
        return [b for b in self.blocks if b.block_type == block_type]

    def lines(self) -> list[TextBlock]:
        return self.of_type(BlockType.LINE)

    def key_values(self) -> list[TextBlock]:
        return self.of_type(BlockType.KEY_VALUE)

    def tables(self) -> list[TextBlock]:
        return self.of_type(BlockType.TABLE)

    @property
    def has_form_fields(self) -> bool:
        return any(b.block_type == BlockType.KEY_VALUE for b in self.blocks)

    @property
    def has_tables(self) -> bool:
        return any(b.block_type == BlockType.TABLE for b in self.blocks)

"""Shared fixtures and in-memory adapters for the CareBridge test suite."""

import asyncio
from pathlib import Path

import pytest
from PIL import Image

from carebridge.errors import PipelineError
from carebridge.ocr.models import AnalysisResult, BlockType, BoundingBox, TextBlock
from carebridge.storage.base import ImageAsset
from carebridge.summarization.base import Narrative

SAMPLE_KEY = "uploads/1700000000000-doc.jpg"


def make_line(text: str, top: float | None = None, left: float = 0.0) -> TextBlock:
    """Create a ``LINE`` block; ``top=None`` leaves the bounding box unset."""
    bbox = None
    if top is not None:
        bbox = BoundingBox(top=top, left=left, width=0.2, height=0.02)
    return TextBlock(block_type=BlockType.LINE, text=text, bbox=bbox)


class FakeUploader:
    """Uploader returning a fixed key, optionally blocking or failing."""

    def __init__(
        self,
        key: str = SAMPLE_KEY,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.key = key
        self.error = error
        self.gate = gate
        self.calls: list[ImageAsset] = []

    async def upload(self, asset: ImageAsset) -> str:
        self.calls.append(asset)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.key


class FakeAnalyzer:
    """Analyzer returning fixed blocks for any key."""

    def __init__(
        self,
        blocks: list[TextBlock] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.blocks = blocks or []
        self.error = error
        self.calls: list[str] = []

    async def analyze(self, key: str) -> AnalysisResult:
        self.calls.append(key)
        if self.error is not None:
            raise self.error
        return AnalysisResult(
            source_key=key, blocks=tuple(self.blocks), service_version="fake-1"
        )


class FakeSummarizer:
    """Summarizer returning a fixed narrative."""

    def __init__(
        self, text: str = "Summary: ...", error: PipelineError | None = None
    ) -> None:
        self.text = text
        self.error = error
        self.calls: list[str] = []

    async def summarize(self, text: str) -> Narrative:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return Narrative(text=self.text, model="fake-model")


@pytest.fixture
def two_line_blocks() -> list[TextBlock]:
    """Two lines on the same visual row, listed right-to-left."""
    return [make_line("A", top=0.10, left=0.10), make_line("B", top=0.105, left=0.05)]


@pytest.fixture
def sample_image_path(tmp_path: Path) -> Path:
    """Write a small PNG image and return its path."""
    path = tmp_path / "doc.png"
    Image.new("RGB", (200, 100), color="white").save(path, format="PNG")
    return path


@pytest.fixture
def sample_asset(sample_image_path: Path) -> ImageAsset:
    return ImageAsset.from_path(sample_image_path)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent

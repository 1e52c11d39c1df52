"""Amazon Textract adapter for document analysis.

Calls ``AnalyzeDocument`` (or ``DetectDocumentText`` in text-only mode) on
an object already stored in S3, then flattens Textract's block graph into
``TextBlock`` values: lines and words as-is, form keys joined with their
values, and tables rendered row by row.
"""

import asyncio
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from carebridge.errors import AnalysisError
from carebridge.utils.aws import make_client
from carebridge.utils.config import AnalyzerConfig, AWSConfig, StorageConfig
from carebridge.utils.logger import get_logger

from .models import AnalysisResult, BlockType, BoundingBox, TextBlock

logger = get_logger(__name__)

_SELECTED_MARK = "[X]"


def _bbox(block: dict[str, Any]) -> BoundingBox | None:
    box = block.get("Geometry", {}).get("BoundingBox")
    if not box:
        return None
    return BoundingBox(
        top=float(box.get("Top", 0.0)),
        left=float(box.get("Left", 0.0)),
        width=float(box.get("Width", 0.0)),
        height=float(box.get("Height", 0.0)),
    )


def _confidence(block: dict[str, Any]) -> float | None:
    conf = block.get("Confidence")
    return None if conf is None else float(conf) / 100.0


def _related_ids(block: dict[str, Any], relation: str) -> list[str]:
    ids: list[str] = []
    for rel in block.get("Relationships") or []:
        if rel.get("Type") == relation:
            ids.extend(rel.get("Ids", []))
    return ids


class TextractBlockConverter:
    """Converts a raw Textract ``Blocks`` list into ``TextBlock`` values."""

    def __init__(self, raw_blocks: list[dict[str, Any]]) -> None:
        self.raw_blocks = raw_blocks
        self.by_id = {b["Id"]: b for b in raw_blocks if "Id" in b}

    def convert(self) -> list[TextBlock]:
        blocks: list[TextBlock] = []
        for raw in self.raw_blocks:
            block = self._convert_one(raw)
            if block is not None:
                blocks.append(block)
        return blocks

    def _convert_one(self, raw: dict[str, Any]) -> TextBlock | None:
        block_type = raw.get("BlockType")
        if block_type in ("LINE", "WORD"):
            return TextBlock(
                block_type=BlockType(block_type),
                text=raw.get("Text", ""),
                bbox=_bbox(raw),
                confidence=_confidence(raw),
            )
        if block_type == "PAGE":
            return TextBlock(block_type=BlockType.PAGE, text="", bbox=_bbox(raw))
        if block_type == "KEY_VALUE_SET" and "KEY" in raw.get("EntityTypes", []):
            return self._key_value(raw)
        if block_type == "TABLE":
            return self._table(raw)
        # CELL, VALUE sets and selection marks are folded into their parents.
        return None

    def _child_text(self, block: dict[str, Any]) -> str:
        parts: list[str] = []
        for child_id in _related_ids(block, "CHILD"):
            child = self.by_id.get(child_id)
            if child is None:
                continue
            if child.get("BlockType") == "WORD":
                parts.append(child.get("Text", ""))
            elif (
                child.get("BlockType") == "SELECTION_ELEMENT"
                and child.get("SelectionStatus") == "SELECTED"
            ):
                parts.append(_SELECTED_MARK)
        return " ".join(p for p in parts if p)

    def _key_value(self, raw: dict[str, Any]) -> TextBlock:
        key_text = self._child_text(raw).rstrip(":")
        values = [
            self._child_text(self.by_id[value_id])
            for value_id in _related_ids(raw, "VALUE")
            if value_id in self.by_id
        ]
        value_text = " ".join(v for v in values if v)
        return TextBlock(
            block_type=BlockType.KEY_VALUE,
            text=f"{key_text}: {value_text}".strip(),
            bbox=_bbox(raw),
            confidence=_confidence(raw),
        )

    def _table(self, raw: dict[str, Any]) -> TextBlock:
        grid: dict[int, dict[int, str]] = {}
        for cell_id in _related_ids(raw, "CHILD"):
            cell = self.by_id.get(cell_id)
            if cell is None or cell.get("BlockType") != "CELL":
                continue
            row = int(cell.get("RowIndex", 0))
            column = int(cell.get("ColumnIndex", 0))
            grid.setdefault(row, {})[column] = self._child_text(cell)

        rows = [
            " | ".join(cells[c] for c in sorted(cells))
            for _, cells in sorted(grid.items())
        ]
        return TextBlock(
            block_type=BlockType.TABLE,
            text="\n".join(rows),
            bbox=_bbox(raw),
            confidence=_confidence(raw),
        )


class TextractAnalyzer:
    """Runs Amazon Textract against objects in an S3 bucket.

    Args:
        analyzer: Feature types and text-only switch.
        storage: Bucket the keys refer to.
        aws: Region and credentials, used when ``client`` is not given.
        client: Pre-built Textract client, mainly for tests.
    """

    def __init__(
        self,
        analyzer: AnalyzerConfig,
        storage: StorageConfig,
        aws: AWSConfig | None = None,
        client: Any = None,
    ) -> None:
        self.bucket_name = storage.bucket_name
        self.feature_types = list(analyzer.feature_types)
        self.detect_text_only = analyzer.detect_text_only or not self.feature_types
        self._client = client or make_client("textract", aws or AWSConfig())

    async def analyze(self, key: str) -> AnalysisResult:
        document = {"S3Object": {"Bucket": self.bucket_name, "Name": key}}
        try:
            if self.detect_text_only:
                response = await asyncio.to_thread(
                    self._client.detect_document_text, Document=document
                )
            else:
                response = await asyncio.to_thread(
                    self._client.analyze_document,
                    Document=document,
                    FeatureTypes=self.feature_types,
                )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Textract analysis of %s failed: %s", key, exc)
            raise AnalysisError(
                f"Document analysis failed for {key}: {exc}"
            ) from exc

        return self._to_result(key, response)

    def _to_result(self, key: str, response: Any) -> AnalysisResult:
        if not isinstance(response, dict) or not isinstance(
            response.get("Blocks"), list
        ):
            raise AnalysisError(f"Malformed analysis response for {key}")

        blocks = TextractBlockConverter(response["Blocks"]).convert()
        version = response.get("AnalyzeDocumentModelVersion") or response.get(
            "DetectDocumentTextModelVersion"
        )
        pages = response.get("DocumentMetadata", {}).get("Pages", 1)

        logger.info(
            "Textract returned %d blocks (%d lines) for %s",
            len(blocks),
            sum(1 for b in blocks if b.block_type == BlockType.LINE),
            key,
        )
        return AnalysisResult(
            source_key=key,
            blocks=tuple(blocks),
            service_version=version,
            page_count=int(pages),
        )

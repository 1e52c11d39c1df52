"""Builds a pipeline orchestrator from application configuration."""

from carebridge.ocr.base import Analyzer
from carebridge.ocr.reassembler import LineReassembler
from carebridge.ocr.tesseract_engine import TesseractAnalyzer
from carebridge.ocr.textract_analyzer import TextractAnalyzer
from carebridge.storage.base import Uploader
from carebridge.storage.local_uploader import LocalUploader
from carebridge.storage.s3_uploader import S3Uploader
from carebridge.summarization.base import Summarizer
from carebridge.summarization.openai_summarizer import OpenAISummarizer
from carebridge.utils.config import AppConfig
from carebridge.utils.logger import get_logger

from .orchestrator import PipelineOrchestrator

logger = get_logger(__name__)


def build_uploader(config: AppConfig) -> Uploader:
    if config.storage.backend == "local":
        return LocalUploader(config.storage)
    return S3Uploader(config.storage, config.aws)


def build_analyzer(config: AppConfig) -> Analyzer:
    if config.analyzer.backend == "tesseract":
        return TesseractAnalyzer(config.analyzer, config.storage)
    return TextractAnalyzer(config.analyzer, config.storage, config.aws)


def build_summarizer(config: AppConfig) -> Summarizer | None:
    if not config.summarizer.enabled:
        return None
    return OpenAISummarizer(config.summarizer)


def build_orchestrator(
    config: AppConfig, summarize: bool | None = None
) -> PipelineOrchestrator:
    """Wire the configured adapters into a ``PipelineOrchestrator``.

    Args:
        config: Application configuration.
        summarize: Overrides ``config.summarizer.enabled`` when given.

    Raises:
        ValueError: If the storage and analyzer backends cannot work
            together (Tesseract reads the local store, Textract reads S3).
    """
    storage, analyzer = config.storage.backend, config.analyzer.backend
    if (storage == "local") != (analyzer == "tesseract"):
        raise ValueError(
            f"Analyzer backend {analyzer!r} cannot read objects from "
            f"storage backend {storage!r}"
        )

    if summarize is not None:
        config = config.model_copy(
            update={
                "summarizer": config.summarizer.model_copy(
                    update={"enabled": summarize}
                )
            }
        )

    logger.info(
        "Building pipeline: storage=%s analyzer=%s summarizer=%s",
        storage,
        analyzer,
        "on" if config.summarizer.enabled else "off",
    )
    return PipelineOrchestrator(
        uploader=build_uploader(config),
        analyzer=build_analyzer(config),
        summarizer=build_summarizer(config),
        reassembler=LineReassembler(config.reassembly.row_epsilon),
    )

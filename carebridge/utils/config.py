"""Configuration management for the CareBridge pipeline.

Loads and validates YAML configuration with defaults for object storage,
document analysis, summarization, and line reassembly. The resulting
``AppConfig`` is passed explicitly into adapter constructors, so a test
configuration and a production configuration can live side by side.
"""

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AWSConfig(BaseModel):
    """Region and credentials shared by the S3 and Textract clients.

    Leaving the credential fields unset defers to boto3's default
    credential chain (environment, shared config, instance role).
    """

    region: str = "us-east-1"
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    endpoint_url: str | None = None


class StorageConfig(BaseModel):
    """Configuration for the object store receiving uploaded images."""

    backend: Literal["s3", "local"] = "s3"
    bucket_name: str = "carebridge-uploads"
    key_prefix: str = "uploads"
    local_root: str = "data/objects"


class AnalyzerConfig(BaseModel):
    """Configuration for OCR and structure extraction."""

    backend: Literal["textract", "tesseract"] = "textract"
    feature_types: list[str] = Field(default_factory=lambda: ["TABLES", "FORMS"])
    detect_text_only: bool = False
    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    pdf_dpi: int = 300
    max_pdf_pages: int = Field(default=20, gt=0)


class SummarizerConfig(BaseModel):
    """Configuration for the narrative summarizer."""

    enabled: bool = True
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int | None = 800
    api_key: str | None = None
    base_url: str | None = None
    system_prompt: str | None = None


class ReassemblyConfig(BaseModel):
    """Configuration for reading-order reassembly of text lines."""

    row_epsilon: float = Field(default=0.02, gt=0.0, lt=1.0)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    aws: AWSConfig = Field(default_factory=AWSConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig)
    reassembly: ReassemblyConfig = Field(default_factory=ReassemblyConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()

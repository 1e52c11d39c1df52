"""FastAPI application exposing the document pipeline.

One orchestrator is shared by the application instance, so the
single-flight rule holds across requests: a second upload while a run is
in flight is answered with 409.
"""

import asyncio
import shutil
import tempfile
import time
from pathlib import Path
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from carebridge import __version__
from carebridge.errors import ConcurrentRunError
from carebridge.pipeline.factory import build_orchestrator
from carebridge.pipeline.orchestrator import Failed, PipelineOrchestrator
from carebridge.pipeline.report import to_dict
from carebridge.storage.base import DEFAULT_CONTENT_TYPE, ImageAsset
from carebridge.utils.config import load_config
from carebridge.utils.logger import get_logger

from .schemas import (
    DocumentResponse,
    FailureDetail,
    HealthResponse,
    RunStatusResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="CareBridge Document API",
    description="Explain photographed medical documents in plain language",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.orchestrator = None

_ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/png",
    "image/heic",
    "image/tiff",
    "image/webp",
    "application/pdf",
    DEFAULT_CONTENT_TYPE,
}


def _build_orchestrator() -> PipelineOrchestrator:
    """Build the orchestrator from the configuration file."""
    return build_orchestrator(load_config())


def _get_orchestrator() -> PipelineOrchestrator:
    """Return the application's orchestrator, building it on first use."""
    if app.state.orchestrator is None:
        app.state.orchestrator = _build_orchestrator()
    return app.state.orchestrator


def _safe_file_name(filename: str | None) -> str:
    """Reduce a client-supplied name to a plain file name."""
    name = Path(filename or "").name
    if name in ("", ".", ".."):
        return "document"
    return name


def _status(orchestrator: PipelineOrchestrator) -> RunStatusResponse:
    run = orchestrator.current
    if run is None:
        return RunStatusResponse(state=orchestrator.state.value)
    return RunStatusResponse(
        state=run.stage.value,
        run_id=run.run_id,
        file_name=run.asset.file_name,
        key=run.key,
        started_at=run.started_at,
        finished_at=run.finished_at,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    config = load_config()
    return HealthResponse(
        status="healthy",
        version=__version__,
        storage_backend=config.storage.backend,
        analyzer_backend=config.analyzer.backend,
        summarizer_enabled=config.summarizer.enabled,
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.post("/documents", response_model=DocumentResponse)
async def process_document(
    file: Annotated[UploadFile, File(...)],
) -> DocumentResponse:
    """Upload, analyze and explain a document image.

    Args:
        file: Uploaded document image (JPEG, PNG, HEIC, TIFF, WebP or PDF).

    Returns:
        Extracted text, form fields, tables and the narrative.
    """
    start_time = time.time()

    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    orchestrator = _get_orchestrator()
    content = await file.read()
    file_name = _safe_file_name(file.filename)
    declared = file.content_type if file.content_type != DEFAULT_CONTENT_TYPE else None

    with tempfile.TemporaryDirectory(prefix="carebridge-") as tmp_dir:
        path = Path(tmp_dir) / file_name
        await asyncio.to_thread(path.write_bytes, content)
        try:
            outcome = await orchestrator.run(
                ImageAsset.from_path(path, content_type=declared)
            )
        except ConcurrentRunError as exc:
            raise HTTPException(status_code=409, detail=exc.message) from exc

    if isinstance(outcome, Failed):
        raise HTTPException(
            status_code=502,
            detail=FailureDetail(**to_dict(outcome)).model_dump(),
        )

    return DocumentResponse(
        **to_dict(outcome),
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.get("/documents/current", response_model=RunStatusResponse)
async def current_run() -> RunStatusResponse:
    """Report the state of the current run."""
    return _status(_get_orchestrator())


@app.post("/documents/reset", response_model=RunStatusResponse)
async def reset_run() -> RunStatusResponse:
    """Abandon the current run so a new one can start."""
    orchestrator = _get_orchestrator()
    orchestrator.reset()
    return _status(orchestrator)

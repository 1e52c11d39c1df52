"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel


class DocumentResponse(BaseModel):
    """Response schema for a completed document run."""

    run_id: str
    status: str
    key: str
    text: str
    narrative: str | None = None
    model: str | None = None
    service_version: str | None = None
    page_count: int = 1
    line_count: int = 0
    form_fields: list[str] = []
    tables: list[str] = []
    disclaimer: str
    processing_time_ms: float


class FailureDetail(BaseModel):
    """Error body returned when a run ends in the failed state."""

    run_id: str
    status: str
    stage: str
    error_kind: str
    error: str
    message: str


class RunStatusResponse(BaseModel):
    """State of the orchestrator's current run."""

    state: str
    run_id: str | None = None
    file_name: str | None = None
    key: str | None = None
    started_at: float | None = None
    finished_at: float | None = None


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    storage_backend: str
    analyzer_backend: str
    summarizer_enabled: bool
    tesseract_available: bool

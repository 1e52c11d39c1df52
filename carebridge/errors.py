"""Error taxonomy for the document pipeline.

Each stage fails with its own error type; the orchestrator tags the error
with the stage that raised it and reports a ``Failed`` outcome. Only
``ConcurrentRunError`` is raised to the caller of ``run``.
"""


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransferError(PipelineError):
    """The asset could not be read or the object store rejected the write."""


class AnalysisError(PipelineError):
    """The OCR service was unreachable, lost the object, or returned garbage."""


class SummarizationError(PipelineError):
    """The generative-text service was unavailable or produced nothing usable."""


class ConcurrentRunError(PipelineError):
    """A run was requested while another one is still in flight."""

"""Single-flight orchestration of the document pipeline.

A run moves strictly forward through
``IDLE -> UPLOADING -> ANALYZING -> SUMMARIZING -> DONE``; any stage error
ends it in ``FAILED`` tagged with the stage that was executing. There is
no retry in place: the caller starts a new run.
"""

import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeVar

from carebridge.errors import (
    AnalysisError,
    ConcurrentRunError,
    PipelineError,
    SummarizationError,
    TransferError,
)
from carebridge.ocr.base import Analyzer
from carebridge.ocr.models import AnalysisResult
from carebridge.ocr.reassembler import LineReassembler
from carebridge.storage.base import ImageAsset, StoredObjectKey, Uploader
from carebridge.summarization.base import Narrative, Summarizer
from carebridge.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class PipelineStage(StrEnum):
    """States of a pipeline run."""

    IDLE = "idle"
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    SUMMARIZING = "summarizing"
    DONE = "done"
    FAILED = "failed"


_TERMINAL_STAGES = {PipelineStage.DONE, PipelineStage.FAILED}

_STAGE_ERRORS: dict[PipelineStage, type[PipelineError]] = {
    PipelineStage.UPLOADING: TransferError,
    PipelineStage.ANALYZING: AnalysisError,
    PipelineStage.SUMMARIZING: SummarizationError,
}

FAILURE_NOTICES = {
    PipelineStage.UPLOADING: (
        "We couldn't upload your document. "
        "Please check your connection and try again."
    ),
    PipelineStage.ANALYZING: (
        "We couldn't read the text in your document. "
        "Please try again with a clearer image."
    ),
    PipelineStage.SUMMARIZING: (
        "We couldn't generate an explanation for your document. Please try again."
    ),
}

GENERIC_NOTICE = "Something went wrong. Please try again."


@dataclass(frozen=True)
class Done:
    """Successful outcome of a run."""

    run_id: str
    key: StoredObjectKey
    analysis: AnalysisResult
    text: str
    narrative: Narrative | None = None


@dataclass(frozen=True)
class Failed:
    """Failed outcome of a run, tagged with the stage that failed."""

    run_id: str
    stage: PipelineStage
    error: PipelineError
    message: str

    @property
    def error_kind(self) -> str:
        return type(self.error).__name__


Outcome = Done | Failed


@dataclass
class PipelineRun:
    """State of one pipeline execution and the artifacts produced so far."""

    asset: ImageAsset
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    stage: PipelineStage = PipelineStage.IDLE
    key: StoredObjectKey | None = None
    analysis: AnalysisResult | None = None
    text: str | None = None
    narrative: Narrative | None = None
    outcome: Outcome | None = None
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None

    @property
    def is_terminal(self) -> bool:
        return self.stage in _TERMINAL_STAGES


class PipelineOrchestrator:
    """Runs upload, analysis, reassembly and summarization in order.

    At most one run is in flight at a time; ``run`` rejects a second call
    with ``ConcurrentRunError`` until the current run is terminal or has
    been abandoned with ``reset``.

    Args:
        uploader: Moves the image into object storage.
        analyzer: Extracts structured text from the stored object.
        summarizer: Explains the text. ``None`` disables summarization.
        reassembler: Puts extracted lines into reading order.
    """

    def __init__(
        self,
        uploader: Uploader,
        analyzer: Analyzer,
        summarizer: Summarizer | None = None,
        reassembler: LineReassembler | None = None,
    ) -> None:
        self.uploader = uploader
        self.analyzer = analyzer
        self.summarizer = summarizer
        self.reassembler = reassembler or LineReassembler()
        self._current: PipelineRun | None = None

    @property
    def current(self) -> PipelineRun | None:
        return self._current

    @property
    def state(self) -> PipelineStage:
        return self._current.stage if self._current else PipelineStage.IDLE

    def reset(self) -> None:
        """Abandon the current run record.

        A run still in flight finishes and returns its outcome to its own
        caller, but is no longer tracked as current.
        """
        if self._current is not None and not self._current.is_terminal:
            logger.info("Abandoning in-flight run %s", self._current.run_id)
        self._current = None

    async def run(self, asset: ImageAsset) -> Outcome:
        """Process one image end to end.

        Raises:
            ConcurrentRunError: If another run has not reached a terminal
                state.
            asyncio.CancelledError: If the run's task is cancelled. The run
                is recorded as failed first, so a new run can start.
        """
        if self._current is not None and not self._current.is_terminal:
            raise ConcurrentRunError(
                f"Run {self._current.run_id} is still {self._current.stage}"
            )

        run = PipelineRun(asset=asset)
        self._current = run
        logger.info("Run %s started for %s", run.run_id, asset.file_name)

        try:
            run.key = await self._stage(
                run, PipelineStage.UPLOADING, self.uploader.upload, asset
            )
            run.analysis = await self._stage(
                run, PipelineStage.ANALYZING, self.analyzer.analyze, run.key
            )
            run.text = self.reassembler.reassemble(run.analysis.blocks)

            if self.summarizer is None:
                logger.info("Run %s: summarization disabled", run.run_id)
            elif not run.analysis.lines():
                logger.warning("Run %s: no text detected, no summary", run.run_id)
            else:
                run.narrative = await self._stage(
                    run,
                    PipelineStage.SUMMARIZING,
                    self.summarizer.summarize,
                    run.text,
                )
        except PipelineError as exc:
            return self._fail(run, exc)
        except BaseException as exc:
            # Cancellation or a reassembly bug; the run must still end terminal
            error_type = _STAGE_ERRORS.get(run.stage, PipelineError)
            self._fail(run, error_type(f"Run interrupted while {run.stage}: {exc!r}"))
            raise

        outcome = Done(
            run_id=run.run_id,
            key=run.key,
            analysis=run.analysis,
            text=run.text,
            narrative=run.narrative,
        )
        self._finish(run, PipelineStage.DONE, outcome)
        logger.info(
            "Run %s done in %.2fs", run.run_id, run.finished_at - run.started_at
        )
        return outcome

    async def _stage(
        self,
        run: PipelineRun,
        stage: PipelineStage,
        call: Callable[[Any], Awaitable[T]],
        arg: Any,
    ) -> T:
        run.stage = stage
        logger.info("Run %s: %s", run.run_id, stage)
        try:
            return await call(arg)
        except PipelineError:
            raise
        except Exception as exc:
            error_type = _STAGE_ERRORS[stage]
            raise error_type(f"Unexpected error while {stage}: {exc}") from exc

    def _fail(self, run: PipelineRun, error: PipelineError) -> Failed:
        stage = run.stage
        outcome = Failed(
            run_id=run.run_id,
            stage=stage,
            error=error,
            message=FAILURE_NOTICES.get(stage, GENERIC_NOTICE),
        )
        logger.error(
            "Run %s failed while %s (%s): %s",
            run.run_id,
            stage,
            outcome.error_kind,
            error.message,
        )
        self._finish(run, PipelineStage.FAILED, outcome)
        return outcome

    @staticmethod
    def _finish(run: PipelineRun, stage: PipelineStage, outcome: Outcome) -> None:
        run.stage = stage
        run.outcome = outcome
        run.finished_at = time.time()

"""Narrative type and the summarizer interface."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Narrative:
    """Plain-language explanation of a document's extracted text."""

    text: str
    model: str | None = None


class Summarizer(Protocol):
    """Explains reassembled document text in plain language."""

    async def summarize(self, text: str) -> Narrative:
        """Generate a narrative for ``text``.

        Raises:
            SummarizationError: On service unavailability, rate limiting,
                or an empty or rejected generation.
        """
        ...

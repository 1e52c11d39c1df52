"""Analyzer interface implemented by every OCR backend."""

from typing import Protocol

from .models import AnalysisResult


class Analyzer(Protocol):
    """Extracts structured text from a stored document."""

    async def analyze(self, key: str) -> AnalysisResult:
        """Analyze the object stored under ``key``.

        A document with no recognizable text yields an empty result.

        Raises:
            AnalysisError: If the service is unreachable, the object is
                missing, or the response is malformed.
        """
        ...

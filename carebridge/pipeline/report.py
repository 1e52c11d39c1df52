"""Rendering of pipeline outcomes for display and export.

Renderers only read the outcome; they never feed anything back into the
pipeline.
"""

from typing import Any

from .orchestrator import Failed, Outcome

DISCLAIMER = (
    "This analysis is provided for informational purposes only. Please "
    "consult with a healthcare professional for any medical advice or "
    "decisions."
)


def to_dict(outcome: Outcome) -> dict[str, Any]:
    """Convert an outcome into a JSON-serializable dictionary."""
    if isinstance(outcome, Failed):
        return {
            "run_id": outcome.run_id,
            "status": "failed",
            "stage": outcome.stage.value,
            "error_kind": outcome.error_kind,
            "error": outcome.error.message,
            "message": outcome.message,
        }

    analysis = outcome.analysis
    return {
        "run_id": outcome.run_id,
        "status": "done",
        "key": outcome.key,
        "text": outcome.text,
        "narrative": outcome.narrative.text if outcome.narrative else None,
        "model": outcome.narrative.model if outcome.narrative else None,
        "service_version": analysis.service_version,
        "page_count": analysis.page_count,
        "line_count": len(analysis.lines()),
        "form_fields": [b.text for b in analysis.key_values()],
        "tables": [b.text for b in analysis.tables()],
        "disclaimer": DISCLAIMER,
    }


def to_markdown(outcome: Outcome) -> str:
    """Render an outcome as a markdown document."""
    if isinstance(outcome, Failed):
        return f"# Document Analysis Failed\n\n{outcome.message}\n"

    sections = ["# Document Analysis Results"]
    if outcome.narrative is not None:
        sections.append(f"## Explanation\n\n{outcome.narrative.text}")
    sections.append(f"## Extracted Text\n\n{outcome.text}")

    analysis = outcome.analysis
    if analysis.has_form_fields:
        fields = "\n".join(f"- {b.text}" for b in analysis.key_values())
        sections.append(f"## Form Fields\n\n{fields}")
    if analysis.has_tables:
        tables = "\n\n".join(_table_markdown(b.text) for b in analysis.tables())
        sections.append(f"## Tables\n\n{tables}")

    sections.append(f"_{DISCLAIMER}_")
    return "\n\n".join(sections) + "\n"


def _table_markdown(text: str) -> str:
    rows = [row.split(" | ") for row in text.splitlines() if row]
    if not rows:
        return ""
    width = max(len(r) for r in rows)
    rows = [r + [""] * (width - len(r)) for r in rows]
    lines = ["| " + " | ".join(rows[0]) + " |", "|" + " --- |" * width]
    lines.extend("| " + " | ".join(r) + " |" for r in rows[1:])
    return "\n".join(lines)

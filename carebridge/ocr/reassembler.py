"""Reading-order reassembly of recognized text lines.

OCR services return lines in detection order, which is not always the
order a person reads them in. Lines are grouped into visual rows by their
top coordinate and read top-to-bottom, left-to-right.
"""

from collections.abc import Iterable

from carebridge.utils.logger import get_logger

from .models import BlockType, TextBlock

logger = get_logger(__name__)

NO_TEXT_DETECTED = "No text detected in the document."
ROW_EPSILON = 0.02


class LineReassembler:
    """Orders ``LINE`` blocks into a single human-readable string.

    Two lines share a visual row when their tops differ by less than
    ``row_epsilon`` (a fraction of page height). Rows are formed by chaining
    lines whose tops are within the epsilon of the previous line, so the
    result does not depend on the order the blocks arrive in.

    Lines without a bounding box are placed at ``top = left = 0`` and keep
    their relative input order.

    Args:
        row_epsilon: Maximum top difference for two lines to share a row.
    """

    def __init__(self, row_epsilon: float = ROW_EPSILON) -> None:
        self.row_epsilon = row_epsilon

    def rows(self, blocks: Iterable[TextBlock] | None) -> list[list[TextBlock]]:
        """Group ``LINE`` blocks into visual rows in reading order."""
        lines = [b for b in blocks or () if b.block_type == BlockType.LINE]
        ordered = sorted(lines, key=lambda b: (b.top, b.left))

        rows: list[list[TextBlock]] = []
        for line in ordered:
            if rows and line.top - rows[-1][-1].top < self.row_epsilon:
                rows[-1].append(line)
            else:
                rows.append([line])

        return [sorted(row, key=lambda b: b.left) for row in rows]

    def reassemble(self, blocks: Iterable[TextBlock] | None) -> str:
        """Join ``LINE`` blocks in reading order with newlines.

        Returns:
            The reassembled text, or ``NO_TEXT_DETECTED`` when there are
            no lines.
        """
        rows = self.rows(blocks)
        if not rows:
            return NO_TEXT_DETECTED

        text = "\n".join(line.text for row in rows for line in row)
        logger.debug(
            "Reassembled %d lines into %d rows",
            sum(len(row) for row in rows),
            len(rows),
        )
        return text


def reassemble(
    blocks: Iterable[TextBlock] | None, row_epsilon: float = ROW_EPSILON
) -> str:
    """Shortcut for ``LineReassembler(row_epsilon).reassemble(blocks)``."""
    return LineReassembler(row_epsilon).reassemble(blocks)

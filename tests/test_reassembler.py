"""Tests for reading-order reassembly of text lines."""

import itertools

from conftest import make_line

from carebridge.ocr.models import BlockType, BoundingBox, TextBlock
from carebridge.ocr.reassembler import (
    NO_TEXT_DETECTED,
    ROW_EPSILON,
    LineReassembler,
    reassemble,
)


def _form_lines() -> list[TextBlock]:
    return [
        make_line("Title", top=0.05, left=0.30),
        make_line("Name:", top=0.20, left=0.05),
        make_line("Jane", top=0.205, left=0.40),
        make_line("Date", top=0.30, left=0.05),
        make_line("2024", top=0.31, left=0.50),
        make_line("Footer", top=0.90, left=0.10),
    ]


class TestReadingOrder:
    """Tests for top-to-bottom, left-to-right ordering."""

    def test_default_epsilon(self) -> None:
        assert ROW_EPSILON == 0.02
        assert LineReassembler().row_epsilon == 0.02

    def test_same_row_reads_left_to_right(self, two_line_blocks) -> None:
        assert reassemble(two_line_blocks) == "B\nA"

    def test_distinct_rows_read_top_to_bottom(self) -> None:
        blocks = [
            make_line("second", top=0.50, left=0.01),
            make_line("first", top=0.10, left=0.90),
        ]
        assert reassemble(blocks) == "first\nsecond"

    def test_form_layout(self) -> None:
        assert reassemble(_form_lines()) == "Title\nName:\nJane\nDate\n2024\nFooter"

    def test_output_independent_of_input_order(self) -> None:
        lines = _form_lines()
        expected = reassemble(lines)
        for permutation in itertools.permutations(lines):
            assert reassemble(list(permutation)) == expected

    def test_close_lines_always_left_to_right(self) -> None:
        right = make_line("right", top=0.400, left=0.60)
        left = make_line("left", top=0.415, left=0.20)
        assert reassemble([right, left]) == "left\nright"
        assert reassemble([left, right]) == "left\nright"

    def test_chained_rows_keep_close_pairs_ordered(self) -> None:
        blocks = [
            make_line("C", top=0.000, left=0.50),
            make_line("B", top=0.015, left=0.10),
            make_line("A", top=0.030, left=0.00),
        ]
        assert reassemble(blocks) == "A\nB\nC"

    def test_lines_at_epsilon_are_separate_rows(self) -> None:
        blocks = [
            make_line("lower", top=0.125, left=0.10),
            make_line("upper", top=0.10, left=0.50),
        ]
        assert reassemble(blocks) == "upper\nlower"

    def test_custom_epsilon(self) -> None:
        blocks = [
            make_line("right", top=0.10, left=0.60),
            make_line("left", top=0.14, left=0.10),
        ]
        assert reassemble(blocks) == "right\nleft"
        assert reassemble(blocks, row_epsilon=0.05) == "left\nright"


class TestEdgeCases:
    """Tests for empty input and missing geometry."""

    def test_empty_list_returns_sentinel(self) -> None:
        assert reassemble([]) == NO_TEXT_DETECTED

    def test_none_returns_sentinel(self) -> None:
        assert reassemble(None) == NO_TEXT_DETECTED

    def test_only_non_line_blocks_returns_sentinel(self) -> None:
        blocks = [
            TextBlock(block_type=BlockType.WORD, text="word"),
            TextBlock(block_type=BlockType.KEY_VALUE, text="Name: Jane"),
            TextBlock(block_type=BlockType.TABLE, text="a | b"),
        ]
        assert reassemble(blocks) == NO_TEXT_DETECTED

    def test_words_are_ignored(self) -> None:
        blocks = [
            make_line("Hello world", top=0.1, left=0.1),
            TextBlock(
                block_type=BlockType.WORD,
                text="Hello",
                bbox=BoundingBox(top=0.0, left=0.0, width=0.1, height=0.02),
            ),
        ]
        assert reassemble(blocks) == "Hello world"

    def test_missing_bbox_sorts_first_in_insertion_order(self) -> None:
        blocks = [
            make_line("first"),
            make_line("body", top=0.5, left=0.1),
            make_line("second"),
        ]
        assert reassemble(blocks) == "first\nsecond\nbody"

    def test_missing_bbox_defaults_to_origin(self) -> None:
        block = make_line("no box")
        assert block.top == 0.0
        assert block.left == 0.0


class TestRows:
    """Tests for row grouping."""

    def test_rows_groups_close_lines(self) -> None:
        rows = LineReassembler().rows(_form_lines())
        assert [[line.text for line in row] for row in rows] == [
            ["Title"],
            ["Name:", "Jane"],
            ["Date", "2024"],
            ["Footer"],
        ]

    def test_rows_empty(self) -> None:
        assert LineReassembler().rows([]) == []

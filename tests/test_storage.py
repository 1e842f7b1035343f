"""Tests for puzzle parsing and the puzzle directory."""

import os

import pytest

from sudokit.board import Board
from sudokit.errors import StructuralError
from sudokit.models import Cell
from sudokit.storage import (
    board_to_csv,
    format_puzzle,
    list_puzzles,
    load_puzzle,
    parse_puzzle,
    resolve_puzzle_dir,
    save_board,
)


def test_parse_ignores_surrounding_whitespace():
    board = parse_puzzle("\n\n  12**  \n**12\n\t2***\n***3\n")
    assert board.length == 4
    assert board.value(Cell(0, 0)) == "1"
    assert board.value(Cell(3, 3)) == "3"
    assert not board.is_fixed(Cell(0, 2))


def test_parse_ignores_trailing_lines():
    board = parse_puzzle("1234\n3412\n2143\n4321\nthis line is a note\n")
    assert board.to_rows() == ["1234", "3412", "2143", "4321"]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "\n   \n",
        "12**\n**12\n2***\n",
        "12**\n**12\n2**\n***3\n",
        "123\n231\n312\n",
        "1234\n5***\n****\n****\n",
    ],
    ids=["empty", "blank", "too-few-rows", "short-row", "not-square", "too-many-symbols"],
)
def test_parse_rejects_malformed_puzzles(text):
    with pytest.raises(StructuralError):
        parse_puzzle(text)


def test_every_shipped_puzzle_parses(puzzle_dir):
    names = list_puzzles(str(puzzle_dir))
    assert "easy-9x9.txt" in names
    for name in names:
        board = load_puzzle(os.path.join(str(puzzle_dir), name))
        assert board.length in (4, 9, 16)
        assert not board.conflicts()


def test_save_then_load(tmp_path, hard_board):
    path = tmp_path / "nested" / "hard.txt"
    save_board(hard_board, str(path))
    assert path.read_text(encoding="utf-8") == format_puzzle(hard_board)
    again = load_puzzle(str(path))
    assert again.to_rows() == hard_board.to_rows()


def test_board_to_csv(full_4_rows):
    data = board_to_csv(Board.from_rows(full_4_rows))
    assert data.decode("utf-8").splitlines() == ["1,2,3,4", "3,4,1,2", "2,1,4,3", "4,3,2,1"]


def test_list_puzzles(tmp_path):
    (tmp_path / "b.txt").write_text("1\n", encoding="utf-8")
    (tmp_path / "a.txt").write_text("1\n", encoding="utf-8")
    (tmp_path / "notes.md").write_text("nope\n", encoding="utf-8")
    assert list_puzzles(str(tmp_path)) == ["a.txt", "b.txt"]
    assert list_puzzles(str(tmp_path / "missing")) == []


def test_puzzle_dir_comes_from_the_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SUDOKIT_PUZZLES", str(tmp_path))
    assert resolve_puzzle_dir() == str(tmp_path)
    monkeypatch.delenv("SUDOKIT_PUZZLES")
    assert resolve_puzzle_dir() == os.path.join(".", "puzzles")


def test_saved_puzzle_keeps_givens_but_not_unused_symbols():
    board = Board(4, alphabet="12AB")
    board.assign(Cell(0, 0), "A")
    text = format_puzzle(board)
    assert text.splitlines() == ["A***", "****", "****", "****"]
    again = parse_puzzle(text)
    assert again.value(Cell(0, 0)) == "A"
    assert again.alphabet == "123A"

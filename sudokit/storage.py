from __future__ import annotations

import os
from typing import List, Optional

from .board import Board
from .errors import StructuralError


PUZZLE_SUFFIX = ".txt"


def default_puzzle_dir() -> str:
    # Repo-local by default.
    return os.path.join(".", "puzzles")


def resolve_puzzle_dir() -> str:
    return os.environ.get("SUDOKIT_PUZZLES", default_puzzle_dir())


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


def list_puzzles(directory: Optional[str] = None) -> List[str]:
    d = directory or resolve_puzzle_dir()
    if not os.path.isdir(d):
        return []
    return sorted(name for name in os.listdir(d) if name.endswith(PUZZLE_SUFFIX))


def parse_puzzle(text: str) -> Board:
    """
    One row per line, '*' for unknown cells, surrounding whitespace ignored.
    The first row fixes the side length; anything after the last row is
    ignored.
    """
    lines = [line.strip() for line in text.splitlines()]
    while lines and not lines[0]:
        lines.pop(0)
    if not lines:
        raise StructuralError("Puzzle is empty.")

    length = len(lines[0])
    if len(lines) < length:
        raise StructuralError(f"Puzzle has {len(lines)} rows, expected {length}.")
    rows = lines[:length]
    for i, row in enumerate(rows):
        if len(row) != length:
            raise StructuralError(f"Row {i + 1} has {len(row)} symbols, expected {length}.")
    return Board.from_rows(rows)


def load_puzzle(path: str) -> Board:
    with open(path, "r", encoding="utf-8") as f:
        return parse_puzzle(f.read())


def format_puzzle(board: Board) -> str:
    """
    Fixed cells as symbols, open cells as '*'. Candidate sets are not kept,
    and neither is the alphabet: reloading rebuilds it from the fixed symbols
    topped up from SYMBOLS, so a symbol no fixed cell holds may come back as
    a different one.
    """
    return "\n".join(board.to_rows()) + "\n"


def save_board(board: Board, path: str) -> None:
    ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(format_puzzle(board))


def board_to_csv(board: Board) -> bytes:
    lines = [",".join(row) for row in board.to_rows()]
    return ("\n".join(lines) + "\n").encode("utf-8")

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Optional, Union

from .errors import StructuralError

if TYPE_CHECKING:
    from .board import Board


# Ordered alphabet used to top up puzzles that don't mention every symbol.
SYMBOLS = "1234567890ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz@$"
UNKNOWN = "*"

# Logic solver outcomes
SOLVED = "solved"
STALLED = "stalled"
CONTRADICTION = "contradiction"

# Additional top-level solve outcomes
NO_SOLUTION = "no-solution"
TIMEOUT = "timeout"


class Cell(NamedTuple):
    row: int
    col: int

    def __str__(self) -> str:
        return f"r{self.row + 1}c{self.col + 1}"


class GroupKind(Enum):
    ROW = "row"
    COLUMN = "column"
    BLOCK = "block"


@dataclass(frozen=True)
class Group:
    kind: GroupKind
    key: Union[int, Cell]  # row index, column index, or block corner

    def __str__(self) -> str:
        if self.kind is GroupKind.BLOCK:
            return f"block at {self.key}"
        return f"{self.kind.value} {int(self.key) + 1}"


@dataclass(frozen=True)
class BoardSpec:
    length: int     # board size: length x length (e.g., 9)
    blocksize: int  # block size: blocksize x blocksize (e.g., 3)
    full_mask: int  # bits 0..length-1 set


def board_spec(length: int) -> BoardSpec:
    """Validate the side length and build basic constants."""
    if length < 1:
        raise StructuralError(f"Invalid size: {length}. A board needs at least one cell.")
    blocksize = math.isqrt(length)
    if blocksize * blocksize != length:
        raise StructuralError(
            f"Invalid size: {length}. Only perfect squares are supported (4, 9, 16, ...)."
        )
    if length > len(SYMBOLS):
        raise StructuralError(f"Invalid size: {length}. At most {len(SYMBOLS)} symbols are available.")
    # bits 0..N-1 set => (1<<N) - 1
    return BoardSpec(length=length, blocksize=blocksize, full_mask=(1 << length) - 1)


@dataclass
class SolveResult:
    status: str  # "solved" | "stalled" | "no-solution" | "timeout"
    board: Optional["Board"]
    duration_ms: int
    guesses: int = 0
    backtracks: int = 0
    max_depth: int = 0
    message: str = ""

    @property
    def solved(self) -> bool:
        return self.status == SOLVED
